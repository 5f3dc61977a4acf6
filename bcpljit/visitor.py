"""Visitor base class for walking the syntax tree."""

from __future__ import annotations

import re
from typing import Any, Callable, Optional

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _method_name(cls: type) -> str:
    return "visit_" + _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()


class ASTVisitor:
    """Dispatches each node to a ``visit_<snake_case_class_name>`` method.

    A visitor overrides only the methods for the nodes it cares about;
    nodes without a matching method are ignored.  Lookup follows the
    node's class hierarchy, so ``visit_statement`` catches every statement
    that has no more specific handler.
    """

    def visit(self, node: Any) -> None:
        handler = self._handler_for(type(node))
        if handler is not None:
            handler(node)

    def _handler_for(self, cls: type) -> Optional[Callable[[Any], None]]:
        for klass in cls.__mro__:
            if klass is object:
                break
            handler = getattr(self, _method_name(klass), None)
            if handler is not None:
                return handler
        return None