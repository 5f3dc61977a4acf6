"""Basic blocks of a control flow graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from bcpljit.syntax import Statement


@dataclass(eq=False)
class BasicBlock:
    """A straight-line run of statements with successor and predecessor edges.

    Blocks compare and hash by identity, so they can be held in sets.
    """

    id: int
    statements: list[Statement] = field(default_factory=list)
    successors: set["BasicBlock"] = field(default_factory=set)
    predecessors: set["BasicBlock"] = field(default_factory=set)

    def add_statement(self, stmt: Statement) -> None:
        self.statements.append(stmt)

    def add_successor(self, succ: Optional["BasicBlock"]) -> None:
        """Link ``succ`` after this block; ``None`` is ignored."""
        if succ is None:
            return
        self.successors.add(succ)
        succ.predecessors.add(self)

    def __str__(self) -> str:
        return f"BB{self.id}"