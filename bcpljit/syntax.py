"""Abstract syntax tree for BCPL programs."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union


class Node:
    """Base class for every node in the syntax tree."""

    def clone(self) -> "Node":
        """Return a deep, independent copy of this node and its children."""
        return copy.deepcopy(self)

    def accept(self, visitor: Any) -> None:
        """Dispatch this node to ``visitor.visit``."""
        visitor.visit(self)


class Expression(Node):
    """A node that yields a value."""


class Statement(Node):
    """A node that performs an action."""


class Declaration(Node):
    """A node that introduces names."""


# --- Expressions -----------------------------------------------------------


@dataclass
class NumberLiteral(Expression):
    value: int


@dataclass
class FloatLiteral(Expression):
    value: float


@dataclass
class StringLiteral(Expression):
    value: str


@dataclass
class CharLiteral(Expression):
    value: int


@dataclass
class VariableAccess(Expression):
    name: str


@dataclass
class UnaryOp(Expression):
    """A unary operation such as ``@E``, ``~E`` or ``!E``."""

    op: Any
    rhs: Expression


@dataclass
class BinaryOp(Expression):
    """A binary operation such as ``E1 + E2``."""

    op: Any
    left: Expression
    right: Expression


@dataclass
class FunctionCall(Expression):
    function: Expression
    arguments: list[Expression] = field(default_factory=list)


@dataclass
class ConditionalExpression(Expression):
    """``E1 -> E2, E3``."""

    condition: Expression
    true_expr: Expression
    false_expr: Expression


@dataclass
class TableConstructor(Expression):
    pass


@dataclass
class VectorConstructor(Expression):
    size: Expression


@dataclass
class Valof(Expression):
    body: Statement


@dataclass
class DereferenceExpr(Expression):
    """``!P``."""

    pointer: Expression


@dataclass
class VectorAccess(Expression):
    """``V!I``."""

    vector: Expression
    index: Expression


@dataclass
class CharacterAccess(Expression):
    """``S%I``."""

    string: Expression
    index: Expression


# --- Statements ------------------------------------------------------------


class LoopType(enum.Enum):
    REPEAT = "repeat"
    REPEATWHILE = "repeatwhile"
    REPEATUNTIL = "repeatuntil"


@dataclass
class RepeatStatement(Statement):
    body: Optional[Statement]
    condition: Optional[Expression] = None
    loop_type: LoopType = LoopType.REPEAT


@dataclass
class SwitchCase:
    """One ``CASE`` arm of a ``SWITCHON``."""

    value: int
    label: str
    statement: Optional[Statement] = None


@dataclass
class SwitchonStatement(Statement):
    expression: Expression
    cases: list[SwitchCase] = field(default_factory=list)
    default_case: Optional[Statement] = None


@dataclass
class BreakStatement(Statement):
    pass


@dataclass
class LoopStatement(Statement):
    pass


@dataclass
class EndcaseStatement(Statement):
    pass


@dataclass
class Assignment(Statement):
    """``L1, L2 := R1, R2``."""

    lhs: list[Expression]
    rhs: list[Expression]


@dataclass
class RoutineCall(Statement):
    call_expression: Expression


@dataclass
class CompoundStatement(Statement):
    """A block ``$( C1; C2 $)``; may hold declarations as well as statements."""

    statements: list[Node] = field(default_factory=list)


@dataclass
class IfStatement(Statement):
    condition: Expression
    then_statement: Statement


@dataclass
class TestStatement(Statement):
    condition: Expression
    then_statement: Statement
    else_statement: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    condition: Expression
    body: Statement


@dataclass
class ForStatement(Statement):
    """``FOR v = from TO to BY by DO body``; ``by_expr`` of None means 1."""

    var_name: str
    from_expr: Expression
    to_expr: Expression
    by_expr: Optional[Expression]
    body: Statement


@dataclass
class GotoStatement(Statement):
    label: Expression


@dataclass
class LabeledStatement(Statement):
    name: str
    statement: Statement


@dataclass
class ReturnStatement(Statement):
    pass


@dataclass
class DeclarationStatement(Statement):
    declaration: Optional[Declaration]


@dataclass
class FinishStatement(Statement):
    pass


@dataclass
class ResultisStatement(Statement):
    value: Expression


# --- Declarations ----------------------------------------------------------


@dataclass
class GetDirective(Declaration):
    filename: str


@dataclass
class VarInit:
    name: str
    init: Optional[Expression] = None


@dataclass
class LetDeclaration(Declaration):
    initializers: list[VarInit] = field(default_factory=list)


@dataclass
class GlobalEntry:
    name: str
    size: int


@dataclass
class GlobalDeclaration(Declaration):
    globals: list[GlobalEntry] = field(default_factory=list)


@dataclass
class Manifest:
    name: str
    value: int


@dataclass
class ManifestDeclaration(Declaration):
    manifests: list[Manifest] = field(default_factory=list)


@dataclass
class FunctionDeclaration(Declaration):
    """``LET F(params) = E`` (body_expr) or ``LET R(params) BE C`` (body_stmt)."""

    name: str
    params: list[str] = field(default_factory=list)
    body_expr: Optional[Expression] = None
    body_stmt: Optional[Statement] = None


@dataclass
class Program(Node):
    """Root of the syntax tree."""

    declarations: list[Declaration] = field(default_factory=list)


AnyNode = Union[Expression, Statement, Declaration, Program]