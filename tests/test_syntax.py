import pytest

from bcpljit.syntax import (
    Assignment,
    BinaryOp,
    CompoundStatement,
    ConditionalExpression,
    DeclarationStatement,
    Expression,
    ForStatement,
    FunctionCall,
    FunctionDeclaration,
    GlobalDeclaration,
    GlobalEntry,
    IfStatement,
    LetDeclaration,
    LoopType,
    Manifest,
    ManifestDeclaration,
    Node,
    NumberLiteral,
    Program,
    RepeatStatement,
    ResultisStatement,
    Statement,
    StringLiteral,
    SwitchCase,
    SwitchonStatement,
    TestStatement,
    Valof,
    VariableAccess,
    VarInit,
    VectorAccess,
    WhileStatement,
)


class RecordingVisitor:
    def __init__(self):
        self.seen = []

    def visit(self, node):
        self.seen.append(node)


def _sample_program():
    body = CompoundStatement(
        [
            DeclarationStatement(LetDeclaration([VarInit("x", NumberLiteral(1))])),
            Assignment([VariableAccess("x")], [BinaryOp("+", VariableAccess("x"), NumberLiteral(2))]),
            WhileStatement(VariableAccess("x"), ResultisStatement(VariableAccess("x"))),
        ]
    )
    return Program(
        [
            GlobalDeclaration([GlobalEntry("G", 1)]),
            ManifestDeclaration([Manifest("LIMIT", 10)]),
            FunctionDeclaration("START", ["a", "b"], None, body),
        ]
    )


def test_clone_program_is_equal_and_independent():
    program = _sample_program()
    copy_ = program.clone()
    assert copy_ == program
    assert copy_ is not program
    copy_.declarations[2].body_stmt.statements.pop()
    assert len(program.declarations[2].body_stmt.statements) == 3


def test_clone_binary_op_deep():
    expr = BinaryOp("*", NumberLiteral(3), VariableAccess("y"))
    cloned = expr.clone()
    cloned.left.value = 99
    assert expr.left.value == 3
    assert cloned.right == VariableAccess("y")


def test_repeat_statement_defaults():
    stmt = RepeatStatement(CompoundStatement([]))
    assert stmt.loop_type is LoopType.REPEAT
    assert stmt.condition is None


def test_repeat_clone_keeps_loop_type_and_condition():
    stmt = RepeatStatement(IfStatement(VariableAccess("c"), CompoundStatement([])),
                           VariableAccess("done"), LoopType.REPEATUNTIL)
    cloned = stmt.clone()
    assert cloned.loop_type is LoopType.REPEATUNTIL
    assert cloned.condition == VariableAccess("done")
    assert cloned.body is not stmt.body


def test_repeat_clone_with_missing_parts():
    stmt = RepeatStatement(None, None, LoopType.REPEATWHILE)
    cloned = stmt.clone()
    assert cloned.body is None and cloned.condition is None
    assert cloned == stmt


def test_switchon_clone_preserves_cases_and_default():
    stmt = SwitchonStatement(
        VariableAccess("k"),
        [SwitchCase(1, "L1", ResultisStatement(NumberLiteral(5))), SwitchCase(2, "L2", None)],
        None,
    )
    cloned = stmt.clone()
    assert [c.value for c in cloned.cases] == [1, 2]
    assert [c.label for c in cloned.cases] == ["L1", "L2"]
    assert cloned.cases[1].statement is None
    assert cloned.default_case is None
    assert cloned.cases[0].statement is not stmt.cases[0].statement


def test_for_and_test_statement_optional_parts():
    loop = ForStatement("i", NumberLiteral(1), NumberLiteral(10), None, CompoundStatement([]))
    assert loop.clone().by_expr is None
    test = TestStatement(VariableAccess("p"), CompoundStatement([]))
    assert test.else_statement is None
    assert test.clone() == test


def test_function_call_clone_copies_arguments():
    call = FunctionCall(VariableAccess("f"), [NumberLiteral(1), StringLiteral("hi")])
    cloned = call.clone()
    cloned.arguments.append(NumberLiteral(7))
    assert len(call.arguments) == 2
    assert cloned.arguments[:2] == call.arguments


def test_accept_dispatches_node_itself():
    visitor = RecordingVisitor()
    nodes = [
        NumberLiteral(4),
        ConditionalExpression(VariableAccess("a"), NumberLiteral(1), NumberLiteral(0)),
        Valof(ResultisStatement(NumberLiteral(2))),
        VectorAccess(VariableAccess("v"), NumberLiteral(3)),
        _sample_program(),
    ]
    for node in nodes:
        node.accept(visitor)
    assert len(visitor.seen) == len(nodes)
    assert all(a is b for a, b in zip(visitor.seen, nodes))


def test_clones_keep_class_hierarchy():
    expr_clone = NumberLiteral(0).clone()
    assert isinstance(expr_clone, Expression)
    assert expr_clone == NumberLiteral(0)
    stmt_clone = ResultisStatement(NumberLiteral(0)).clone()
    assert isinstance(stmt_clone, Statement)
    assert isinstance(stmt_clone, Node)
    assert stmt_clone.value == NumberLiteral(0)
    program_clone = Program([]).clone()
    assert not isinstance(program_clone, Statement)
    assert program_clone.declarations == []


def test_let_declaration_clone_with_uninitialised_var():
    decl = LetDeclaration([VarInit("a"), VarInit("b", NumberLiteral(8))])
    cloned = decl.clone()
    assert cloned.initializers[0].init is None
    assert cloned.initializers[1].init == NumberLiteral(8)
    cloned.initializers[1].init.value = 0
    assert decl.initializers[1].init.value == 8


@pytest.mark.parametrize("loop_type", list(LoopType))
def test_loop_type_round_trip(loop_type):
    assert LoopType(loop_type.value) is loop_type
    stmt = RepeatStatement(None, None, loop_type)
    assert stmt.clone().loop_type is loop_type