from bcpljit.blocks import BasicBlock
from bcpljit.syntax import BreakStatement, ReturnStatement


def test_str_uses_id():
    assert str(BasicBlock(3)) == "BB3"


def test_add_statement_keeps_order():
    block = BasicBlock(0)
    first, second = BreakStatement(), ReturnStatement()
    block.add_statement(first)
    block.add_statement(second)
    assert block.statements == [first, second]
    assert block.statements[0] is first


def test_add_successor_links_both_ways():
    a, b = BasicBlock(0), BasicBlock(1)
    a.add_successor(b)
    assert a.successors == {b}
    assert b.predecessors == {a}
    assert a.predecessors == set()


def test_add_successor_is_idempotent():
    a, b = BasicBlock(0), BasicBlock(1)
    a.add_successor(b)
    a.add_successor(b)
    assert len(a.successors) == 1
    assert len(b.predecessors) == 1


def test_add_successor_none_is_ignored():
    a = BasicBlock(0)
    a.add_successor(None)
    assert a.successors == set()


def test_self_loop():
    a = BasicBlock(0)
    a.add_successor(a)
    assert a in a.successors
    assert a in a.predecessors


def test_blocks_with_same_id_are_distinct():
    a, b = BasicBlock(1), BasicBlock(1)
    root = BasicBlock(0)
    root.add_successor(a)
    root.add_successor(b)
    assert len(root.successors) == 2