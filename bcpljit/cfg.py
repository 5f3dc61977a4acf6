"""Control flow graph construction from the syntax tree."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from bcpljit.blocks import BasicBlock
from bcpljit.syntax import (
    Assignment,
    CompoundStatement,
    DeclarationStatement,
    EndcaseStatement,
    FinishStatement,
    ForStatement,
    FunctionDeclaration,
    GotoStatement,
    IfStatement,
    LabeledStatement,
    LoopStatement,
    Node,
    Program,
    RepeatStatement,
    ResultisStatement,
    ReturnStatement,
    RoutineCall,
    SwitchonStatement,
    TestStatement,
    WhileStatement,
)

log = logging.getLogger(__name__)

Block = Optional[BasicBlock]


def _name(block: Block) -> str:
    return str(block) if block is not None else "<none>"


class CFGBuilder:
    """Splits each function body into basic blocks linked by control flow edges.

    ``function_entry_blocks`` maps each function name to its entry block,
    ``labels`` maps statement labels to the block that starts at them, and
    ``blocks`` lists every block in the order it was created.  A handler
    returns ``None`` when control cannot fall through (RETURN, GOTO, FINISH).
    """

    def __init__(self) -> None:
        self.next_block_id = 0
        self.function_entry_blocks: dict[str, BasicBlock] = {}
        self.labels: dict[str, BasicBlock] = {}
        self.blocks: list[BasicBlock] = []
        self._handlers: dict[type, Callable[[Node, Block], Block]] = {
            CompoundStatement: self._compound,
            IfStatement: self._if,
            WhileStatement: self._while,
            ForStatement: self._for,
            RoutineCall: self._append,
            ReturnStatement: self._terminate,
            LoopStatement: self._loop,
            RepeatStatement: self._repeat,
            SwitchonStatement: self._switchon,
            GotoStatement: self._terminate,
            LabeledStatement: self._labeled,
            DeclarationStatement: self._append,
            Assignment: self._append,
            TestStatement: self._test,
            ResultisStatement: self._append,
            EndcaseStatement: self._append,
            FinishStatement: self._terminate,
        }

    def build(self, program: Program) -> None:
        """Build the graph for every function declared in ``program``."""
        self.function_entry_blocks.clear()
        self.labels.clear()
        self.blocks.clear()
        self.next_block_id = 0
        log.debug("starting CFG construction")
        for decl in program.declarations:
            if not isinstance(decl, FunctionDeclaration):
                continue
            log.debug("processing function %s", decl.name)
            entry = self._new_block()
            self.function_entry_blocks[decl.name] = entry
            if decl.body_stmt is not None:
                self._statement(decl.body_stmt, entry)
        log.debug("CFG construction complete")

    # --- helpers -------------------------------------------------------------

    def _new_block(self) -> BasicBlock:
        block = BasicBlock(self.next_block_id)
        self.next_block_id += 1
        self.blocks.append(block)
        log.debug("created block %s", block)
        return block

    @staticmethod
    def _link(src: Block, dst: BasicBlock, why: str) -> None:
        if src is None:
            return
        src.add_successor(dst)
        log.debug("%s -> %s (%s)", src, dst, why)

    def _append(self, stmt: Node, current: Block) -> BasicBlock:
        if current is None:
            current = self._new_block()
        current.add_statement(stmt)
        return current

    def _statement(self, stmt: Optional[Node], current: Block) -> Block:
        if stmt is None:
            return current
        handler = self._handlers.get(type(stmt), self._append)
        log.debug("handling %s in %s", type(stmt).__name__, _name(current))
        return handler(stmt, current)

    # --- statement handlers --------------------------------------------------

    def _compound(self, stmt: CompoundStatement, current: Block) -> Block:
        for inner in stmt.statements:
            current = self._statement(inner, current)
        return current

    def _terminate(self, stmt: Node, current: Block) -> Block:
        self._append(stmt, current)
        return None

    def _if(self, stmt: IfStatement, current: Block) -> Block:
        current = self._append(stmt, current)
        then_block = self._new_block()
        self._link(current, then_block, "then branch")
        then_end = self._statement(stmt.then_statement, then_block)
        merge = self._new_block()
        self._link(then_end, merge, "merge")
        self._link(current, merge, "no else branch")
        return merge

    def _while(self, stmt: WhileStatement, current: Block) -> Block:
        header = self._new_block()
        self._link(current, header, "loop header")
        self._append(stmt, header)
        body = self._new_block()
        self._link(header, body, "loop body")
        body_end = self._statement(stmt.body, body)
        self._link(body_end, header, "loop backedge")
        exit_block = self._new_block()
        self._link(header, exit_block, "loop exit")
        return exit_block

    def _for(self, stmt: ForStatement, current: Block) -> Block:
        current = self._append(stmt, current)
        header = self._new_block()
        self._link(current, header, "for loop header")
        body = self._new_block()
        self._link(header, body, "for loop body")
        body_end = self._statement(stmt.body, body)
        self._link(body_end, header, "for loop backedge")
        exit_block = self._new_block()
        self._link(header, exit_block, "for loop exit")
        return exit_block

    def _loop(self, stmt: LoopStatement, current: Block) -> Block:
        current = self._append(stmt, current)
        header = self._new_block()
        self._link(current, header, "loop header")
        return header

    def _repeat(self, stmt: RepeatStatement, current: Block) -> Block:
        body = self._new_block()
        self._link(current, body, "repeat loop body")
        body_end = self._statement(stmt.body, body)
        body_end = self._append(stmt, body_end)
        exit_block = self._new_block()
        self._link(body_end, body, "repeat loop backedge")
        self._link(body_end, exit_block, "repeat loop exit")
        return exit_block

    def _switchon(self, stmt: SwitchonStatement, current: Block) -> Block:
        current = self._append(stmt, current)
        merge = self._new_block()
        for case in stmt.cases:
            case_block = self._new_block()
            self._link(current, case_block, "switch case")
            case_end = self._statement(case.statement, case_block)
            self._link(case_end, merge, "switch merge")
        if stmt.default_case is not None:
            default_block = self._new_block()
            self._link(current, default_block, "switch default")
            default_end = self._statement(stmt.default_case, default_block)
            self._link(default_end, merge, "switch merge")
        return merge

    def _labeled(self, stmt: LabeledStatement, current: Block) -> Block:
        labeled = self._new_block()
        self.labels[stmt.name] = labeled
        self._link(current, labeled, "labeled statement")
        return self._statement(stmt.statement, labeled)

    def _test(self, stmt: TestStatement, current: Block) -> Block:
        current = self._append(stmt, current)
        then_block = self._new_block()
        else_block = self._new_block() if stmt.else_statement is not None else None
        self._link(current, then_block, "test then branch")
        if else_block is not None:
            self._link(current, else_block, "test else branch")
        then_end = self._statement(stmt.then_statement, then_block)
        else_end = (
            self._statement(stmt.else_statement, else_block)
            if stmt.else_statement is not None
            else None
        )
        merge = self._new_block()
        self._link(then_end, merge, "test merge")
        if else_end is not None:
            self._link(else_end, merge, "test merge")
        else:
            self._link(current, merge, "test merge, no else")
        return merge