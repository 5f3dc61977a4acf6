# bcpljit

Building blocks for a BCPL compiler that targets 64-bit ARM (AArch64). The
package has no third-party dependencies.

## Modules

- `bcpljit.syntax` holds the abstract syntax tree. It has expression nodes
  such as `NumberLiteral`, `BinaryOp`, `FunctionCall` and `Valof`, and
  statement nodes such as `IfStatement`, `WhileStatement`, `ForStatement`,
  `SwitchonStatement` and `RepeatStatement`. Its declaration nodes are
  `LetDeclaration`, `GlobalDeclaration`, `ManifestDeclaration`,
  `FunctionDeclaration` and `GetDirective`, and `Program` is the root.
  All nodes are dataclasses. `clone()` returns a deep, independent copy of a
  node. `accept(visitor)` calls `visitor.visit(node)`.
- `bcpljit.visitor` provides `ASTVisitor`. Its `visit(node)` calls a method
  named `visit_<snake_case_class_name>`, for example `visit_binary_op` or
  `visit_while_statement`. The lookup walks the node's class hierarchy, so
  `visit_statement` catches any statement without a more specific handler.
  Nodes with no matching method are ignored.
- `bcpljit.isa` defines:
  - the register numbers `X0` to `X30`, `SP` and `XZR`;
  - the `Condition` and `ShiftType` enums;
  - the `reg_name()` function;
  - the `Instruction` record, which holds an encoding, assembly text,
    comment, address and label data. `encode()` returns its four
    little-endian bytes.
- `bcpljit.aarch64` provides `AArch64Instructions`. It records instructions
  with their encodings and assembly text, assigns addresses, patches branch
  offsets from labels, and writes the machine code out as bytes.
- `bcpljit.blocks` provides `BasicBlock`. A block has an `id`, its
  `statements` and sets of `successors` and `predecessors`. Blocks compare
  and hash by identity.
- `bcpljit.cfg` provides `CFGBuilder`, which builds a control-flow graph of
  basic blocks from a `Program`.

## Emitting machine code

```python
from bcpljit.aarch64 import AArch64Instructions
from bcpljit.isa import X0

code = AArch64Instructions()
code.load_immediate(X0, 42)
code.b("done")
code.set_pending_label("done")
code.ret()
code.compute_addresses(0)
code.resolve_all_branches()
machine_code = code.to_bytes()   # 4 bytes per instruction, little-endian
print(len(code), code[0].assembly)
```

Branch methods take a label name. They are `b`, `bl`, `beq`, `bne`, `bge`,
`blt`, `ble`, `bgt`, `cbz` and `adr`.

- `set_pending_label(name)` puts a label on the next instruction that is
  emitted.
- `compute_addresses(base_address)` gives each instruction its address,
  four bytes apart.
- `resolve_all_branches()` then writes the offsets of all branches whose
  target label is defined. Branches to undefined labels are left unchanged.
- `resolve_branch(index, offset)` patches one branch by hand. It raises
  `IndexError` for a bad index and `ValueError` for an instruction that is
  not a branch.
- `encode_into(buffer)` writes the code into a `bytearray` or `memoryview`.
  It raises `ValueError` if the buffer is too small.

`load_immediate(rd, value)` emits a `movz` for values from 0 to 65535.
Other values get a `movz` followed by a `movk` for each non-zero 16-bit
chunk above the lowest.

## Building a control-flow graph

```python
from bcpljit.syntax import (
    Program, FunctionDeclaration, WhileStatement, VariableAccess, RoutineCall,
    FunctionCall,
)
from bcpljit.cfg import CFGBuilder

body = WhileStatement(
    VariableAccess("X"),
    RoutineCall(FunctionCall(VariableAccess("F"), [])),
)
program = Program([FunctionDeclaration("START", [], None, body)])

builder = CFGBuilder()
builder.build(program)
entry = builder.function_entry_blocks["START"]
print(entry, sorted(str(b) for b in entry.successors))
```

`build()` makes one entry block for each `FunctionDeclaration`. It then
splits the statement body into blocks. After `build()` the builder holds:

- `function_entry_blocks`: maps each function name to its entry block;
- `labels`: maps each label name to the block that starts at that label;
- `blocks`: lists every block in the order it was created.

`RETURN`, `GOTO` and `FINISH` end a path, and no edge leaves them. Edges for
`GOTO` targets are not added. Progress is logged at debug level through the
`bcpljit.cfg` logger.

## What the package does not do

The package has no lexer or parser, so syntax trees must be built in Python.
There is no code generator that turns a syntax tree into instructions, and
no optimisation passes. It cannot run the generated machine code, and it has
no command-line program. `AArch64Instructions` only builds and encodes the
instructions you emit through its methods.

## Running the tests

```
pip install .[test]
pytest
```