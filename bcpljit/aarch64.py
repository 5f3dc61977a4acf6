"""AArch64 instruction builder with branch resolution and binary encoding.

Instructions are recorded with their encodings already computed.  Then
``compute_addresses`` gives each one its address, ``resolve_all_branches``
writes branch offsets into the encodings, and ``to_bytes`` or
``encode_into`` produces the little-endian machine code.
"""

from __future__ import annotations

from typing import Iterator, Optional, Union

from bcpljit.isa import (
    X0,
    X1,
    X2,
    Condition,
    Instruction,
    ShiftType,
    reg_name,
    word_offset,
)

_MASK32 = 0xFFFFFFFF

_CONDITION_NAMES = {
    Condition.EQ: "eq",
    Condition.NE: "ne",
    Condition.CS: "cs",
    Condition.CC: "cc",
    Condition.MI: "mi",
    Condition.PL: "pl",
    Condition.VS: "vs",
    Condition.VC: "vc",
    Condition.HI: "hi",
    Condition.LS: "ls",
    Condition.GE: "ge",
    Condition.LT: "lt",
    Condition.GT: "gt",
    Condition.LE: "le",
    Condition.AL: "al",
    Condition.NV: "nv",
}

_SHIFT_NAMES = {
    ShiftType.LSL: "lsl",
    ShiftType.LSR: "lsr",
    ShiftType.ASR: "asr",
    ShiftType.ROR: "ror",
}


def _trunc_div(value: int, divisor: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(value) // divisor
    return -quotient if value < 0 else quotient


class AArch64Instructions:
    """An ordered sequence of AArch64 instructions under construction."""

    def __init__(self) -> None:
        self._instructions: list[Instruction] = []
        self._pending_label = ""

    # --- sequence protocol -------------------------------------------------

    @property
    def instructions(self) -> list[Instruction]:
        return self._instructions

    def __getitem__(self, index: int) -> Instruction:
        return self._instructions[index]

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def clear(self) -> None:
        self._instructions.clear()

    # --- emission ----------------------------------------------------------

    def set_pending_label(self, label: str) -> None:
        """Attach ``label`` to the next instruction emitted."""
        self._pending_label = label

    def current_address(self) -> int:
        """Byte address the next instruction would occupy."""
        return len(self._instructions) * 4

    def reg_name(self, reg: int) -> str:
        return reg_name(reg)

    def _emit(
        self,
        encoding: int,
        assembly: str,
        comment: str,
        target: Optional[str] = None,
        track_address: bool = True,
    ) -> None:
        instr = Instruction(
            encoding=encoding & _MASK32,
            assembly=assembly,
            comment=comment,
            needs_label_resolution=target is not None,
            target_label=target or "",
            address=self.current_address() if track_address else 0,
        )
        if self._pending_label:
            instr.has_label = True
            instr.label = self._pending_label
            self._pending_label = ""
        self._instructions.append(instr)

    def _three_reg(
        self,
        base: int,
        mnemonic: str,
        rd: int,
        rn: int,
        rm: int,
        comment: str,
        track_address: bool = True,
    ) -> None:
        self._emit(
            base | (rm << 16) | (rn << 5) | rd,
            f"{mnemonic} {reg_name(rd)}, {reg_name(rn)}, {reg_name(rm)}",
            comment,
            track_address=track_address,
        )

    def _branch(self, encoding: int, mnemonic: str, label: str, comment: str) -> None:
        self._emit(encoding, f"{mnemonic} {label}", comment, target=label)

    # --- data movement -----------------------------------------------------

    def mov(self, rd: int, rm: int, comment: str = "") -> None:
        self._emit(
            0xAA0003E0 | (rm << 16) | rd,
            f"mov {reg_name(rd)}, {reg_name(rm)}",
            comment,
        )

    def _wide_move(
        self, base: int, mnemonic: str, rd: int, imm16: int, shift: int, comment: str
    ) -> None:
        imm16 &= 0xFFFF
        shift &= 0xFF
        text = f"{mnemonic} {reg_name(rd)}, #0x{imm16:x}"
        if shift:
            text += f", lsl #{shift * 16}"
        self._emit(base | (shift << 21) | (imm16 << 5) | rd, text, comment)

    def movz(self, rd: int, imm16: int, shift: int = 0, comment: str = "") -> None:
        self._wide_move(0xD2800000, "movz", rd, imm16, shift, comment)

    def movk(self, rd: int, imm16: int, shift: int = 0, comment: str = "") -> None:
        self._wide_move(0xF2800000, "movk", rd, imm16, shift, comment)

    def move_a_to_b(self) -> None:
        self.mov(X1, X0, "B := A")

    def move_b_to_c(self) -> None:
        self.mov(X2, X1, "C := B")

    def load_immediate(self, rd: int, value: int, comment: str = "") -> None:
        """Load a 64-bit constant with a MOVZ followed by MOVKs as needed."""
        base = comment or f"Loading {value} into {reg_name(rd)}"
        if 0 <= value < 65536:
            self.movz(rd, value & 0xFFFF, 0, base)
            return
        self.movz(rd, value & 0xFFFF, 0, base + " (low)")
        if value & 0xFFFF0000:
            self.movk(rd, (value >> 16) & 0xFFFF, 1, base + " (high)")
        if value & 0xFFFF00000000:
            self.movk(rd, (value >> 32) & 0xFFFF, 2, base + " (upper)")
        if value & 0xFFFF000000000000:
            self.movk(rd, (value >> 48) & 0xFFFF, 3, base + " (top)")

    # --- arithmetic and logic ----------------------------------------------

    def add(
        self,
        rd: int,
        rn: int,
        rm: int,
        shift_type: ShiftType = ShiftType.LSL,
        shift_amount: int = 0,
        comment: str = "",
    ) -> None:
        shift_type = ShiftType(shift_type)
        encoding = (
            0x8B000000
            | (rm << 16)
            | (rn << 5)
            | rd
            | (int(shift_type) << 22)
            | (shift_amount << 10)
        )
        shift_text = (
            f", {_SHIFT_NAMES[shift_type]} #{shift_amount}" if shift_amount > 0 else ""
        )
        self._emit(
            encoding,
            f"add {reg_name(rd)}, {reg_name(rn)}, {reg_name(rm)}{shift_text}",
            comment,
        )

    def add_imm(self, rd: int, rn: int, imm: int, comment: str = "") -> None:
        self._emit(
            0x91000000 | (imm << 10) | (rn << 5) | rd,
            f"add {reg_name(rd)}, {reg_name(rn)}, #{imm}",
            comment,
        )

    def sub(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0xCB000000, "sub", rd, rn, rm, comment)

    def sub_imm(self, rd: int, rn: int, imm: int, comment: str = "") -> None:
        self._emit(
            0xD1000000 | (imm << 10) | (rn << 5) | rd,
            f"sub {reg_name(rd)}, {reg_name(rn)}, #{imm}",
            comment,
            track_address=False,
        )

    def sub_reg(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0xCB000000, "sub", rd, rn, rm, comment, track_address=False)

    def mul(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0x9B007C00, "mul", rd, rn, rm, comment)

    def sdiv(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0x9AC00C00, "sdiv", rd, rn, rm, comment, track_address=False)

    def lsl(self, rd: int, rn: int, imm: int, comment: str = "") -> None:
        """Immediate left shift, encoded through UBFM."""
        encoding = (
            0x53000000
            | (1 << 22)
            | (rd & 0x1F)
            | ((rn & 0x1F) << 5)
            | ((imm & 0x3F) << 16)
            | (((63 - imm) & _MASK32) << 10)
        )
        self._emit(
            encoding,
            f"lsl {reg_name(rd)}, {reg_name(rn)}, #{imm}",
            comment,
            track_address=False,
        )

    def lslv(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0x9AC02000, "lslv", rd, rn, rm, comment, track_address=False)

    def lsrv(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0x9AC02400, "lsrv", rd, rn, rm, comment, track_address=False)

    def lsr(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(
            0x1AC02800, "lsr", rd & 0x1F, rn & 0x1F, rm & 0x1F, comment,
            track_address=False,
        )

    def msub(self, rd: int, rn: int, rm: int, ra: int, comment: str = "") -> None:
        self._emit(
            0x9B000000 | (rm << 16) | (ra << 10) | (rn << 5) | rd,
            f"msub {reg_name(rd)}, {reg_name(rn)}, {reg_name(rm)}, {reg_name(ra)}",
            comment,
            track_address=False,
        )

    def neg(self, rd: int, rm: int, comment: str = "") -> None:
        self._emit(
            0xCB0003E0 | (rm << 16) | rd,
            f"neg {reg_name(rd)}, {reg_name(rm)}",
            comment,
        )

    def eor(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0xCA000000, "eor", rd, rn, rm, comment)

    def and_op(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0x8A000000, "and", rd, rn, rm, comment)

    def orr(self, rd: int, rn: int, rm: int, comment: str = "") -> None:
        self._three_reg(0xAA000000, "orr", rd, rn, rm, comment)

    def cmp(self, rn: int, rm: int, comment: str = "") -> None:
        self._emit(
            0xEB00001F | (rm << 16) | (rn << 5),
            f"cmp {reg_name(rn)}, {reg_name(rm)}",
            comment,
        )

    def cset(self, rd: int, cond: Union[Condition, int], comment: str = "") -> None:
        cond_name = _CONDITION_NAMES.get(int(cond), "unknown")
        self._emit(
            0x9A9F0000 | (int(cond) << 12) | rd,
            f"cset {reg_name(rd)}, {cond_name}",
            comment,
        )

    # --- memory ------------------------------------------------------------

    def _pair(
        self, base: int, mnemonic: str, rt1: int, rt2: int, rn: int, imm: int,
        comment: str,
    ) -> None:
        self._emit(
            base | ((imm & 0x7F) << 15) | (rt2 << 10) | (rn << 5) | rt1,
            f"{mnemonic} {reg_name(rt1)}, {reg_name(rt2)}, [{reg_name(rn)}, #{imm}]",
            comment,
        )

    def stp(self, rt1: int, rt2: int, rn: int, imm: int, comment: str = "") -> None:
        self._pair(0xA9000000, "stp", rt1, rt2, rn, imm, comment)

    def ldp(self, rt1: int, rt2: int, rn: int, imm: int, comment: str = "") -> None:
        self._pair(0xA9400000, "ldp", rt1, rt2, rn, imm, comment)

    def _single(
        self, base: int, mnemonic: str, rt: int, rn: int, imm: int, comment: str
    ) -> None:
        offset_text = f", #{imm}" if imm != 0 else ""
        self._emit(
            base | (_trunc_div(imm, 8) << 10) | (rn << 5) | rt,
            f"{mnemonic} {reg_name(rt)}, [{reg_name(rn)}{offset_text}]",
            comment,
        )

    def str(self, rt: int, rn: int, imm: int, comment: str = "") -> None:
        self._single(0xF9000000, "str", rt, rn, imm, comment)

    def ldr(self, rt: int, rn: int, imm: int, comment: str = "") -> None:
        self._single(0xF9400000, "ldr", rt, rn, imm, comment)

    # --- control flow ------------------------------------------------------

    def b(self, label: str, comment: str = "") -> None:
        self._branch(0x14000000, "b", label, comment)

    def bl(self, label: str, comment: str = "") -> None:
        self._branch(0x94000000, "bl", label, comment)

    def ret(self, comment: str = "") -> None:
        self._emit(0xD65F03C0, "ret", comment)

    def adr(self, rd: int, label: str, comment: str = "") -> None:
        self._emit(0x10000000 | rd, f"adr {reg_name(rd)}, {label}", comment, target=label)

    def br(self, rn: int, comment: str = "") -> None:
        self._emit(0xD61F0000 | (rn << 5), f"br {reg_name(rn)}", comment)

    def cbz(self, rt: int, label: str, comment: str = "") -> None:
        self._emit(0x34000000 | rt, f"cbz {reg_name(rt)}, {label}", comment, target=label)

    def beq(self, label: str, comment: str = "") -> None:
        self._branch(0x54000000 | Condition.EQ, "b.eq", label, comment)

    def bne(self, label: str, comment: str = "") -> None:
        self._branch(0x54000000 | Condition.NE, "b.ne", label, comment)

    def bge(self, label: str, comment: str = "") -> None:
        self._branch(0x54000000 | Condition.GE, "b.ge", label, comment)

    def blt(self, label: str, comment: str = "") -> None:
        self._branch(0x54000000 | Condition.LT, "b.lt", label, comment)

    def ble(self, label: str, comment: str = "") -> None:
        self._branch(0x54000000 | Condition.LE, "b.le", label, comment)

    def bgt(self, label: str, comment: str = "") -> None:
        self._branch(0x54000000 | Condition.GT, "b.gt", label, comment)

    # --- addressing and branch resolution ------------------------------------

    def resolve_branch(self, instruction_index: int, offset: int) -> None:
        """Merge a byte ``offset`` into the branch at ``instruction_index``."""
        if not 0 <= instruction_index < len(self._instructions):
            raise IndexError("Invalid instruction index for branch resolution")
        instr = self._instructions[instruction_index]
        opcode = instr.encoding & 0xFC000000
        words = word_offset(offset)
        if opcode in (0x14000000, 0x94000000):
            field = words & 0x03FFFFFF
        elif (opcode & 0xFE000000) == 0x54000000:
            field = words & 0x0007FFFF
        else:
            raise ValueError("Attempted to resolve non-branch instruction")
        instr.encoding = (instr.encoding | field) & _MASK32
        instr.needs_label_resolution = False

    def compute_addresses(self, base_address: int = 0) -> None:
        """Give each instruction its address, four bytes apart from ``base_address``."""
        for position, instr in enumerate(self._instructions):
            instr.address = base_address + position * 4

    def resolve_all_branches(self) -> None:
        """Patch every branch whose target label is defined in this sequence."""
        labels = {
            instr.label: instr.address for instr in self._instructions if instr.has_label
        }
        for instr in self._instructions:
            if not instr.needs_label_resolution or instr.target_label not in labels:
                continue
            words = word_offset(labels[instr.target_label] - instr.address)
            opcode = instr.encoding & 0xFC000000
            if opcode in (0x14000000, 0x94000000):
                instr.encoding |= words & 0x03FFFFFF
            elif (opcode & 0xFE000000) == 0x54000000:
                instr.encoding |= (words & 0x0007FFFF) << 5
            elif (opcode & 0xFF000000) == 0x34000000:
                instr.encoding |= (words & 0x0007FFFF) << 5
            instr.encoding &= _MASK32
            instr.needs_label_resolution = False

    # --- output ------------------------------------------------------------

    def to_bytes(self) -> bytes:
        """All instructions as little-endian machine code."""
        return b"".join(instr.encode() for instr in self._instructions)

    def encode_into(self, buffer: Union[bytearray, memoryview]) -> int:
        """Write the machine code to the start of ``buffer``; return the byte count."""
        needed = len(self._instructions) * 4
        if len(buffer) < needed:
            raise ValueError("Buffer too small for instruction encoding")
        buffer[:needed] = self.to_bytes()
        return needed