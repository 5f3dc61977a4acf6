"""AArch64 registers, condition codes and the encoded instruction record."""

from __future__ import annotations

import enum
from dataclasses import dataclass

X0 = 0
X1 = 1
X2 = 2
X3 = 3
X4 = 4
X5 = 5
X6 = 6
X7 = 7
X9 = 9
X10 = 10
X28 = 28  # global vector pointer
X29 = 29  # frame pointer
X30 = 30  # link register
SP = 31
XZR = 31

_MASK32 = 0xFFFFFFFF


class ShiftType(enum.IntEnum):
    LSL = 0
    LSR = 1
    ASR = 2
    ROR = 3


class Condition(enum.IntEnum):
    EQ = 0b0000
    NE = 0b0001
    CS = 0b0010
    HS = 0b0010
    CC = 0b0011
    LO = 0b0011
    MI = 0b0100
    PL = 0b0101
    VS = 0b0110
    VC = 0b0111
    HI = 0b1000
    LS = 0b1001
    GE = 0b1010
    LT = 0b1011
    GT = 0b1100
    LE = 0b1101
    AL = 0b1110
    NV = 0b1111


def reg_name(reg: int) -> str:
    """Return the assembler name of a register number."""
    if 0 <= reg <= 30:
        return f"x{reg}"
    if reg == SP:
        return "sp"
    return "unknown"


def word_offset(offset: int) -> int:
    """Byte offset to instruction count, truncating toward zero."""
    words = abs(offset) // 4
    return -words if offset < 0 else words


@dataclass
class Instruction:
    """One 32-bit instruction with its listing text and label data."""

    encoding: int
    assembly: str
    comment: str = ""
    needs_label_resolution: bool = False
    target_label: str = ""
    address: int = 0
    has_label: bool = False
    label: str = ""

    def is_store(self) -> bool:
        return (self.encoding & 0x3B000000) == 0x38000000

    def is_load(self) -> bool:
        return (self.encoding & 0x3B000000) == 0x38000000

    def resolve_label(self, offset: int) -> None:
        """Merge a byte offset into the 19-bit immediate field at bit 5."""
        self.encoding = (
            self.encoding | ((word_offset(offset) & 0x7FFFF) << 5)
        ) & _MASK32

    def encode(self) -> bytes:
        """The instruction as four little-endian bytes."""
        return (self.encoding & _MASK32).to_bytes(4, "little")

    def __str__(self) -> str:
        return self.assembly