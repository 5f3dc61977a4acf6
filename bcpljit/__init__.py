"""BCPL syntax tree, visitor, control-flow graph construction and AArch64 instruction encoding."""

__version__ = "0.1.0"
__all__ = ["syntax", "visitor", "isa", "aarch64", "blocks", "cfg"]