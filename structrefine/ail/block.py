from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .statement import Statement


class Block:
    """
    A leaf code block of a structured tree: a straight-line list of AIL statements.
    """

    __slots__ = (
        "_hash",
        "addr",
        "idx",
        "original_size",
        "statements",
    )

    def __init__(self, addr: int, original_size, statements=None, idx=None):
        self.addr = addr
        self.original_size = original_size
        self.statements: list[Statement] = [] if statements is None else statements
        self.idx = idx
        self._hash = None

    def __repr__(self):
        if self.idx is None:
            return f"<AILBlock {self.addr:#x} of {len(self.statements)} statements>"
        return f"<AILBlock {self.addr:#x}.{self.idx} of {len(self.statements)} statements>"

    def dbg_repr(self, indent=0):
        indent_str = " " * indent
        return "\n".join(f"{indent_str}{stmt}" for stmt in self.statements)

    def __str__(self):
        return self.dbg_repr()

    def __eq__(self, other):
        return (
            type(other) is Block
            and self.addr == other.addr
            and self.idx == other.idx
            and self.statements == other.statements
        )

    def __hash__(self):
        # statements are left out, so that a block keeps its hash when it is edited in place
        if self._hash is None:
            self._hash = hash((Block, self.addr, self.idx))
        return self._hash
