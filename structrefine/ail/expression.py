# pylint:disable=arguments-renamed,missing-class-docstring
from __future__ import annotations
from collections.abc import Iterator, Sequence
from abc import abstractmethod

from .tagged_object import TaggedObject
from .utils import get_bits, stable_hash


class Expression(TaggedObject):
    """
    The base class of all AIL expressions. Guards of condition nodes are expressions.
    """

    bits: int

    __slots__ = (
        "bits",
        "depth",
    )

    def __init__(self, idx, depth, **kwargs):
        super().__init__(idx, **kwargs)
        self.depth = depth

    @abstractmethod
    def __repr__(self):
        raise NotImplementedError

    def __eq__(self, other):
        if self is other:
            return True
        return type(self) is type(other) and self.likes(other) and self.idx == other.idx

    __hash__ = TaggedObject.__hash__  # type: ignore

    @abstractmethod
    def likes(self, other):  # pylint:disable=unused-argument,no-self-use
        raise NotImplementedError

    @property
    def operands(self) -> list[Expression]:
        return []

    def atoms(self) -> Iterator[Atom]:
        """
        Yield every atom in this expression, depth first.
        """
        for operand in self.operands:
            yield from operand.atoms()


class Atom(Expression):
    __slots__ = ("variable",)

    def __init__(self, idx: int | None, variable=None, **kwargs):
        super().__init__(idx, 0, **kwargs)
        self.variable = variable

    def __repr__(self) -> str:
        return str(self)

    def atoms(self):
        yield self


class Const(Atom):
    __slots__ = ("value",)

    def __init__(self, idx: int | None, variable, value: int, bits: int, **kwargs):
        super().__init__(idx, variable, **kwargs)

        self.value = value
        self.bits = bits

    def __str__(self):
        return f"{self.value:#x}<{self.bits}>"

    def likes(self, other):
        return type(self) is type(other) and self.value == other.value and self.bits == other.bits

    __hash__ = TaggedObject.__hash__  # type: ignore

    def _hash_core(self):
        return stable_hash((self.value, self.bits))

    def atoms(self):
        # constants are not storage
        yield from ()


class Tmp(Atom):
    __slots__ = ("tmp_idx",)

    def __init__(self, idx: int | None, variable, tmp_idx: int, bits, **kwargs):
        super().__init__(idx, variable, **kwargs)

        self.tmp_idx = tmp_idx
        self.bits = bits

    def __str__(self):
        return f"t{self.tmp_idx}"

    def likes(self, other):
        return type(self) is type(other) and self.tmp_idx == other.tmp_idx and self.bits == other.bits

    __hash__ = TaggedObject.__hash__  # type: ignore

    def _hash_core(self):
        return stable_hash(("tmp", self.tmp_idx, self.bits))


class Register(Atom):
    __slots__ = ("reg_offset",)

    def __init__(self, idx: int | None, variable, reg_offset: int, bits: int, **kwargs):
        super().__init__(idx, variable, **kwargs)

        self.reg_offset = reg_offset
        self.bits = bits

    def likes(self, other):
        return type(self) is type(other) and self.reg_offset == other.reg_offset and self.bits == other.bits

    def __str__(self):
        if "reg_name" in self.tags:
            return f"{self.tags['reg_name']}<{self.bits // 8}>"
        return f"reg_{self.reg_offset}<{self.bits // 8}>"

    __hash__ = TaggedObject.__hash__  # type: ignore

    def _hash_core(self):
        return stable_hash(("reg", self.reg_offset, self.bits, self.idx))


class Op(Expression):
    __slots__ = ("op",)

    def __init__(self, idx, depth, op, **kwargs):
        super().__init__(idx, depth, **kwargs)
        self.op = op

    @property
    def verbose_op(self):
        return self.op


class UnaryOp(Op):
    __slots__ = ("operand",)

    def __init__(self, idx: int | None, op: str, operand: Expression, bits=None, **kwargs):
        super().__init__(idx, operand.depth + 1, op, **kwargs)

        self.operand = operand
        self.bits = operand.bits if bits is None else bits

    def __str__(self):
        return f"({self.op} {self.operand!s})"

    def __repr__(self):
        return str(self)

    def likes(self, other):
        return (
            type(other) is type(self)
            and self.op == other.op
            and self.bits == other.bits
            and self.operand.likes(other.operand)
        )

    __hash__ = TaggedObject.__hash__  # type: ignore

    def _hash_core(self):
        return stable_hash((self.op, self.operand, self.bits))

    @property
    def operands(self):
        return [self.operand]


class Convert(UnaryOp):
    """
    Truncation or extension of the operand to `to_bits` bits. Converting to one bit tests the operand against zero.
    """

    __slots__ = (
        "from_bits",
        "to_bits",
        "is_signed",
    )

    def __init__(self, idx: int | None, from_bits: int, to_bits: int, is_signed: bool, operand: Expression, **kwargs):
        super().__init__(idx, "Convert", operand, bits=to_bits, **kwargs)

        self.from_bits = from_bits
        self.to_bits = to_bits
        self.is_signed = is_signed

    def __str__(self):
        return f"Conv({self.from_bits}->{'s' if self.is_signed else ''}{self.to_bits}, {self.operand})"

    def likes(self, other):
        return (
            type(other) is Convert
            and self.from_bits == other.from_bits
            and self.to_bits == other.to_bits
            and self.is_signed == other.is_signed
            and self.operand.likes(other.operand)
        )

    __hash__ = TaggedObject.__hash__  # type: ignore

    def _hash_core(self):
        return stable_hash((self.operand, self.from_bits, self.to_bits, self.bits, self.is_signed))


class BinaryOp(Op):
    __slots__ = (
        "_operands",
        "signed",
    )

    OPSTR_MAP = {
        "Add": "+",
        "Sub": "-",
        "Mul": "*",
        "Div": "/",
        "Mod": "%",
        "Xor": "^",
        "And": "&",
        "LogicalAnd": "&&",
        "Or": "|",
        "LogicalOr": "||",
        "Shl": "<<",
        "Shr": ">>",
        "Sar": ">>a",
        "CmpEQ": "==",
        "CmpNE": "!=",
        "CmpLT": "<",
        "CmpLE": "<=",
        "CmpGT": ">",
        "CmpGE": ">=",
        "CmpLT (signed)": "<s",
        "CmpLE (signed)": "<=s",
        "CmpGT (signed)": ">s",
        "CmpGE (signed)": ">=s",
    }

    BOOLEAN_OPS = {"CmpEQ", "CmpNE", "CmpLT", "CmpGE", "CmpLE", "CmpGT", "LogicalAnd", "LogicalOr"}

    def __init__(
        self, idx: int | None, op: str, operands: Sequence[Expression], signed: bool = False, bits=None, **kwargs
    ):
        assert len(operands) == 2
        super().__init__(idx, max(operands[0].depth, operands[1].depth) + 1, op, **kwargs)

        self._operands = list(operands)
        if bits is not None:
            self.bits = bits
        elif self.op in self.BOOLEAN_OPS:
            self.bits = 1
        else:
            self.bits = get_bits(operands[0])
        self.signed = signed

    @property
    def operands(self):
        return self._operands

    def __str__(self):
        op_str = self.OPSTR_MAP.get(self.verbose_op, self.verbose_op)
        return f"({self.operands[0]!s} {op_str} {self.operands[1]!s})"

    def __repr__(self):
        return f"{self.verbose_op}({self.operands[0]}, {self.operands[1]})"

    @property
    def verbose_op(self):
        op = self.op
        if self.signed and op.startswith("Cmp"):
            op += " (signed)"
        return op

    def likes(self, other):
        return (
            type(other) is BinaryOp
            and self.op == other.op
            and self.bits == other.bits
            and self.signed == other.signed
            and all(op0.likes(op1) for op0, op1 in zip(self.operands, other.operands))
        )

    __hash__ = TaggedObject.__hash__  # type: ignore

    def _hash_core(self):
        return stable_hash((self.op, tuple(self.operands), self.bits, self.signed))
