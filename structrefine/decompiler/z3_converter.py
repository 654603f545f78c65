from __future__ import annotations
import logging

import z3

from .. import ail
from ..errors import UnsupportedExpressionError

l = logging.getLogger(name=__name__)


class Z3Converter:
    """
    Translate AIL expressions into z3 expressions. Translations are cached per converter, and atoms that print the same
    (e.g., two Register expressions for the same register) are translated into the same z3 variable, so that the solver
    sees guards over the same storage as related.
    """

    def __init__(self, ctx: z3.Context | None = None):
        self.ctx = ctx if ctx is not None else z3.Context()
        self._cache: dict[ail.Expression, z3.ExprRef] = {}
        self._z3_to_ail: dict[str, ail.Expression] = {}

    def clear(self):
        self._cache = {}
        self._z3_to_ail = {}

    @property
    def variable_mapping(self) -> dict[str, ail.Expression]:
        """
        Maps names of z3 variables to the AIL atoms they were created for.
        """
        return self._z3_to_ail

    #
    # Sort coercion
    #

    def bool_cast(self, expr: z3.ExprRef) -> z3.BoolRef:
        if z3.is_bool(expr):
            return expr
        if z3.is_bv(expr):
            return expr != z3.BitVecVal(0, expr.size(), self.ctx)
        raise UnsupportedExpressionError(f"Cannot cast {expr} of sort {expr.sort()} to bool.")

    def bv_cast(self, expr: z3.ExprRef, bits: int = 1) -> z3.BitVecRef:
        if z3.is_bv(expr):
            return expr
        return z3.If(expr, z3.BitVecVal(1, bits, self.ctx), z3.BitVecVal(0, bits, self.ctx))

    @staticmethod
    def _unify_size(a: z3.BitVecRef, b: z3.BitVecRef, signed: bool = False):
        ext = z3.SignExt if signed else z3.ZeroExt
        if a.size() < b.size():
            a = ext(b.size() - a.size(), a)
        elif b.size() < a.size():
            b = ext(a.size() - b.size(), b)
        return a, b

    #
    # Translation
    #

    def get_or_create_z3_expr(self, expr: ail.Expression) -> z3.ExprRef:
        try:
            return self._cache[expr]
        except KeyError:
            pass
        r = self._convert(expr)
        self._cache[expr] = r
        l.debug("Translated %s into %s.", expr, r)
        return r

    def _convert(self, expr):
        if isinstance(expr, ail.Const):
            if expr.bits == 1:
                return z3.BoolVal(bool(expr.value), self.ctx)
            return z3.BitVecVal(expr.value, expr.bits, self.ctx)

        if isinstance(expr, (ail.Register, ail.Tmp)):
            name = str(expr)
            self._z3_to_ail.setdefault(name, expr)
            if expr.bits == 1:
                return z3.Bool(name, self.ctx)
            return z3.BitVec(name, expr.bits, self.ctx)

        if isinstance(expr, ail.Convert):
            return self._convert_Convert(expr)

        if isinstance(expr, ail.UnaryOp):
            operand = self.get_or_create_z3_expr(expr.operand)
            if expr.op == "Not":
                if z3.is_bool(operand):
                    return z3.Not(operand)
                return ~operand
            if expr.op == "Neg":
                return -self.bv_cast(operand)
            raise UnsupportedExpressionError(f"Unsupported unary operation {expr.op}. Consider implementing.")

        if isinstance(expr, ail.BinaryOp):
            return self._convert_BinaryOp(expr)

        raise UnsupportedExpressionError(f"Unsupported AIL expression type {type(expr)}. Consider implementing.")

    def _convert_Convert(self, expr: ail.Convert):
        operand = self.get_or_create_z3_expr(expr.operand)
        if expr.to_bits == 1:
            return self.bool_cast(operand)
        operand = self.bv_cast(operand, bits=expr.from_bits)
        if expr.to_bits < operand.size():
            return z3.Extract(expr.to_bits - 1, 0, operand)
        if expr.to_bits > operand.size():
            ext = z3.SignExt if expr.is_signed else z3.ZeroExt
            return ext(expr.to_bits - operand.size(), operand)
        return operand

    def _convert_BinaryOp(self, expr: ail.BinaryOp):
        op = expr.op
        a = self.get_or_create_z3_expr(expr.operands[0])
        b = self.get_or_create_z3_expr(expr.operands[1])

        if op == "LogicalAnd":
            return z3.And(self.bool_cast(a), self.bool_cast(b))
        if op == "LogicalOr":
            return z3.Or(self.bool_cast(a), self.bool_cast(b))

        if op in {"CmpEQ", "CmpNE"} and z3.is_bool(a) and z3.is_bool(b):
            return a == b if op == "CmpEQ" else a != b

        a, b = self._unify_size(self.bv_cast(a), self.bv_cast(b), signed=expr.signed)
        handler = (_SIGNED_BINOPS if expr.signed else _UNSIGNED_BINOPS).get(op, None)
        if handler is None:
            handler = _BINOPS.get(op, None)
        if handler is None:
            raise UnsupportedExpressionError(f"Unsupported binary operation {expr.verbose_op}. Consider implementing.")
        return handler(a, b)


_BINOPS = {
    "CmpEQ": lambda a, b: a == b,
    "CmpNE": lambda a, b: a != b,
    "Add": lambda a, b: a + b,
    "Sub": lambda a, b: a - b,
    "Mul": lambda a, b: a * b,
    "And": lambda a, b: a & b,
    "Or": lambda a, b: a | b,
    "Xor": lambda a, b: a ^ b,
    "Shl": lambda a, b: a << b,
    "Shr": z3.LShR,
    "Sar": lambda a, b: a >> b,
}

_UNSIGNED_BINOPS = {
    "CmpLT": z3.ULT,
    "CmpLE": z3.ULE,
    "CmpGT": z3.UGT,
    "CmpGE": z3.UGE,
    "Div": z3.UDiv,
    "Mod": z3.URem,
}

_SIGNED_BINOPS = {
    "CmpLT": lambda a, b: a < b,
    "CmpLE": lambda a, b: a <= b,
    "CmpGT": lambda a, b: a > b,
    "CmpGE": lambda a, b: a >= b,
    "Div": lambda a, b: a / b,
    "Mod": z3.SRem,
}
