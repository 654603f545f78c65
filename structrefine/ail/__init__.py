from .block import Block
from . import statement as Stmt
from . import expression as Expr
from .statement import Assignment, Return
from .expression import Expression, Const, Tmp, Register, UnaryOp, Convert, BinaryOp


__all__ = [
    "Block",
    "Stmt",
    "Expr",
    "Assignment",
    "Return",
    "Expression",
    "Const",
    "Tmp",
    "Register",
    "UnaryOp",
    "Convert",
    "BinaryOp",
]
