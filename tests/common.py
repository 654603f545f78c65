# pylint:disable=missing-class-docstring
from __future__ import annotations
from itertools import count

import z3

from structrefine import ail
from structrefine.decompiler.structuring import SequenceNode, ConditionNode, LoopNode, BreakNode
from structrefine.decompiler.z3_converter import Z3Converter


_ctr = count(1)

X_OFFSET = 16
Y_OFFSET = 24


def reg(name="x", offset=X_OFFSET, bits=32):
    return ail.Register(next(_ctr), None, offset, bits, reg_name=name)


def const(value, bits=32):
    return ail.Const(next(_ctr), None, value, bits)


def cmp(op, lhs, rhs, signed=False):
    if isinstance(rhs, int):
        rhs = const(rhs, bits=lhs.bits)
    return ail.BinaryOp(next(_ctr), op, [lhs, rhs], signed)


def x_eq(value, bits=32):
    return cmp("CmpEQ", reg(bits=bits), value)


def true_cond():
    return const(1, bits=1)


def code(addr):
    """
    A leaf block that assigns its own address to y, so that executions can be told apart.
    """
    return ail.Block(addr, 4, statements=[ail.Assignment(next(_ctr), reg("y", Y_OFFSET), const(addr))])


def if_(addr, cond, else_addr=None):
    return ConditionNode(addr, cond, code(addr), false_node=code(else_addr) if else_addr is not None else None)


def seq(*nodes, addr=None):
    return SequenceNode(addr, nodes=list(nodes))


def loop(body, cond=None):
    return LoopNode("while", cond, body)


def brk(addr):
    return BreakNode(addr, None)


#
# Concrete execution
#


class Executor:
    """
    Runs a structured tree for a concrete value of x and records the addresses of the leaf blocks that run. Loops run
    their body once.
    """

    def __init__(self, bits=32):
        self.converter = Z3Converter()
        self.bits = bits

    def holds(self, cond, x_value: int) -> bool:
        x_name = str(reg(bits=self.bits))
        assert all(str(atom) == x_name for atom in cond.atoms()), f"Condition {cond} does not only depend on x"
        expr = self.converter.bool_cast(self.converter.get_or_create_z3_expr(cond))
        x = z3.BitVec(x_name, self.bits, self.converter.ctx)
        r = z3.simplify(z3.substitute(expr, (x, z3.BitVecVal(x_value, self.bits, self.converter.ctx))))
        return z3.is_true(r)

    def run(self, node, x_value: int) -> list[int]:
        trace = []
        self._run(node, x_value, trace)
        return trace

    def _run(self, node, x_value, trace):
        if node is None:
            return
        if isinstance(node, ail.Block):
            if node.statements:
                trace.append(node.addr)
        elif isinstance(node, SequenceNode):
            for n in node.nodes:
                self._run(n, x_value, trace)
        elif isinstance(node, ConditionNode):
            if self.holds(node.condition, x_value):
                self._run(node.true_node, x_value, trace)
            else:
                self._run(node.false_node, x_value, trace)
        elif isinstance(node, LoopNode):
            self._run(node.sequence_node, x_value, trace)
        elif isinstance(node, BreakNode):
            trace.append(("break", node.addr))
        else:
            raise TypeError(f"Unsupported node {node!r}")


def else_if_chain(node: ConditionNode) -> list:
    """
    Flatten an if / else if / else cascade into the list of its branches. Each entry is (condition, true node), and
    a trailing unconditional else branch is (None, else node).
    """
    chain = []
    while True:
        chain.append((node.condition, node.true_node))
        if type(node.false_node) is ConditionNode:
            node = node.false_node
            continue
        if node.false_node is not None:
            chain.append((None, node.false_node))
        return chain
