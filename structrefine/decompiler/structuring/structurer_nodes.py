# pylint:disable=missing-class-docstring
from __future__ import annotations

from ...ail import Block


INDENT_DELTA = 2


class BaseNode:
    __slots__ = ()

    @staticmethod
    def test_empty_node(node):
        if node is None:
            return True
        if type(node) is Block:
            return not node.statements
        if type(node) is SequenceNode:
            return all(BaseNode.test_empty_node(n) for n in node.nodes)
        # unsupported node type. probably not empty?
        return False

    def dbg_repr(self, indent=0):
        return " " * indent + repr(self)


class SequenceNode(BaseNode):
    __slots__ = (
        "addr",
        "nodes",
    )

    def __init__(self, addr: int | None, nodes=None):
        self.addr = addr
        self.nodes = nodes if nodes is not None else []

    def __repr__(self):
        if self.addr is None:
            return f"<SequenceNode, {len(self.nodes)} nodes>"
        return f"<SequenceNode {self.addr:#x}, {len(self.nodes)} nodes>"

    def copy(self):
        return SequenceNode(self.addr, nodes=self.nodes[::])

    def dbg_repr(self, indent=0):
        return "\n".join(node.dbg_repr(indent=indent) for node in self.nodes)


class ConditionNode(BaseNode):
    __slots__ = (
        "addr",
        "condition",
        "true_node",
        "false_node",
    )

    def __init__(self, addr, condition, true_node, false_node=None):
        self.addr = addr
        self.condition = condition
        self.true_node = true_node
        self.false_node = false_node

    @property
    def has_else(self) -> bool:
        return not BaseNode.test_empty_node(self.false_node)

    def dbg_repr(self, indent=0):
        indent_str = indent * " "
        s = f"{indent_str}if ({self.condition})\n{indent_str}{{\n"
        s += self.true_node.dbg_repr(indent + INDENT_DELTA) + "\n"
        s += f"{indent_str}}}"
        if self.false_node is not None:
            if type(self.false_node) is ConditionNode:
                # else-if chains stay flat
                s += f"\n{indent_str}else " + self.false_node.dbg_repr(indent).lstrip()
            else:
                s += f"\n{indent_str}else\n{indent_str}{{\n"
                s += self.false_node.dbg_repr(indent + INDENT_DELTA) + "\n"
                s += f"{indent_str}}}"
        return s

    def __repr__(self):
        if self.addr is not None:
            return f"<ConditionNode {self.addr:#x}>"
        return f"<ConditionNode ({self.true_node!r}|{self.false_node!r})>"


class LoopNode(BaseNode):
    __slots__ = (
        "sort",
        "condition",
        "sequence_node",
        "_addr",
    )

    def __init__(self, sort, condition, sequence_node, addr=None):
        self.sort = sort
        self.condition = condition
        self.sequence_node = sequence_node
        self._addr = addr

    @property
    def addr(self):
        if self._addr is None:
            return self.sequence_node.addr
        return self._addr

    def dbg_repr(self, indent=0):
        indent_str = indent * " "
        cond = "true" if self.condition is None else str(self.condition)
        if self.sort == "do-while":
            head, tail = f"{indent_str}do\n", f"{indent_str}}} while ({cond});"
        else:
            head, tail = f"{indent_str}while ({cond})\n", f"{indent_str}}}"
        return head + f"{indent_str}{{\n" + self.sequence_node.dbg_repr(indent + INDENT_DELTA) + "\n" + tail

    def __repr__(self):
        return f"<LoopNode {self.sort}>"


class BreakNode(BaseNode):
    __slots__ = (
        "addr",
        "target",
    )

    def __init__(self, addr, target):
        self.addr = addr
        self.target = target

    def dbg_repr(self, indent=0):
        return " " * indent + "break;"

    def __repr__(self):
        return f"<BreakNode {self.addr:#x}>"
