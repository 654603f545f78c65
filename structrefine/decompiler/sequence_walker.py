# pylint:disable=unused-argument,useless-return
from __future__ import annotations

from ..ail import Block
from ..errors import UnsupportedNodeTypeError
from .structuring.structurer_nodes import SequenceNode, ConditionNode, LoopNode, BreakNode


class SequenceWalker:
    """
    Walks a SequenceNode and all its nodes, recursively.

    Each handler returns either None, meaning the node is unchanged, or a new node that replaces the one it was given.
    """

    def __init__(
        self,
        handlers=None,
        exception_on_unsupported=False,
        update_seqnode_in_place=True,
        force_forward_scan: bool = False,
    ):
        self._update_seqnode_in_place = update_seqnode_in_place
        self._exception_on_unsupported = exception_on_unsupported
        self._force_forward_scan = force_forward_scan

        if self._force_forward_scan and self._update_seqnode_in_place:
            raise TypeError("force_forward_scan and update_seqnode_in_place cannot be enabled at the same time")

        default_handlers = {
            SequenceNode: self._handle_Sequence,
            ConditionNode: self._handle_Condition,
            LoopNode: self._handle_Loop,
            BreakNode: self._handle_Noop,
            Block: self._handle_Noop,
        }

        self._handlers = default_handlers
        if handlers:
            self._handlers.update(handlers)

    def walk(self, sequence):
        return self._handle(sequence)

    #
    # Handlers
    #

    def _handle(self, node, **kwargs):
        handler = self._handlers.get(node.__class__, None)
        if handler is not None:
            return handler(node, **kwargs)
        if self._exception_on_unsupported:
            raise UnsupportedNodeTypeError(f"Node type {type(node)} is not supported yet.")
        return None

    def _handle_Sequence(self, node: SequenceNode, **kwargs):
        nodes_copy = list(node.nodes)
        changed = False

        if self._force_forward_scan:
            for i, node_ in enumerate(nodes_copy):
                new_node = self._handle(node_, parent=node, index=i)
                if new_node is not None:
                    changed = True
                    nodes_copy[i] = new_node
        else:
            # iterate backwards so that handlers may insert nodes into the parent without invalidating `i`
            i = len(nodes_copy) - 1
            while i > -1:
                node_ = nodes_copy[i]
                new_node = self._handle(node_, parent=node, index=i)
                if new_node is not None:
                    changed = True
                    if self._update_seqnode_in_place:
                        node.nodes[i] = new_node
                    else:
                        nodes_copy[i] = new_node
                i -= 1

        if not changed:
            return None
        if self._update_seqnode_in_place:
            return node
        return SequenceNode(node.addr, nodes=nodes_copy)

    def _handle_Loop(self, node: LoopNode, **kwargs) -> LoopNode | None:
        seq_node = self._handle(node.sequence_node, parent=node, label="body", index=0)
        if seq_node is not None:
            return LoopNode(node.sort, node.condition, seq_node, addr=node.addr)
        return None

    def _handle_Condition(self, node: ConditionNode, **kwargs):
        new_true_node = self._handle(node.true_node, parent=node, index=0) if node.true_node is not None else None

        new_false_node = self._handle(node.false_node, parent=node, index=1) if node.false_node is not None else None

        if new_true_node is None and new_false_node is None:
            return None

        return ConditionNode(
            node.addr,
            node.condition,
            node.true_node if new_true_node is None else new_true_node,
            false_node=node.false_node if new_false_node is None else new_false_node,
        )

    def _handle_Noop(self, *args, **kwargs):  # pylint:disable=no-self-use
        return None
