from __future__ import annotations
import logging

from ..ail import Block
from .structuring.structurer_nodes import BaseNode, SequenceNode, ConditionNode, LoopNode

_l = logging.getLogger(__name__)


class _DeletedNode:
    """
    Substitution target meaning "remove this node from its parent".
    """

    __slots__ = ()

    def __repr__(self):
        return "<DELETED>"


DELETED = _DeletedNode()


def create_condition_node(condition, true_node, false_node=None, addr=None) -> ConditionNode:
    return ConditionNode(addr, condition, true_node, false_node=false_node)


def create_sequence_node(nodes, addr=None) -> SequenceNode:
    return SequenceNode(addr, nodes=list(nodes))


def _substitute(node, substitutions: dict):
    """
    Look up the substitution for a single child. Returns a tuple of (changed, new child), where the new child is
    DELETED when the child should be removed.
    """
    if node is None or node not in substitutions:
        return False, node
    return True, substitutions[node]


def replace_children(node, substitutions: dict) -> bool:
    """
    Replace the direct children of `node` in place, according to `substitutions`. Keys are the original children;
    values are their replacements, or DELETED to remove them. Keys are compared by identity since structurer nodes do
    not define equality.

    :return:    True if any child was replaced or removed.
    """

    if not substitutions:
        return False

    if type(node) is SequenceNode:
        changed = False
        new_nodes = []
        for child in node.nodes:
            replaced, new_child = _substitute(child, substitutions)
            changed |= replaced
            if new_child is not DELETED:
                new_nodes.append(new_child)
        if changed:
            node.nodes = new_nodes
        return changed

    if type(node) is ConditionNode:
        r_true, new_true = _substitute(node.true_node, substitutions)
        r_false, new_false = _substitute(node.false_node, substitutions)
        if r_true:
            node.true_node = SequenceNode(None) if new_true is DELETED else new_true
        if r_false:
            node.false_node = None if new_false is DELETED else new_false
        return r_true or r_false

    if type(node) is LoopNode:
        replaced, new_body = _substitute(node.sequence_node, substitutions)
        if replaced:
            node.sequence_node = SequenceNode(None) if new_body is DELETED else new_body
        return replaced

    if isinstance(node, (Block, BaseNode)):
        # leaf nodes
        return False

    _l.warning("Unsupported node type %s in replace_children().", type(node))
    return False
