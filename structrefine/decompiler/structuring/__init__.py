from .structurer_nodes import BaseNode, SequenceNode, ConditionNode, LoopNode, BreakNode


__all__ = (
    "BaseNode",
    "BreakNode",
    "ConditionNode",
    "LoopNode",
    "SequenceNode",
)
