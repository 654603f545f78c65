from .structuring import BaseNode, SequenceNode, ConditionNode, LoopNode, BreakNode
from .sequence_walker import SequenceWalker
from .z3_converter import Z3Converter
from .decompilation_options import options, options_by_category
from .region_simplifiers import ConditionProver, ReachBasedRefiner, refine_until_fixpoint
from . import structuring
from . import region_simplifiers


__all__ = (
    "BaseNode",
    "BreakNode",
    "ConditionNode",
    "ConditionProver",
    "LoopNode",
    "ReachBasedRefiner",
    "SequenceNode",
    "SequenceWalker",
    "Z3Converter",
    "options",
    "options_by_category",
    "refine_until_fixpoint",
    "region_simplifiers",
    "structuring",
)
