from .condition_prover import ConditionProver
from .reach_based_refiner import (
    ConditionExtractor,
    CascadeRun,
    CascadeDetector,
    CascadeBuilder,
    BlockRewriter,
    ReachBasedRefiner,
    refine_until_fixpoint,
)


__all__ = (
    "BlockRewriter",
    "CascadeBuilder",
    "CascadeDetector",
    "CascadeRun",
    "ConditionExtractor",
    "ConditionProver",
    "ReachBasedRefiner",
    "refine_until_fixpoint",
)
