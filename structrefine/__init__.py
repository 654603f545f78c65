# pylint: disable=wrong-import-position
from __future__ import annotations

__version__ = "0.1.0"

# let's set up some bootstrap logging
import logging

logging.getLogger("structrefine").addHandler(logging.NullHandler())
from .misc.loggers import Loggers

loggers = Loggers()
del Loggers
del logging

from . import ail
from . import errors
from .errors import StructRefineError, ProverInconsistencyError, UnsupportedExpressionError
from .decompiler import (
    SequenceNode,
    ConditionNode,
    LoopNode,
    BreakNode,
    Z3Converter,
    ConditionProver,
    ReachBasedRefiner,
    refine_until_fixpoint,
)

# now that we have everything loaded, re-grab the list of loggers
loggers.load_all_loggers()


__all__ = (
    "BreakNode",
    "ConditionNode",
    "ConditionProver",
    "LoopNode",
    "ProverInconsistencyError",
    "ReachBasedRefiner",
    "SequenceNode",
    "StructRefineError",
    "UnsupportedExpressionError",
    "Z3Converter",
    "ail",
    "errors",
    "loggers",
    "refine_until_fixpoint",
)
