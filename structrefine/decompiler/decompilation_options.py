# refinement options
from __future__ import annotations
from typing import Any
from collections.abc import Callable
from collections import defaultdict

from ..errors import InvalidOptionError


class DecompilationOption:
    """
    Describes a decompilation option.
    """

    def __init__(
        self,
        name,
        description,
        value_type,
        cls,
        param,
        value_range=None,
        category="General",
        default_value=None,
        candidate_values: list | None = None,
        convert: Callable | None = None,
    ):
        self.NAME = name
        self.DESCRIPTION = description
        self.value_type = value_type
        self.cls = cls
        self.param = param
        self.value_range = value_range
        self.category = category
        self.default_value = default_value
        self.candidate_values = candidate_values
        self.convert = convert

    def __repr__(self):
        return f"<DecOption [{self.category}] {self.NAME} ({self.cls}.{self.param})>"

    def validate(self, value):
        """
        Convert and check a value for this option.

        :return:    The converted value.
        """
        if self.convert is not None:
            value = self.convert(value)
        if not isinstance(value, self.value_type):
            raise InvalidOptionError(f"Option {self.NAME!r} expects {self.value_type}, got {value!r}.")
        if self.value_range is not None and value not in self.value_range:
            raise InvalidOptionError(f"Option {self.NAME!r} value {value!r} is out of range.")
        if self.candidate_values is not None and value not in self.candidate_values:
            raise InvalidOptionError(f"Option {self.NAME!r} value {value!r} is not one of {self.candidate_values}.")
        return value


O = DecompilationOption

options = [
    O(
        "Solver timeout (ms)",
        "Maximum time the SMT solver may spend on a single proof attempt. A proof attempt that times out is treated "
        "as failed, so the statements involved are left alone. Set to 0 to disable the limit.",
        int,
        "reach_based_refiner",
        "solver_timeout",
        value_range=range(0, 3_600_001),
        category="Solver",
        default_value=5000,
    ),
    O(
        "Solver tactics",
        "Names of the z3 tactics that are chained to decide each proof goal. The chain must turn a goal into exactly "
        "one sub-goal.",
        tuple,
        "reach_based_refiner",
        "solver_tactics",
        category="Solver",
        default_value=("simplify", "bit-blast", "sat"),
        convert=lambda v: tuple(v.split(",")) if isinstance(v, str) else tuple(v),
    ),
    O(
        "Collect all if-else cascades in a sequence",
        "Create every cascade that can be found in a sequence of if statements, instead of only the one that ends the "
        "sequence.",
        bool,
        "reach_based_refiner",
        "collect_all_runs",
        category="Structuring",
        default_value=True,
    ),
    O(
        "Only chain adjacent if statements",
        "Only if statements that directly follow each other may be chained. Disabling this option allows chaining if "
        "statements across other statements, which moves the chained branches before those statements.",
        bool,
        "reach_based_refiner",
        "contiguous_runs_only",
        category="Structuring",
        default_value=True,
    ),
    O(
        "Maximum refinement iterations",
        "Maximum number of times reachability-based refinement is re-run on a tree until it stops changing.",
        int,
        "fixpoint",
        "max_iterations",
        value_range=range(1, 1025),
        category="Structuring",
        default_value=8,
    ),
]

options_by_category = defaultdict(list)
for o in options:
    options_by_category[o.category].append(o)


def get_option(param: str) -> DecompilationOption:
    for o in options:
        if o.param == param:
            return o
    raise InvalidOptionError(f"Unknown option {param!r}.")


def params_from_options(option_values: list[tuple[DecompilationOption | str, Any]], cls: str) -> dict[str, Any]:
    """
    Turn a list of (option, value) pairs into keyword arguments for the class or pass named `cls`. Options for other
    classes are ignored. Options may be given by their parameter names.
    """
    params = {}
    for option, value in option_values:
        if isinstance(option, str):
            option = get_option(option)
        if option.cls != cls:
            continue
        params[option.param] = option.validate(value)
    return params
