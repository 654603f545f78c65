from __future__ import annotations
from collections.abc import Sequence
import logging

import z3

from ...errors import ProverInconsistencyError

l = logging.getLogger(name=__name__)


DEFAULT_TACTICS = ("simplify", "bit-blast", "sat")


class ConditionProver:
    """
    Proves facts about z3 boolean formulas by refutation: a claim is proved when the tactic pipeline decides that its
    negation is unsatisfiable. Anything short of that, including timeouts and undecided goals, is "not proved".

    :ivar queries:  Number of proof attempts.
    :ivar proved:   Number of proof attempts that succeeded.
    :ivar unknown:  Number of proof attempts that neither succeeded nor were refuted.
    """

    def __init__(self, ctx: z3.Context | None = None, timeout: int | None = None, tactics: Sequence[str] | None = None):
        self.ctx = ctx if ctx is not None else z3.Context()
        self.timeout = timeout
        self.tactics = tuple(tactics) if tactics else DEFAULT_TACTICS

        tactic = z3.Then(*self.tactics, ctx=self.ctx) if len(self.tactics) > 1 else z3.Tactic(self.tactics[0], self.ctx)
        if timeout:
            tactic = z3.TryFor(tactic, timeout, ctx=self.ctx)
        self._tactic = tactic

        self.queries = 0
        self.proved = 0
        self.unknown = 0

    def prove(self, expr: z3.BoolRef) -> bool:
        self.queries += 1

        goal = z3.Goal(ctx=self.ctx)
        goal.add(z3.simplify(z3.Not(expr)))
        try:
            app = self._tactic(goal)
        except z3.Z3Exception as ex:
            # timeouts and tactics that give up both end up here
            l.warning("Cannot decide %s: %s. Treat it as not proved.", expr, ex)
            self.unknown += 1
            return False

        if len(app) != 1:
            raise ProverInconsistencyError(f"Unexpected multiple goals in application: got {len(app)} sub-goals.")

        subgoal = app[0]
        if subgoal.inconsistent():
            self.proved += 1
            return True
        if len(subgoal) != 0:
            # the goal is neither refuted nor reduced to an empty (satisfiable) goal
            l.debug("Undecided sub-goal %s.", subgoal)
            self.unknown += 1
        return False

    def is_unsatisfiable(self, expr: z3.BoolRef) -> bool:
        return self.prove(z3.Not(expr))

    def is_tautology(self, expr: z3.BoolRef) -> bool:
        return self.prove(expr)

    #
    # Predicates used for cascade detection
    #

    def mutually_exclusive(self, cond: z3.BoolRef, conds: Sequence[z3.BoolRef]) -> bool:
        """
        Can `cond` never hold together with any of `conds`?
        """
        if not conds:
            return True
        return self.is_unsatisfiable(z3.And(cond, z3.Or(*conds)))

    def exhaustive(self, conds: Sequence[z3.BoolRef]) -> bool:
        """
        Does at least one of `conds` always hold?
        """
        if not conds:
            return False
        return self.is_tautology(z3.Or(*conds))
