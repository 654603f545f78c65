# pylint:disable=unused-argument
from __future__ import annotations
from collections.abc import Sequence
import logging

import z3

from ..structuring.structurer_nodes import SequenceNode, ConditionNode
from ..sequence_walker import SequenceWalker
from ..z3_converter import Z3Converter
from ..utils import DELETED, create_condition_node, create_sequence_node, replace_children
from ..decompilation_options import params_from_options
from .condition_prover import ConditionProver

l = logging.getLogger(name=__name__)


class ConditionExtractor:
    """
    Gets the simplified z3 form of the condition of a ConditionNode.
    """

    def __init__(self, converter: Z3Converter):
        self.converter = converter

    def extract(self, cond_node: ConditionNode) -> z3.BoolRef:
        expr = self.converter.get_or_create_z3_expr(cond_node.condition)
        return z3.simplify(self.converter.bool_cast(expr))


class CascadeRun:
    """
    A group of sibling ConditionNodes that can be chained into one if / else if / else cascade.

    :ivar stmts:        The condition nodes, in scanning order (the last node in the source comes first).
    :ivar conds:        z3 forms of their conditions, in the same order.
    :ivar exhaustive:   Whether the conditions are proved to cover all cases.
    """

    __slots__ = (
        "stmts",
        "conds",
        "exhaustive",
    )

    def __init__(self, stmts: list[ConditionNode], conds: list[z3.BoolRef], exhaustive: bool = False):
        self.stmts = stmts
        self.conds = conds
        self.exhaustive = exhaustive

    def __len__(self):
        return len(self.stmts)

    def __repr__(self):
        return f"<CascadeRun of {len(self.stmts)} nodes{', exhaustive' if self.exhaustive else ''}>"


class CascadeDetector:
    """
    Scans sibling ConditionNodes backwards and groups the ones whose conditions are pairwise mutually exclusive.

    A group is closed when the next (earlier) node has an else branch or a condition that overlaps with the group, and
    when the conditions of the group already cover every case. Only groups of at least two nodes are eligible. A node
    with an else branch never joins a group: its else branch runs whenever its condition is false, which an else-if
    chain cannot express.
    """

    def __init__(self, prover: ConditionProver, extractor: ConditionExtractor, collect_all_runs: bool = True):
        self.prover = prover
        self.extractor = extractor
        self.collect_all_runs = collect_all_runs

    def detect(self, cond_nodes: Sequence[ConditionNode]) -> tuple[list[ConditionNode], bool]:
        """
        Find the run that is still open when the scan stops.

        :param cond_nodes:  Condition nodes in source order.
        :return:            A tuple of (the run in scanning order, whether the run is eligible for collapsing).
        """
        run = self._scan(cond_nodes, None)
        return run.stmts, len(run) >= 2

    def detect_all(self, cond_nodes: Sequence[ConditionNode]) -> list[CascadeRun]:
        """
        Find all eligible runs among `cond_nodes`, in scanning order. Runs never overlap.

        With `collect_all_runs` disabled, this is the run of detect(), if it is eligible.
        """
        if not self.collect_all_runs:
            runs = [self._scan(cond_nodes, None)]
        else:
            runs = []
            self._scan(cond_nodes, runs)

        runs = [run for run in runs if len(run) >= 2]
        for run in runs:
            l.debug("Found %r: %s.", run, ", ".join(str(c) for c in reversed(run.conds)))
        return runs

    def _scan(self, cond_nodes: Sequence[ConditionNode], closed_runs: list[CascadeRun] | None) -> CascadeRun:
        """
        The backward scan. When `closed_runs` is None, the scan stops at the first exhaustive run and earlier runs are
        discarded. Otherwise every closed run is appended to `closed_runs`, and the scan goes on with a new run.

        :return:    The last run.
        """
        stmts: list[ConditionNode] = []
        conds: list[z3.BoolRef] = []

        for stmt in reversed(cond_nodes):
            if self.prover.exhaustive(conds):
                if closed_runs is None:
                    return CascadeRun(stmts, conds, exhaustive=True)
                closed_runs.append(CascadeRun(stmts, conds, exhaustive=True))
                stmts, conds = [], []

            if stmt.has_else:
                if closed_runs is not None and stmts:
                    closed_runs.append(CascadeRun(stmts, conds))
                stmts, conds = [], []
                continue

            cond = self.extractor.extract(stmt)
            if not self.prover.mutually_exclusive(cond, conds):
                if closed_runs is not None:
                    closed_runs.append(CascadeRun(stmts, conds))
                stmts, conds = [], []

            stmts.append(stmt)
            conds.append(cond)

        # the exhaustiveness of the last run has not been checked after its last node was added
        run = CascadeRun(stmts, conds, exhaustive=len(stmts) >= 2 and self.prover.exhaustive(conds))
        if closed_runs is not None:
            closed_runs.append(run)
        return run


class CascadeBuilder:
    """
    Chains the ConditionNodes of a run into an if / else if / else cascade.
    """

    def build(self, run: CascadeRun, substitutions: dict) -> ConditionNode:
        """
        Record the substitutions that turn `run` into a cascade: the first node (in source order) is replaced by the
        head of the cascade and all other nodes are deleted.

        The condition of the last node is dropped only when the run is exhaustive, since otherwise falling through all
        other conditions does not imply it.

        :return:    The head of the cascade.
        """

        stmts = list(reversed(run.stmts))
        assert len(stmts) >= 2

        first, last = stmts[0], stmts[-1]
        head = create_condition_node(first.condition, first.true_node, addr=first.addr)
        substitutions[first] = head

        sub = head
        for stmt in stmts[1:-1]:
            elif_ = create_condition_node(stmt.condition, stmt.true_node, addr=stmt.addr)
            sub.false_node = elif_
            sub = elif_
            substitutions[stmt] = DELETED

        if run.exhaustive:
            sub.false_node = create_sequence_node([last.true_node], addr=last.addr)
        else:
            sub.false_node = create_condition_node(last.condition, last.true_node, addr=last.addr)
        substitutions[last] = DELETED

        return head


class BlockRewriter(SequenceWalker):
    """
    Rewrites every SequenceNode of a tree, bottom-up, by collapsing runs of sibling ConditionNodes into cascades.

    Every rewritten SequenceNode is returned to its parent as a new node, and recorded in `substitutions` as the
    replacement of the original one.
    """

    def __init__(
        self,
        detector: CascadeDetector,
        builder: CascadeBuilder,
        substitutions: dict | None = None,
        contiguous_runs_only: bool = True,
    ):
        super().__init__(update_seqnode_in_place=False, force_forward_scan=True)
        self.detector = detector
        self.builder = builder
        self.substitutions = substitutions if substitutions is not None else {}
        self.contiguous_runs_only = contiguous_runs_only
        self.cascades = 0

    def _handle_Sequence(self, node: SequenceNode, **kwargs):
        new_node = super()._handle_Sequence(node, **kwargs)
        seq = new_node if new_node is not None else node

        for cond_nodes in self._condition_node_groups(seq):
            for run in self.detector.detect_all(cond_nodes):
                head = self.builder.build(run, self.substitutions)
                self.cascades += 1
                if l.isEnabledFor(logging.DEBUG):
                    l.debug("Built a cascade of %d nodes:\n%s", len(run), head.dbg_repr())

        rebuilt = seq.copy()
        if replace_children(rebuilt, self.substitutions):
            self.substitutions[node] = rebuilt
            return rebuilt
        if new_node is not None:
            self.substitutions[node] = new_node
        return new_node

    def _condition_node_groups(self, seq: SequenceNode) -> list[list[ConditionNode]]:
        if not self.contiguous_runs_only:
            return [[n for n in seq.nodes if type(n) is ConditionNode]]

        groups = []
        group = []
        for n in seq.nodes:
            if type(n) is ConditionNode:
                group.append(n)
                continue
            if len(group) >= 2:
                groups.append(group)
            group = []
        if len(group) >= 2:
            groups.append(group)
        return groups


class ReachBasedRefiner:
    """
    Reachability-based refinement. Collapses sequences of independent if statements into if / else if / else cascades
    when the conditions of the if statements are proved to be mutually exclusive.

    The refinement runs upon construction. Results are available in `result` (the refined root node) and `changed`.
    """

    def __init__(
        self,
        root,
        solver_timeout: int | None = 5000,
        solver_tactics: Sequence[str] | None = None,
        collect_all_runs: bool = True,
        contiguous_runs_only: bool = True,
        options: list | None = None,
    ):
        params = {
            "solver_timeout": solver_timeout,
            "solver_tactics": solver_tactics,
            "collect_all_runs": collect_all_runs,
            "contiguous_runs_only": contiguous_runs_only,
        }
        if options:
            params.update(params_from_options(options, "reach_based_refiner"))

        self._ctx = z3.Context()
        self.converter = Z3Converter(ctx=self._ctx)
        self.prover = ConditionProver(ctx=self._ctx, timeout=params["solver_timeout"], tactics=params["solver_tactics"])
        self._collect_all_runs = params["collect_all_runs"]
        self._contiguous_runs_only = params["contiguous_runs_only"]

        self.result = root
        self.changed = False
        self.cascades = 0
        self.substitutions = {}

        self.run(root)

    def run(self, root) -> bool:
        l.info("Reachability-based refinement")
        # translations are only reused within a single tree
        self.converter.clear()

        extractor = ConditionExtractor(self.converter)
        detector = CascadeDetector(self.prover, extractor, collect_all_runs=self._collect_all_runs)
        rewriter = BlockRewriter(
            detector, CascadeBuilder(), substitutions={}, contiguous_runs_only=self._contiguous_runs_only
        )

        r = rewriter.walk(root)
        self.substitutions = rewriter.substitutions
        self.cascades = rewriter.cascades
        self.changed = r is not None
        self.result = r if r is not None else root

        l.debug(
            "Built %d cascades over %d variables with %d proof attempts (%d proved, %d unknown).",
            self.cascades,
            len(self.converter.variable_mapping),
            self.prover.queries,
            self.prover.proved,
            self.prover.unknown,
        )
        return self.changed


def refine_until_fixpoint(root, max_iterations: int = 8, options: list | None = None, **kwargs):
    """
    Run reachability-based refinement on `root` until it stops changing.

    :return:    A tuple of (the refined root, the number of iterations that changed the tree).
    """

    if options:
        max_iterations = params_from_options(options, "fixpoint").get("max_iterations", max_iterations)

    refiner = ReachBasedRefiner(root, options=options, **kwargs)
    iterations = 0
    while refiner.changed:
        iterations += 1
        root = refiner.result
        if iterations >= max_iterations:
            l.warning("Reachability-based refinement did not converge after %d iterations.", max_iterations)
            break
        refiner.run(root)

    return root, iterations
