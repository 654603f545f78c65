#!/usr/bin/env python3
# pylint: disable=missing-class-docstring,no-self-use
from __future__ import annotations

import unittest

from structrefine.decompiler.structuring import SequenceNode, ConditionNode, LoopNode
from structrefine.decompiler.region_simplifiers import (
    ReachBasedRefiner,
    ConditionExtractor,
    CascadeDetector,
    CascadeBuilder,
    ConditionProver,
    refine_until_fixpoint,
)
from structrefine.decompiler.z3_converter import Z3Converter
from structrefine.decompiler.decompilation_options import get_option
from structrefine.decompiler.utils import DELETED
from structrefine.errors import InvalidOptionError

from tests.common import reg, cmp, x_eq, true_cond, code, if_, seq, loop, Executor, else_if_chain


# values of x that hit every branch of the trees below, and some that hit none
X_VALUES = [0, 1, 2, 3, 4, 5, 6, 9, 0x7FFFFFFF, -1, -5]


def three_exclusive():
    return seq(if_(0x10, x_eq(1)), if_(0x20, x_eq(2)), if_(0x30, x_eq(3)))


def three_exhaustive():
    return seq(
        if_(0x10, cmp("CmpLT", reg(), 0, signed=True)),
        if_(0x20, x_eq(0)),
        if_(0x30, cmp("CmpGT", reg(), 0, signed=True)),
    )


def else_in_the_middle():
    return seq(
        if_(0x10, x_eq(1)),
        if_(0x20, x_eq(2)),
        if_(0x30, x_eq(3), else_addr=0x38),
        if_(0x40, x_eq(4)),
        if_(0x50, x_eq(5)),
    )


class TestReachBasedRefiner(unittest.TestCase):
    def _assert_same_behavior(self, original, refined, ordered=True):
        executor = Executor()
        for v in X_VALUES:
            before, after = executor.run(original, v), executor.run(refined, v)
            if not ordered:
                before, after = sorted(before), sorted(after)
            assert before == after, f"Different branches are taken for x = {v}"

    def test_non_exhaustive_run_keeps_the_last_guard(self):
        root = three_exclusive()
        r = ReachBasedRefiner(root)

        assert r.changed
        assert r.cascades == 1
        assert type(r.result) is SequenceNode
        assert len(r.result.nodes) == 1

        chain = else_if_chain(r.result.nodes[0])
        assert len(chain) == 3
        for (cond, body), old in zip(chain, root.nodes):
            assert cond is old.condition
            assert body is old.true_node

        self._assert_same_behavior(root, r.result)
        assert "else if" in r.result.dbg_repr()

    def test_exhaustive_run_drops_the_last_guard(self):
        root = three_exhaustive()
        r = ReachBasedRefiner(root)

        assert r.changed
        chain = else_if_chain(r.result.nodes[0])
        assert [cond for cond, _ in chain[:2]] == [root.nodes[0].condition, root.nodes[1].condition]
        last_cond, last_body = chain[2]
        assert last_cond is None
        assert type(last_body) is SequenceNode
        assert last_body.nodes == [root.nodes[2].true_node]

        self._assert_same_behavior(root, r.result)

    def test_complementary_pair(self):
        root = seq(if_(0x10, x_eq(0)), if_(0x20, cmp("CmpNE", reg(), 0)))
        r = ReachBasedRefiner(root)

        chain = else_if_chain(r.result.nodes[0])
        assert len(chain) == 2
        assert chain[1][0] is None
        self._assert_same_behavior(root, r.result)

    def test_catch_all_condition_stays_separate(self):
        root = seq(if_(0x10, x_eq(1)), if_(0x20, x_eq(2)), if_(0x30, x_eq(3)), if_(0x40, true_cond()))
        r = ReachBasedRefiner(root)

        assert r.changed
        assert len(r.result.nodes) == 2
        assert r.result.nodes[1] is root.nodes[3]
        chain = else_if_chain(r.result.nodes[0])
        assert len(chain) == 3
        assert chain[2][0] is root.nodes[2].condition
        self._assert_same_behavior(root, r.result)

    def test_overlapping_conditions(self):
        for root in [
            seq(if_(0x10, x_eq(1)), if_(0x20, x_eq(1))),
            seq(if_(0x10, cmp("CmpGT", reg(), 0)), if_(0x20, cmp("CmpGT", reg(), 5))),
        ]:
            r = ReachBasedRefiner(root)
            assert not r.changed
            assert r.result is root
            assert not r.substitutions
            assert r.cascades == 0

    def test_else_branch_splits_runs(self):
        root = else_in_the_middle()
        r = ReachBasedRefiner(root)

        assert r.cascades == 2
        assert len(r.result.nodes) == 3
        assert r.result.nodes[1] is root.nodes[2]
        assert [c for c, _ in else_if_chain(r.result.nodes[0])] == [root.nodes[0].condition, root.nodes[1].condition]
        assert [c for c, _ in else_if_chain(r.result.nodes[2])] == [root.nodes[3].condition, root.nodes[4].condition]
        self._assert_same_behavior(root, r.result)

    def test_else_branch_is_never_chained(self):
        root = seq(if_(0x10, x_eq(1), else_addr=0x18), if_(0x20, x_eq(2)))
        r = ReachBasedRefiner(root)
        assert not r.changed

    def test_single_run_mode(self):
        # only the run that is still open when the scan ends is collapsed
        root = else_in_the_middle()
        r = ReachBasedRefiner(root, collect_all_runs=False)

        assert r.cascades == 1
        assert len(r.result.nodes) == 4
        assert r.result.nodes[1:] == root.nodes[2:]
        assert len(else_if_chain(r.result.nodes[0])) == 2
        self._assert_same_behavior(root, r.result)

    def test_minimum_run_size(self):
        root = seq(if_(0x10, x_eq(1)), code(0x18))
        r = ReachBasedRefiner(root)
        assert not r.changed
        assert r.result is root

    def test_non_contiguous_conditions(self):
        root = seq(if_(0x10, x_eq(1)), code(0x18), if_(0x20, x_eq(2)))

        r = ReachBasedRefiner(root)
        assert not r.changed

        r = ReachBasedRefiner(root, contiguous_runs_only=False)
        assert r.changed
        assert len(r.result.nodes) == 2
        assert type(r.result.nodes[0]) is ConditionNode
        assert r.result.nodes[1] is root.nodes[1]
        # the guards only read x, so moving the second branch before the block does not change what runs
        self._assert_same_behavior(root, r.result, ordered=False)

    def test_nested_sequences(self):
        inner_loop = seq(if_(0x10, x_eq(1)), if_(0x20, x_eq(2)))
        inner_cond = seq(if_(0x30, x_eq(3)), if_(0x40, x_eq(4)), if_(0x50, x_eq(5)))
        root = seq(
            loop(inner_loop),
            ConditionNode(0x60, cmp("CmpNE", reg(), 0), inner_cond),
            code(0x70),
        )
        r = ReachBasedRefiner(root)

        assert r.changed
        assert r.cascades == 2
        assert len(r.result.nodes) == 3

        new_loop, new_cond, block = r.result.nodes
        assert type(new_loop) is LoopNode and new_loop is not root.nodes[0]
        assert len(new_loop.sequence_node.nodes) == 1
        assert len(else_if_chain(new_loop.sequence_node.nodes[0])) == 2
        assert type(new_cond) is ConditionNode and new_cond.condition is root.nodes[1].condition
        assert len(new_cond.true_node.nodes) == 1
        assert len(else_if_chain(new_cond.true_node.nodes[0])) == 3
        assert block is root.nodes[2]

        # rewritten sequences are recorded as replacements of the original ones
        assert r.substitutions[inner_loop] is new_loop.sequence_node
        assert r.substitutions[inner_cond] is new_cond.true_node
        assert r.substitutions[root] is r.result

        self._assert_same_behavior(root, r.result)

    def test_64bit_guards(self):
        root = seq(if_(0x10, x_eq(0x1_0000_0000, bits=64)), if_(0x20, x_eq(0x2_0000_0000, bits=64)))
        r = ReachBasedRefiner(root)

        assert r.changed
        chain = else_if_chain(r.result.nodes[0])
        assert [cond for cond, _ in chain] == [root.nodes[0].condition, root.nodes[1].condition]

        executor = Executor(bits=64)
        for v in [0, 1, 0x1_0000_0000, 0x2_0000_0000, 0xFFFF_FFFF_FFFF_FFFF]:
            assert executor.run(root, v) == executor.run(r.result, v)

    def test_64bit_exhaustive_guards(self):
        all_ones = 0xFFFF_FFFF_FFFF_FFFF
        root = seq(
            if_(0x10, x_eq(all_ones, bits=64)),
            if_(0x20, cmp("CmpNE", reg(bits=64), all_ones)),
        )
        r = ReachBasedRefiner(root)
        chain = else_if_chain(r.result.nodes[0])
        assert len(chain) == 2
        assert chain[1][0] is None

    def test_cascades_are_logged(self):
        with self.assertLogs("structrefine.decompiler.region_simplifiers.reach_based_refiner", level="DEBUG") as cm:
            ReachBasedRefiner(three_exclusive())
        built = [line for line in cm.output if "Built a cascade of 3 nodes" in line]
        assert len(built) == 1
        assert "else if ((x<4> == 0x3<32>))" in built[0]

    def test_translations_are_not_kept_across_runs(self):
        r = ReachBasedRefiner(three_exclusive())
        assert set(r.converter.variable_mapping) == {"x<4>"}
        r.run(seq(if_(0x10, cmp("CmpEQ", reg("z"), 1)), if_(0x20, cmp("CmpEQ", reg("z"), 2))))
        assert set(r.converter.variable_mapping) == {"z<4>"}

    def test_original_tree_is_untouched(self):
        root = three_exclusive()
        nodes = list(root.nodes)
        ReachBasedRefiner(root)
        assert root.nodes == nodes
        assert all(n.false_node is None for n in nodes)

    def test_idempotence(self):
        for root in [three_exclusive(), three_exhaustive(), else_in_the_middle()]:
            r = ReachBasedRefiner(root)
            assert r.changed
            again = ReachBasedRefiner(r.result)
            assert not again.changed
            assert again.result is r.result

    def test_run_can_be_reused(self):
        r = ReachBasedRefiner(three_exclusive())
        assert r.changed
        assert not r.run(r.result)
        assert r.cascades == 0
        assert r.run(three_exhaustive())

    def test_undecided_proofs_do_not_collapse(self):
        root = three_exhaustive()
        with self.assertLogs("structrefine.decompiler.region_simplifiers.condition_prover", level="WARNING"):
            r = ReachBasedRefiner(root, solver_tactics=("fail",))
        assert not r.changed
        assert r.prover.proved == 0
        assert r.prover.unknown > 0

    def test_options(self):
        root = else_in_the_middle()

        r = ReachBasedRefiner(root, options=[("collect_all_runs", False)])
        assert r.cascades == 1

        r = ReachBasedRefiner(root, options=[(get_option("solver_tactics"), "simplify,bit-blast,sat")])
        assert r.prover.tactics == ("simplify", "bit-blast", "sat")
        assert r.cascades == 2

        with self.assertRaises(InvalidOptionError):
            ReachBasedRefiner(root, options=[("solver_timeout", -1)])
        with self.assertRaises(InvalidOptionError):
            ReachBasedRefiner(root, options=[("no_such_option", 1)])


class TestCascadeDetection(unittest.TestCase):
    def _detector(self, **kwargs):
        converter = Z3Converter()
        prover = ConditionProver(ctx=converter.ctx)
        return CascadeDetector(prover, ConditionExtractor(converter), **kwargs)

    def test_detect_returns_the_run_in_scanning_order(self):
        root = three_exclusive()
        run, eligible = self._detector().detect(root.nodes)
        assert eligible
        assert run == root.nodes[::-1]

    def test_detect_stops_at_exhaustive_runs(self):
        root = seq(if_(0x10, x_eq(1)), if_(0x20, x_eq(2)), if_(0x30, true_cond()))
        run, eligible = self._detector().detect(root.nodes)
        assert not eligible
        assert run == [root.nodes[2]]

    def test_detect_all(self):
        root = seq(
            if_(0x10, x_eq(1)),
            if_(0x20, x_eq(2)),
            if_(0x30, x_eq(2)),
            if_(0x40, x_eq(0)),
            if_(0x50, cmp("CmpNE", reg(), 0)),
        )
        runs = self._detector().detect_all(root.nodes)
        assert len(runs) == 2

        # the last two guards cover every case, so the run closes before the second x == 2
        assert runs[0].stmts == root.nodes[:2:-1]
        assert runs[0].exhaustive
        assert runs[1].stmts == root.nodes[1::-1]
        assert not runs[1].exhaustive

        single = self._detector(collect_all_runs=False).detect_all(root.nodes)
        assert len(single) == 1
        assert single[0].stmts == runs[0].stmts

    def test_build(self):
        root = three_exclusive()
        run = self._detector().detect_all(root.nodes)[0]
        substitutions = {}
        head = CascadeBuilder().build(run, substitutions)

        assert substitutions[root.nodes[0]] is head
        assert substitutions[root.nodes[1]] is DELETED
        assert substitutions[root.nodes[2]] is DELETED
        assert head.addr == root.nodes[0].addr
        assert head.false_node.addr == root.nodes[1].addr


class TestFixpoint(unittest.TestCase):
    def test_converges(self):
        root = else_in_the_middle()
        result, iterations = refine_until_fixpoint(root)
        assert iterations == 1
        assert len(result.nodes) == 3

    def test_unchanged_tree(self):
        root = seq(if_(0x10, x_eq(1)), code(0x18))
        result, iterations = refine_until_fixpoint(root)
        assert result is root
        assert iterations == 0

    def test_single_run_mode_misses_later_runs(self):
        root = else_in_the_middle()
        result, iterations = refine_until_fixpoint(root, collect_all_runs=False)
        # the run after the if-else statement is discarded again in the second iteration
        assert iterations == 1
        assert len(result.nodes) == 4

    def test_iteration_limit(self):
        root = else_in_the_middle()
        with self.assertLogs("structrefine.decompiler.region_simplifiers.reach_based_refiner", level="WARNING"):
            _, iterations = refine_until_fixpoint(root, options=[("max_iterations", 1)])
        assert iterations == 1


if __name__ == "__main__":
    unittest.main()
