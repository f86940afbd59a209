"""Tests for the non-dominated sorting hierarchy."""

from __future__ import annotations

import numpy as np

from dietsearch.optimizer.fitness import compare_penalties
from dietsearch.optimizer.models import ParetoComparison
from dietsearch.optimizer.pareto import MNDSet, ParetoHierarchy


class VectorFitness:
    """Stand-in fitness with a fixed penalty vector."""

    def __init__(self, name: str, *penalties: float):
        self.name = name
        self._penalties = np.array(penalties, dtype=float)

    def penalties(self) -> np.ndarray:
        return self._penalties

    def dominance(self, other: "VectorFitness") -> ParetoComparison:
        return compare_penalties(self._penalties, other.penalties())

    def __repr__(self) -> str:
        return self.name


def names(hierarchy: ParetoHierarchy) -> list[list[str]]:
    return [sorted(f.name for f in s) for s in hierarchy.sets]


class TestMNDSet:
    """Tests for a single mutually non-dominated set."""

    def test_empty_set_is_dominated(self):
        assert MNDSet().compare(VectorFitness("a", 1, 1)) == ParetoComparison.DOMINATES

    def test_worst_relation_wins(self):
        mnd_set = MNDSet([VectorFitness("b", 2, 3), VectorFitness("x", 3, 2)])
        assert mnd_set.compare(VectorFitness("a", 1, 1)) == ParetoComparison.DOMINATES
        assert mnd_set.compare(VectorFitness("c", 1, 2.5)) == (
            ParetoComparison.MUTUALLY_NON_DOMINATING
        )
        assert mnd_set.compare(VectorFitness("d", 4, 4)) == ParetoComparison.DOMINATED

    def test_membership_is_by_identity(self):
        a = VectorFitness("a", 1, 1)
        twin = VectorFitness("a", 1, 1)
        mnd_set = MNDSet([a])
        assert a in mnd_set
        assert twin not in mnd_set
        assert mnd_set.remove(twin) is False


class TestParetoHierarchy:
    """Tests for insertion order and ranks."""

    def test_chain_in_order(self):
        """Test A > B > C inserted best first gives three singleton ranks."""
        a, b, c = VectorFitness("a", 1, 1), VectorFitness("b", 2, 2), VectorFitness("c", 3, 3)
        hierarchy = ParetoHierarchy()
        for fitness in (a, b, c):
            hierarchy.insert(fitness)

        assert names(hierarchy) == [["a"], ["b"], ["c"]]
        assert [hierarchy.rank(f) for f in (a, b, c)] == [0, 1, 2]

    def test_chain_in_reverse(self):
        """Test inserting C, B, A gives the same ranking as A, B, C."""
        a, b, c = VectorFitness("a", 1, 1), VectorFitness("b", 2, 2), VectorFitness("c", 3, 3)
        hierarchy = ParetoHierarchy()
        for fitness in (c, b, a):
            hierarchy.insert(fitness)

        assert names(hierarchy) == [["a"], ["b"], ["c"]]
        assert [hierarchy.rank(f) for f in (a, b, c)] == [0, 1, 2]

    def test_dominating_insert_keeps_displaced_set(self):
        """Test a fitness dominating a whole set pushes it down instead of replacing it."""
        hierarchy = ParetoHierarchy()
        hierarchy.insert(VectorFitness("b", 2, 3))
        hierarchy.insert(VectorFitness("x", 3, 2))
        assert names(hierarchy) == [["b", "x"]]

        rank = hierarchy.insert(VectorFitness("a", 1, 1))

        assert rank == 0
        assert names(hierarchy) == [["a"], ["b", "x"]]
        assert len(hierarchy) == 3

    def test_non_dominating_insert_joins_set(self):
        hierarchy = ParetoHierarchy()
        hierarchy.insert(VectorFitness("b", 2, 3))
        hierarchy.insert(VectorFitness("x", 3, 2))

        assert hierarchy.insert(VectorFitness("c", 1, 2.5)) == 0
        assert names(hierarchy) == [["b", "c", "x"]]

    def test_dominated_by_all_goes_last(self):
        hierarchy = ParetoHierarchy()
        hierarchy.insert(VectorFitness("a", 1, 1))
        assert hierarchy.insert(VectorFitness("z", 9, 9)) == 1
        assert names(hierarchy) == [["a"], ["z"]]

    def test_equal_vectors_share_rank(self):
        hierarchy = ParetoHierarchy()
        hierarchy.insert(VectorFitness("a", 1, 1))
        assert hierarchy.insert(VectorFitness("a2", 1, 1)) == 0
        assert len(hierarchy.sets) == 1

    def test_dominance_implies_lower_rank(self):
        """Test if A dominates B, B never dominates A and A ranks above B."""
        a = VectorFitness("a", 0, 4, 1)
        b = VectorFitness("b", 0, 5, 1)
        assert a.dominance(b) == ParetoComparison.DOMINATES
        assert b.dominance(a) != ParetoComparison.DOMINATES

        for order in ((a, b), (b, a)):
            hierarchy = ParetoHierarchy()
            for fitness in order:
                hierarchy.insert(fitness)
            assert hierarchy.rank(a) < hierarchy.rank(b)

    def test_partial_dominance_pushes_dominated_member_down(self):
        """Test a fitness joining a set moves the members it dominates down a rank."""
        x = VectorFitness("x", 0, 9)
        b = VectorFitness("b", 5, 5)
        a = VectorFitness("a", 4, 4)
        hierarchy = ParetoHierarchy()
        hierarchy.insert(x)
        hierarchy.insert(b)
        assert names(hierarchy) == [["b", "x"]]

        assert hierarchy.insert(a) == 0

        assert names(hierarchy) == [["a", "x"], ["b"]]
        assert hierarchy.rank(a) < hierarchy.rank(b)
        assert len(hierarchy) == 3

    def test_displaced_member_cascades(self):
        """Test a displaced member is re-inserted ahead of a set it dominates."""
        hierarchy = ParetoHierarchy()
        for fitness in (
            VectorFitness("x", 0, 9),
            VectorFitness("b", 5, 5),
            VectorFitness("c", 6, 6),
        ):
            hierarchy.insert(fitness)
        assert names(hierarchy) == [["b", "x"], ["c"]]

        hierarchy.insert(VectorFitness("a", 4, 4))

        assert names(hierarchy) == [["a", "x"], ["b"], ["c"]]

    def test_no_set_holds_a_dominating_pair(self):
        """Test dominance always implies a strictly lower rank for random inserts."""
        rng = np.random.default_rng(11)
        fitnesses = [
            VectorFitness(str(i), *rng.integers(0, 6, size=3)) for i in range(40)
        ]
        hierarchy = ParetoHierarchy()
        for fitness in fitnesses:
            hierarchy.insert(fitness)

        assert len(hierarchy) == len(fitnesses)
        for a in fitnesses:
            for b in fitnesses:
                if a.dominance(b) == ParetoComparison.DOMINATES:
                    assert hierarchy.rank(a) < hierarchy.rank(b)

    def test_remove_prunes_empty_sets(self):
        a, b = VectorFitness("a", 1, 1), VectorFitness("b", 2, 2)
        hierarchy = ParetoHierarchy()
        hierarchy.insert(a)
        hierarchy.insert(b)

        assert hierarchy.remove(a) is True
        assert names(hierarchy) == [["b"]]
        assert hierarchy.rank(b) == 0
        assert hierarchy.rank(a) == -1
        assert hierarchy.remove(a) is False

    def test_transient_rank_leaves_hierarchy_unchanged(self):
        hierarchy = ParetoHierarchy()
        hierarchy.insert(VectorFitness("b", 2, 2))
        hierarchy.insert(VectorFitness("c", 3, 3))
        before = names(hierarchy)

        candidate = VectorFitness("a", 1, 1)
        assert hierarchy.transient_rank(candidate) == 0
        assert hierarchy.rank(candidate) == -1
        assert names(hierarchy) == before

    def test_transient_rank_does_not_displace_members(self):
        hierarchy = ParetoHierarchy()
        hierarchy.insert(VectorFitness("x", 0, 9))
        hierarchy.insert(VectorFitness("b", 5, 5))

        assert hierarchy.transient_rank(VectorFitness("a", 4, 4)) == 0
        assert names(hierarchy) == [["b", "x"]]

    def test_members_best_first(self):
        a, b = VectorFitness("a", 1, 1), VectorFitness("b", 2, 2)
        hierarchy = ParetoHierarchy()
        hierarchy.insert(b)
        hierarchy.insert(a)
        assert hierarchy.members() == [a, b]
