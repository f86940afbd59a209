"""Non-dominated sorting of Pareto fitnesses.

The hierarchy is an ordered list of mutually non-dominated (MND) sets. Rank 0
holds the fitnesses nothing else in the hierarchy dominates; a fitness's rank
is the index of the set that contains it.
"""

from __future__ import annotations

from typing import Iterator, Optional

from dietsearch.optimizer.fitness import Fitness
from dietsearch.optimizer.models import ParetoComparison


class MNDSet:
    """A set of fitnesses, none of which dominates another.

    Membership is by identity: two Days with equal penalties are still two
    members.
    """

    def __init__(self, fitnesses: Optional[list[Fitness]] = None):
        self._fitnesses: list[Fitness] = list(fitnesses or [])

    def __len__(self) -> int:
        return len(self._fitnesses)

    def __iter__(self) -> Iterator[Fitness]:
        return iter(self._fitnesses)

    def __contains__(self, fitness: Fitness) -> bool:
        return any(f is fitness for f in self._fitnesses)

    def compare(self, fitness: Fitness) -> ParetoComparison:
        """The worst relation between ``fitness`` and any member of the set.

        An empty set is dominated by anything.
        """
        worst = ParetoComparison.DOMINATES
        for other in self._fitnesses:
            relation = fitness.dominance(other)
            if relation.value > worst.value:
                worst = relation
                if worst == ParetoComparison.DOMINATED:
                    break
        return worst

    def add(self, fitness: Fitness) -> None:
        self._fitnesses.append(fitness)

    def take_dominated_by(self, fitness: Fitness) -> list[Fitness]:
        """Remove and return the members that ``fitness`` dominates."""
        dominated = [
            f for f in self._fitnesses
            if fitness.dominance(f) == ParetoComparison.DOMINATES
        ]
        if dominated:
            taken = {id(f) for f in dominated}
            self._fitnesses = [f for f in self._fitnesses if id(f) not in taken]
        return dominated

    def remove(self, fitness: Fitness) -> bool:
        for i, other in enumerate(self._fitnesses):
            if other is fitness:
                del self._fitnesses[i]
                return True
        return False


class ParetoHierarchy:
    """An ordered list of MNDSets, best rank first."""

    def __init__(self):
        self._sets: list[MNDSet] = []

    @property
    def sets(self) -> tuple[MNDSet, ...]:
        return tuple(self._sets)

    def __len__(self) -> int:
        """Number of fitnesses across all sets."""
        return sum(len(s) for s in self._sets)

    def members(self) -> list[Fitness]:
        """Every fitness in the hierarchy, best rank first."""
        return [f for s in self._sets for f in s]

    def rank(self, fitness: Fitness) -> int:
        """Index of the set containing ``fitness``, or -1 if it has none."""
        for i, mnd_set in enumerate(self._sets):
            if fitness in mnd_set:
                return i
        return -1

    def insert(self, fitness: Fitness) -> int:
        """Add ``fitness`` to the hierarchy and return its rank.

        The first set it dominates entirely is pushed down a rank behind a new
        singleton set. The first set that does not dominate it absorbs it, and
        any members of that set it dominates are re-inserted from the next
        rank down. If every set dominates it, it starts a new last set.
        """
        return self._insert_from(fitness, 0)

    def _insert_from(self, fitness: Fitness, start: int) -> int:
        for i in range(start, len(self._sets)):
            mnd_set = self._sets[i]
            relation = mnd_set.compare(fitness)

            if relation == ParetoComparison.DOMINATES:
                self._sets.insert(i, MNDSet([fitness]))
                return i

            if relation == ParetoComparison.MUTUALLY_NON_DOMINATING:
                displaced = mnd_set.take_dominated_by(fitness)
                mnd_set.add(fitness)
                for other in displaced:
                    self._insert_from(other, i + 1)
                return i

        self._sets.append(MNDSet([fitness]))
        return len(self._sets) - 1

    def remove(self, fitness: Fitness) -> bool:
        """Remove ``fitness`` from its set, dropping the set if it empties.

        Returns:
            True if the fitness was found and removed
        """
        for i, mnd_set in enumerate(self._sets):
            if mnd_set.remove(fitness):
                if len(mnd_set) == 0:
                    del self._sets[i]
                return True
        return False

    def transient_rank(self, fitness: Fitness) -> int:
        """The rank ``insert`` would give a fitness, leaving the hierarchy unchanged."""
        for i, mnd_set in enumerate(self._sets):
            if mnd_set.compare(fitness) != ParetoComparison.DOMINATED:
                return i
        return len(self._sets)
