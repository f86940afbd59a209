"""Fitness of a Day: scalar (summed) and Pareto-dominance strategies.

Each Day owns one Fitness object. Per-nutrient penalties are cached and only
recomputed for nutrients whose total changed since the last read.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from dietsearch.data.nutrients import NUTRIENT_COUNT
from dietsearch.optimizer.constraints import ConstraintSet
from dietsearch.optimizer.models import (
    ConfigurationError,
    FitnessApproach,
    ParetoComparison,
)
from dietsearch.optimizer.tools import normalise_penalty

if TYPE_CHECKING:
    from dietsearch.optimizer.day import Day
    from dietsearch.optimizer.pareto import ParetoHierarchy


@dataclass(frozen=True)
class FitnessContext:
    """Everything a Day needs to score itself.

    Passed to each Day on construction, so Days never reach back into the
    algorithm that owns them.
    """

    constraints: ConstraintSet
    approach: FitnessApproach = FitnessApproach.SUMMED
    hierarchy: Optional["ParetoHierarchy"] = None
    add_fitness_for_mass: bool = False
    max_portion_mass: int = 500

    def __post_init__(self) -> None:
        if self.approach == FitnessApproach.PARETO and self.hierarchy is None:
            raise ConfigurationError(
                "Pareto fitness requires a ParetoHierarchy", field="fitness_approach"
            )

    def new_fitness(self, day: "Day") -> "Fitness":
        if self.approach == FitnessApproach.PARETO:
            return ParetoFitness(day, self)
        return SummedFitness(day, self)


class NutrientFitness:
    """Cached weighted penalty for one nutrient of one Day."""

    __slots__ = ("_day", "_index", "_constraints", "_value", "up_to_date")

    def __init__(self, day: "Day", index: int, constraints: ConstraintSet):
        self._day = day
        self._index = index
        self._constraints = constraints
        self._value = 0.0
        self.up_to_date = False

    @property
    def value(self) -> float:
        if self.up_to_date:
            return self._value

        amount = float(self._day.nutrient_amounts[self._index])
        self._value = self._constraints.fitness(self._index, amount)
        self.up_to_date = True
        return self._value

    def set_outdated(self) -> None:
        self.up_to_date = False


def compare_penalties(a: np.ndarray, b: np.ndarray) -> ParetoComparison:
    """Dominance relation of penalty vector ``a`` over ``b``.

    ``a`` dominates ``b`` when it is no worse on every nutrient and strictly
    better on at least one. Anything else, equality included, is mutually
    non-dominating.
    """
    better = bool(np.any(a < b))
    worse = bool(np.any(a > b))

    if worse:
        return ParetoComparison.MUTUALLY_NON_DOMINATING if better else ParetoComparison.DOMINATED
    if better:
        return ParetoComparison.DOMINATES
    return ParetoComparison.MUTUALLY_NON_DOMINATING


class Fitness(ABC):
    """Abstract base class for the fitness of a whole Day."""

    def __init__(self, day: "Day", context: FitnessContext):
        self.day = day
        self.context = context
        self._nutrients = [
            NutrientFitness(day, i, context.constraints) for i in range(NUTRIENT_COUNT)
        ]
        # Whether the cached total can be reused without re-summing
        self._all_up_to_date = False

    @property
    @abstractmethod
    def value(self) -> float:
        """A float representation of the fitness: the penalty sum or the rank."""

    @abstractmethod
    def compare(self, other: "Fitness") -> int:
        """-1 if this is better than ``other``, 0 if tied, 1 if worse."""

    def set_nutrient_outdated(self, index: int) -> None:
        self._all_up_to_date = False
        self._nutrients[index].set_outdated()

    def set_outdated(self) -> None:
        """Mark the total as stale without touching per-nutrient caches."""
        self._all_up_to_date = False

    def nutrient_value(self, index: int) -> float:
        return self._nutrients[index].value

    def penalties(self) -> np.ndarray:
        """Weighted penalty per nutrient."""
        return np.array([n.value for n in self._nutrients])

    def dominance(self, other: "Fitness") -> ParetoComparison:
        return compare_penalties(self.penalties(), other.penalties())

    def summed_value(self) -> float:
        """Sum of nutrient penalties plus the mass overshoot penalty."""
        total = math.fsum(n.value for n in self._nutrients)

        # One unit of fitness per gram over the portion mass limit
        if self.context.add_fitness_for_mass:
            limit = self.context.max_portion_mass
            total += sum(max(p.mass - limit, 0) for p in self.day.portions)

        return normalise_penalty(total)

    def copy_for(self, day: "Day") -> "Fitness":
        """A fitness for ``day`` (a clone of this one's Day) with the same caches."""
        clone = type(self)(day, self.context)
        for mine, theirs in zip(self._nutrients, clone._nutrients):
            if mine.up_to_date:
                theirs._value = mine._value
                theirs.up_to_date = True
        return clone

    def verbose(self) -> str:
        return f"{self.value}"


class SummedFitness(Fitness):
    """All objectives combined into one number by summing. Lower is better."""

    def __init__(self, day: "Day", context: FitnessContext):
        super().__init__(day, context)
        self._value = 0.0

    @property
    def value(self) -> float:
        if self._all_up_to_date:
            return self._value

        self._value = self.summed_value()
        self._all_up_to_date = True
        return self._value

    def copy_for(self, day: "Day") -> "Fitness":
        clone = super().copy_for(day)
        if self._all_up_to_date:
            clone._value = self._value
            clone._all_up_to_date = True
        return clone

    def compare(self, other: "Fitness") -> int:
        a, b = self.value, other.value
        if a < b:
            return -1
        if a == b:
            return 0
        return 1


class ParetoFitness(Fitness):
    """Fitness by Pareto comparison to the rest of the population.

    The value is the index of the non-dominated set containing this fitness.
    Fitnesses outside the hierarchy are ranked transiently.
    """

    @property
    def hierarchy(self) -> "ParetoHierarchy":
        return self.context.hierarchy

    @property
    def value(self) -> float:
        rank = self.hierarchy.rank(self)
        if rank == -1:
            rank = self.hierarchy.transient_rank(self)
        return float(rank)

    def compare(self, other: "Fitness") -> int:
        rank_a, rank_b = self.value, other.value
        if rank_a < rank_b:
            return -1
        if rank_a > rank_b:
            return 1
        return self.dominance(other).value
