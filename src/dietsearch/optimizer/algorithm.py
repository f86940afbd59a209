"""Common driver for every search algorithm.

An Algorithm owns its population, constraints and random generator. Callers
construct one with ``build_algorithm``, call ``init()`` once and then
``next_iteration()`` as many times as they like, reading ``population`` and
``best_day()`` in between.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from dietsearch.data.catalog import Food
from dietsearch.optimizer.constraints import ConstraintSet
from dietsearch.optimizer.day import Day, Portion
from dietsearch.optimizer.fitness import FitnessContext
from dietsearch.optimizer.models import (
    AlgorithmType,
    DietSearchError,
    EmptyCatalogError,
    FitnessApproach,
)
from dietsearch.optimizer.pareto import ParetoHierarchy
from dietsearch.optimizer.population import Population

if TYPE_CHECKING:
    from dietsearch.config.settings import RunConfig

logger = logging.getLogger(__name__)


class Algorithm(ABC):
    """Abstract base class for a population-based search.

    Args:
        foods: The catalog to draw portions from
        config: Run configuration; validated here
        rng: Random generator. If None, one is seeded from ``config.seed``

    Raises:
        ConfigurationError: If the configuration is invalid
        EmptyCatalogError: If ``foods`` is empty
    """

    def __init__(
        self,
        foods: Sequence[Food],
        config: "RunConfig",
        rng: Optional[np.random.Generator] = None,
    ):
        config.validate()
        if len(foods) == 0:
            raise EmptyCatalogError("Cannot search an empty food catalog", field="foods")

        self.foods: tuple[Food, ...] = tuple(foods)
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.constraints = ConstraintSet(config.constraints)
        hierarchy = (
            ParetoHierarchy()
            if config.fitness_approach == FitnessApproach.PARETO
            else None
        )
        self.context = FitnessContext(
            constraints=self.constraints,
            approach=config.fitness_approach,
            hierarchy=hierarchy,
            add_fitness_for_mass=config.add_fitness_for_mass,
            max_portion_mass=config.max_portion_mass,
        )
        self._population = Population(self.context)

        self.iteration = 0
        self.best_iteration: Optional[int] = None
        self._best: Optional[Day] = None
        self._initialised = False

    # --- Driver contract

    def init(self) -> None:
        """Create the starting population. May only be called once."""
        if self._initialised:
            raise DietSearchError(f"{type(self).__name__} is already initialised")

        self.init_population()
        self._initialised = True
        self._update_best()
        logger.debug(
            "%s initialised with %d days", type(self).__name__, len(self._population)
        )

    def next_iteration(self) -> None:
        """Advance the search by exactly one generation."""
        if not self._initialised:
            raise DietSearchError("init() must be called before next_iteration()")

        self.iteration += 1
        self.run_iteration()
        self._update_best()

    @property
    def population(self) -> tuple[Day, ...]:
        """Snapshot of the current Days, best first."""
        return tuple(self._population.get_sorted_population())

    def best_day(self) -> Optional[Day]:
        """Copy of the best Day seen in any iteration so far, or None."""
        if self._best is None:
            return None
        return self._best.copy()

    def average_fitness(self) -> float:
        return self._population.get_average_fitness()

    def num_constraints(self) -> int:
        """Number of nutrients with a non-null constraint."""
        return self.constraints.num_active()

    # --- Hooks for subclasses

    @abstractmethod
    def init_population(self) -> None:
        """Fill the population before the first iteration."""

    @abstractmethod
    def run_iteration(self) -> None:
        """Perform one generation of the search."""

    # --- Helpers

    def random_portion(self) -> Portion:
        """A random food with a uniform random mass in the configured range."""
        food = self.foods[int(self.rng.integers(len(self.foods)))]
        mass = int(
            self.rng.integers(self.config.min_portion_mass, self.config.max_portion_mass + 1)
        )
        return Portion(food, mass)

    def random_day(self) -> Day:
        day = Day(self.context)
        for _ in range(self.config.num_starting_portions_per_day):
            day.add_portion(self.random_portion())
        return day

    def new_day(self) -> Day:
        return Day(self.context)

    def add_to_population(self, day: Day) -> None:
        self._population.add(day)

    def remove_from_population(self, day: Day) -> bool:
        return self._population.remove(day)

    def get_fitness(self, day: Day) -> float:
        return self._population.get_fitness(day)

    def _update_best(self) -> None:
        """Keep a private copy of the best Day, so later mutation cannot touch it."""
        if len(self._population) == 0:
            return

        candidate = self._population.best()
        if self._best is None or candidate.compare(self._best) < 0:
            self._best = candidate.copy()
            self.best_iteration = self.iteration


def build_algorithm(
    foods: Sequence[Food],
    config: "RunConfig",
    rng: Optional[np.random.Generator] = None,
) -> Algorithm:
    """Construct the algorithm named by ``config.algorithm``.

    Raises:
        ConfigurationError: If the configuration is invalid
        EmptyCatalogError: If ``foods`` is empty
    """
    # Imported here; each engine module imports this one
    from dietsearch.optimizer.aco import AntColony
    from dietsearch.optimizer.ga import GeneticAlgorithm
    from dietsearch.optimizer.pso import ParticleSwarm

    if config.algorithm == AlgorithmType.GA:
        return GeneticAlgorithm(foods, config, rng)
    if config.algorithm == AlgorithmType.ACO:
        return AntColony(foods, config, rng)
    if config.algorithm == AlgorithmType.PSO:
        return ParticleSwarm(foods, config, rng)

    raise DietSearchError(f"Unknown algorithm: {config.algorithm}")
