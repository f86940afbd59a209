"""Genetic algorithm over Days.

Each generation selects parent pairs, breeds two children per pair by
mass-weighted crossover and mutation, then eliminates as many Days as it
created children. Works with both summed and Pareto fitness.
"""

from __future__ import annotations

import logging
from typing import Callable

from dietsearch.optimizer.algorithm import Algorithm
from dietsearch.optimizer.crossover import crossover, draw_cutoffs
from dietsearch.optimizer.day import Day
from dietsearch.optimizer.fitness import Fitness
from dietsearch.optimizer.models import (
    FitnessApproach,
    ParetoComparison,
    SelectionMethod,
)
from dietsearch.optimizer.tools import first_surpassed_probability

logger = logging.getLogger(__name__)


class GeneticAlgorithm(Algorithm):
    """Steady-size GA with tournament or rank selection."""

    def __init__(self, foods, config, rng=None):
        super().__init__(foods, config, rng)
        self.ga = config.ga
        self.num_parents = self.ga.num_parents(config.population_size)

        self._select: Callable[[list[Day], bool], Day]
        if self.ga.selection_method == SelectionMethod.RANK:
            self._select = self.rank_selection
        else:
            self._select = self.tournament_selection

    @property
    def hierarchy(self):
        return self.context.hierarchy

    def init_population(self) -> None:
        for _ in range(self.config.population_size):
            self.add_to_population(self.random_day())

    def run_iteration(self) -> None:
        # Reproduction
        included = self._candidates(best_first=True)
        children: list[Day] = []
        for _ in range(self.num_parents // 2):
            parent_a = self.perform_selection(included, select_best=True)
            included.remove(parent_a)
            parent_b = self.perform_selection(included, select_best=True)
            included.remove(parent_b)
            children.extend(self.reproduce(parent_a, parent_b))

        # Elimination, from the same pre-children snapshot
        included = self._candidates(best_first=False)
        dead: list[Day] = []
        for _ in range(self.num_parents):
            selected = self.perform_selection(included, select_best=False)
            included.remove(selected)
            dead.append(selected)

        for child in children:
            self.add_to_population(child)
        for day in dead:
            self.remove_from_population(day)

    def _candidates(self, best_first: bool) -> list[Day]:
        if self.ga.selection_method == SelectionMethod.RANK:
            return self._population.get_sorted_population(reverse=not best_first)
        return list(self._population)

    # --- Variation

    def reproduce(self, parent_a: Day, parent_b: Day) -> tuple[Day, Day]:
        """Crossover then mutate; the parents are left unchanged."""
        cutoffs = draw_cutoffs(
            parent_a.mass + parent_b.mass, self.ga.num_crossover_points, self.rng
        )
        child_a, child_b = crossover(parent_a, parent_b, cutoffs, self.context)
        self.mutate(child_a)
        self.mutate(child_b)
        return child_a, child_b

    def mutate(self, day: Day) -> None:
        """Perturb portion masses, then maybe add and maybe remove a portion."""
        if len(day) == 0:
            logger.debug("Skipped mutation of an empty Day")
            return

        threshold = self.ga.change_portion_mass_mutation_prob / len(day)
        i = 0
        while i < len(day):
            if self.rng.random() >= threshold:
                i += 1
                continue

            sign = 1 if self.rng.integers(2) == 1 else -1
            change = int(
                self.rng.integers(
                    self.ga.mutation_mass_change_min, self.ga.mutation_mass_change_max + 1
                )
            )
            new_mass = day.portions[i].mass + sign * change

            if new_mass > 0:
                day.set_portion_mass(i, new_mass)
                i += 1
            elif not day.remove_portion(i):
                # Last portion survives unchanged
                i += 1

        add_portion = self.rng.random() < self.ga.add_or_remove_portion_mutation_prob
        remove_portion = self.rng.random() < self.ga.add_or_remove_portion_mutation_prob

        if add_portion:
            day.add_portion(self.random_portion())
        if remove_portion:
            day.remove_portion(int(self.rng.integers(len(day))))

    # --- Selection

    def perform_selection(self, included: list[Day], select_best: bool) -> Day:
        """Select one Day from ``included`` (best if ``select_best``, else worst)."""
        if not included:
            raise ValueError("Cannot select from an empty candidate list")
        if len(included) == 1:
            return included[0]
        return self._select(included, select_best)

    def tournament_selection(self, included: list[Day], select_best: bool) -> Day:
        """Best (or worst) of ``tournament_size`` distinct random candidates."""
        size = min(self.ga.tournament_size, len(included))
        picks = self.rng.choice(len(included), size=size, replace=False)

        winner = None
        for index in picks:
            day = included[int(index)]
            if winner is None:
                winner = day
                continue
            relation = self.compare_for_selection(day, winner)
            if (select_best and relation < 0) or (not select_best and relation > 0):
                winner = day
        return winner

    def rank_selection(self, sorted_included: list[Day], select_best: bool) -> Day:
        """Weighted pick from a list sorted best first (worst first for elimination).

        Rank ``i`` (1-based) of ``n`` has probability
        ``(SP - (2SP - 2)(i - 1)/(n - 1)) / n`` for selection pressure SP.
        """
        probabilities = self.rank_probabilities(len(sorted_included))
        index = first_surpassed_probability(probabilities, self.rng)
        if index == -1:
            # Only reachable through float rounding at the top end
            index = len(sorted_included) - 1
        return sorted_included[index]

    def rank_probabilities(self, n: int) -> list[float]:
        pressure = self.ga.selection_pressure
        if n == 1:
            return [1.0]
        return [
            (pressure - (2 * pressure - 2) * i / (n - 1)) / n
            for i in range(n)
        ]

    def compare_for_selection(self, a: Day, b: Day) -> int:
        """-1 if ``a`` is fitter than ``b``, 1 if less fit; ties are coin-flipped.

        Under Pareto fitness, equal ranks fall back to net dominance over the
        population and the hierarchy before the coin flip.
        """
        if self.config.fitness_approach == FitnessApproach.PARETO:
            rank_a, rank_b = a.fitness.value, b.fitness.value
            if rank_a != rank_b:
                return -1 if rank_a < rank_b else 1
            net_a, net_b = self.net_dominance(a, b), self.net_dominance(b, a)
            if net_a != net_b:
                return -1 if net_a > net_b else 1
        else:
            relation = a.compare(b)
            if relation != 0:
                return relation

        return -1 if self.rng.integers(2) == 0 else 1

    def net_dominance(self, day: Day, rival: Day) -> int:
        """How many others ``day`` dominates minus how many dominate it.

        The others are the population plus every hierarchy member, excluding
        ``day`` and ``rival``.
        """
        net = 0
        for other in self._comparison_superset(day, rival):
            relation = day.fitness.dominance(other)
            if relation == ParetoComparison.DOMINATES:
                net += 1
            elif relation == ParetoComparison.DOMINATED:
                net -= 1
        return net

    def _comparison_superset(self, a: Day, b: Day) -> list[Fitness]:
        seen = {id(a.fitness), id(b.fitness)}
        others: list[Fitness] = []
        candidates = [d.fitness for d in self._population]
        if self.hierarchy is not None:
            candidates.extend(self.hierarchy.members())
        for fitness in candidates:
            if id(fitness) not in seen:
                seen.add(id(fitness))
                others.append(fitness)
        return others
