"""Ant colony optimisation over a small graph of sampled portions.

Vertices are Portions drawn from the catalog. The weight of edge i -> j is the
change in fitness from eating portion j after portion i; ants walk the graph
favouring edges with high pheromone and weight, and every few generations the
least visited vertex is swapped for a fresh portion so the colony keeps
exploring the catalog.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from dietsearch.optimizer.algorithm import Algorithm
from dietsearch.optimizer.day import Day, Portion
from dietsearch.optimizer.tools import EPSILON, first_surpassed_probability

logger = logging.getLogger(__name__)


class Ant:
    """One walker; its path is a Day that is also a member of the population."""

    def __init__(self, colony: "AntColony", start: int = 0):
        self.colony = colony
        self.start = start
        self.path: list[int] = []
        self.day: Day
        self.reset()

    @property
    def last_index(self) -> int:
        return self.path[-1]

    def reset(self) -> None:
        """Start a fresh Day at the start vertex."""
        self.path = []
        self.day = self.colony.new_day()
        self.add_index(self.start)

    def add_index(self, index: int) -> None:
        self.day.add_portion(self.colony.vertices[index])
        self.path.append(index)

    def run(self) -> None:
        """Walk until no vertex is selectable or every vertex is visited."""
        limit = self.colony.aco.colony_portions
        while len(self.path) < limit:
            probabilities = self.colony.vertex_probabilities(self.last_index, set(self.path))
            next_vertex = first_surpassed_probability(probabilities, self.colony.rng)
            if next_vertex == -1:
                logger.debug(
                    "Ant stopped at vertex %d after %d vertices: no finite edge left",
                    self.last_index,
                    len(self.path),
                )
                return
            self.add_index(next_vertex)

    @property
    def fitness(self) -> float:
        return self.day.fitness.value


class AntColony(Algorithm):
    """ACO with one ant per population slot, all starting at vertex 0."""

    def __init__(self, foods, config, rng=None):
        super().__init__(foods, config, rng)
        self.aco = config.aco
        size = self.aco.colony_portions

        self.vertices: list[Portion] = []
        self.fitnesses = np.zeros((size, size))
        self.pheromone = np.zeros((size, size))
        self.ants: list[Ant] = []

        # Vertex path of the best Day found so far, for elitist deposits
        self.best_path: Optional[list[int]] = None
        self._best_path_fitness = math.inf

    def init_population(self) -> None:
        size = self.aco.colony_portions
        self.vertices = [self.random_portion() for _ in range(size)]

        for i in range(size):
            for j in range(size):
                self.fitnesses[i, j] = self.edge_fitness(i, j)
                self.pheromone[i, j] = self.rng.random()

        for _ in range(self.config.population_size):
            ant = Ant(self, start=0)
            self.ants.append(ant)
            self.add_to_population(ant.day)

    def edge_fitness(self, i: int, j: int) -> float:
        """Absolute change in fitness from adding vertex ``j`` to a Day of vertex ``i``.

        Returns ``inf`` when the change is not finite.
        """
        day = self.new_day()
        day.add_portion(self.vertices[i])
        before = day.fitness.value
        day.add_portion(self.vertices[j])
        after = day.fitness.value

        diff = abs(after - before)
        if not math.isfinite(diff):
            return math.inf
        return diff

    def vertex_probabilities(self, prev: int, visited: set[int]) -> np.ndarray:
        """Probability of moving from ``prev`` to each vertex.

        Visited vertices and infinite edges get 0; the rest are weighted by
        ``pheromone^alpha * fitness^beta``. Sums to 1, or to 0 when nothing is
        reachable.
        """
        size = self.aco.colony_portions
        weights = np.zeros(size)
        for h in range(size):
            if h == prev or h in visited:
                continue
            f = self.fitnesses[prev, h]
            if math.isinf(f):
                continue
            weights[h] = self.pheromone[prev, h] ** self.aco.alpha * f ** self.aco.beta

        total = weights.sum()
        if total <= 0 or not math.isfinite(total):
            return np.zeros(size)
        return weights / total

    def run_iteration(self) -> None:
        if self.iteration % self.aco.colony_stagnation_iters == 0:
            self.regenerate_search_space()

        for ant in self.ants:
            self.remove_from_population(ant.day)
            ant.reset()
            ant.run()
            self.add_to_population(ant.day)

        self._track_best_path()
        self.update_pheromone()

    def _track_best_path(self) -> None:
        for ant in self.ants:
            if ant.fitness < self._best_path_fitness:
                self._best_path_fitness = ant.fitness
                self.best_path = list(ant.path)

    def update_pheromone(self) -> None:
        """Evaporate every edge, then let each ant deposit along its path."""
        self.pheromone *= 1 - self.aco.phero_evap_rate

        for ant in self.ants:
            self.deposit(ant.path, ant.fitness)

        if self.aco.elitist and self.best_path is not None:
            self.deposit(self.best_path, self._best_path_fitness)

    def deposit(self, path: list[int], fitness: float) -> None:
        """Add ``phero_importance / fitness`` to each consecutive edge of ``path``."""
        if len(path) <= 1 or math.isinf(fitness):
            return

        increment = self.aco.phero_importance / max(fitness, EPSILON)
        for a, b in zip(path, path[1:]):
            self.pheromone[a, b] += increment

    def regenerate_search_space(self) -> None:
        """Replace the vertex with the least incoming pheromone by a new portion."""
        incoming = self.pheromone.sum(axis=0)
        worst = int(np.argmin(incoming))
        self.vertices[worst] = self.random_portion()

        for i in range(self.aco.colony_portions):
            self.fitnesses[i, worst] = self.edge_fitness(i, worst)
            self.fitnesses[worst, i] = self.edge_fitness(worst, i)
            self.pheromone[i, worst] = self.rng.random()
            self.pheromone[worst, i] = self.rng.random()

        # Paths through the old vertex no longer describe a real Day
        if self.best_path is not None and worst in self.best_path:
            self.best_path = None
            self._best_path_fitness = math.inf

        logger.debug("Replaced colony vertex %d with %r", worst, self.vertices[worst])
