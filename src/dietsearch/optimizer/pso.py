"""Particle swarm optimisation over food masses.

A particle's position is a vector of grams, one entry per food it moves over.
Particles are pulled towards their own best position and the swarm's best.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from dietsearch.data.catalog import Food
from dietsearch.optimizer.algorithm import Algorithm
from dietsearch.optimizer.day import Day, Portion

logger = logging.getLogger(__name__)


class Particle:
    """Position, velocity and personal best of one swarm member."""

    def __init__(self, swarm: "ParticleSwarm", position: np.ndarray):
        self.swarm = swarm
        self.position = position.astype(float)
        self.velocity = np.zeros_like(self.position)

        self.pbest = self.position.copy()
        self.pbest_day: Day = swarm.position_day(self.position)

    def step(self) -> None:
        """Move, update the bests, then update the velocity."""
        self.position = np.maximum(self.position + self.velocity, 0.0)

        if np.any(self.position > 0):
            day = self.swarm.position_day(self.position)
            if day.compare(self.pbest_day) < 0:
                self.swarm.replace_pbest(self, day)
                self.pbest = self.position.copy()
                self.swarm.offer_gbest(day, self.position)
        else:
            logger.debug("Particle at the origin; no Day to evaluate")

        self.velocity = self.velocity + (self.pbest - self.position) + (
            self.swarm.gbest - self.position
        )


class ParticleSwarm(Algorithm):
    """PSO where the population is the set of personal-best Days."""

    def __init__(self, foods, config, rng=None):
        super().__init__(foods, config, rng)
        self.pso = config.pso
        self.dimensions: tuple[Food, ...] = self._choose_dimensions()
        self.particles: list[Particle] = []

        self.gbest = np.zeros(len(self.dimensions))
        self.gbest_day: Optional[Day] = None

    def _choose_dimensions(self) -> tuple[Food, ...]:
        count = self.pso.pso_dimensions
        if count is None or count >= len(self.foods):
            return self.foods
        picks = self.rng.choice(len(self.foods), size=count, replace=False)
        return tuple(self.foods[int(i)] for i in sorted(picks))

    def init_population(self) -> None:
        low, high = self.config.min_portion_mass, self.config.max_portion_mass
        for _ in range(self.config.population_size):
            position = self.rng.integers(low, high + 1, size=len(self.dimensions))
            particle = Particle(self, position)
            self.particles.append(particle)
            self.add_to_population(particle.pbest_day)
            self.offer_gbest(particle.pbest_day, particle.position)

    def run_iteration(self) -> None:
        for particle in self.particles:
            particle.step()

    def position_day(self, position: np.ndarray) -> Day:
        """Day with one portion per non-zero dimension, masses rounded up."""
        day = self.new_day()
        for food, mass in zip(self.dimensions, position):
            if mass > 0:
                day.add_portion(Portion(food, math.ceil(mass)))
        return day

    def replace_pbest(self, particle: Particle, day: Day) -> None:
        self.remove_from_population(particle.pbest_day)
        particle.pbest_day = day
        self.add_to_population(day)

    def offer_gbest(self, day: Day, position: np.ndarray) -> None:
        """Make ``day`` the global best if it beats the current one."""
        if self.gbest_day is None or day.compare(self.gbest_day) < 0:
            self.gbest_day = day
            self.gbest = position.copy()
