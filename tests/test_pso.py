"""Tests for the particle swarm."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from dietsearch.optimizer import ParticleSwarm, build_algorithm
from dietsearch.optimizer.models import (
    AlgorithmType,
    ConfigurationError,
    FitnessApproach,
)


@pytest.fixture
def swarm(sample_foods, run_config) -> ParticleSwarm:
    run_config.algorithm = AlgorithmType.PSO
    return build_algorithm(sample_foods, run_config)


class TestSwarmSetup:
    """Tests for dimensions and the starting swarm."""

    def test_population_is_personal_bests(self, swarm):
        swarm.init()
        assert len(swarm.particles) == 8
        assert len(swarm.population) == 8
        pbest_ids = {id(p.pbest_day) for p in swarm.particles}
        assert {id(day) for day in swarm.population} == pbest_ids

    def test_positions_within_mass_range(self, swarm):
        swarm.init()
        for particle in swarm.particles:
            assert particle.position.shape == (5,)
            assert np.all((particle.position >= 50) & (particle.position <= 300))

    def test_gbest_is_best_pbest(self, swarm):
        swarm.init()
        for particle in swarm.particles:
            assert swarm.gbest_day.compare(particle.pbest_day) <= 0

    def test_dimensions_default_to_whole_catalog(self, swarm, sample_foods):
        assert swarm.dimensions == tuple(sample_foods)

    def test_dimensions_restrict_foods(self, sample_foods, run_config):
        run_config.algorithm = AlgorithmType.PSO
        run_config.pso.pso_dimensions = 2
        swarm = build_algorithm(sample_foods, run_config)
        swarm.init()

        assert len(swarm.dimensions) == 2
        assert set(swarm.dimensions) <= set(sample_foods)
        for day in swarm.population:
            assert {p.food for p in day.portions} <= set(swarm.dimensions)

    def test_pareto_rejected(self, sample_foods, run_config):
        run_config.algorithm = AlgorithmType.PSO
        run_config.fitness_approach = FitnessApproach.PARETO
        with pytest.raises(ConfigurationError):
            build_algorithm(sample_foods, run_config)


class TestPositionDay:
    """Tests for turning a position into a Day."""

    def test_masses_rounded_up_and_zeros_skipped(self, swarm, rice, sample_foods):
        day = swarm.position_day(np.array([0.0, 1.2, 0.0, 49.01, 0.0]))
        assert [(p.food, p.mass) for p in day.portions] == [
            (rice, 2),
            (sample_foods[3], 50),
        ]

    def test_origin_gives_empty_day(self, swarm):
        assert len(swarm.position_day(np.zeros(5))) == 0


class TestSwarmIteration:
    """Tests for particle movement."""

    def test_positions_never_negative(self, swarm):
        swarm.init()
        for _ in range(10):
            swarm.next_iteration()
            for particle in swarm.particles:
                assert np.all(particle.position >= 0)

    def test_personal_best_never_worse(self, swarm):
        swarm.init()
        previous = [p.pbest_day for p in swarm.particles]
        for _ in range(10):
            swarm.next_iteration()
            for before, particle in zip(previous, swarm.particles):
                assert particle.pbest_day.compare(before) <= 0
            previous = [p.pbest_day for p in swarm.particles]

    def test_population_tracks_replaced_bests(self, swarm):
        swarm.init()
        for _ in range(10):
            swarm.next_iteration()
            assert len(swarm.population) == 8
            pbest_ids = {id(p.pbest_day) for p in swarm.particles}
            assert {id(day) for day in swarm.population} == pbest_ids

    def test_particle_at_origin_is_skipped(self, swarm, caplog):
        swarm.init()
        particle = swarm.particles[0]
        pbest_day = particle.pbest_day
        particle.position = np.zeros(5)
        particle.velocity = np.zeros(5)

        with caplog.at_level(logging.DEBUG, logger="dietsearch.optimizer.pso"):
            particle.step()

        assert particle.pbest_day is pbest_day
        assert "origin" in caplog.text
