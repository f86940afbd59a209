"""Tests for the ant colony."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from dietsearch.optimizer import AntColony, build_algorithm
from dietsearch.optimizer.models import AlgorithmType


@pytest.fixture
def colony(sample_foods, run_config) -> AntColony:
    """Four-vertex colony without olive oil, so every path stays feasible."""
    run_config.algorithm = AlgorithmType.ACO
    run_config.min_portion_mass = 50
    run_config.max_portion_mass = 100
    run_config.aco.colony_portions = 4
    run_config.aco.colony_stagnation_iters = 5
    run_config.aco.phero_importance = 2.0
    return build_algorithm(sample_foods[:4], run_config)


class TestColonySetup:
    """Tests for the search graph built by init()."""

    def test_init_builds_graph(self, colony):
        colony.init()
        assert len(colony.vertices) == 4
        assert colony.fitnesses.shape == (4, 4)
        assert colony.pheromone.shape == (4, 4)
        assert np.all((colony.pheromone >= 0) & (colony.pheromone < 1))

    def test_edge_fitness_matrix(self, colony):
        colony.init()
        for i in range(4):
            for j in range(4):
                assert colony.fitnesses[i, j] == pytest.approx(colony.edge_fitness(i, j))
                assert colony.fitnesses[i, j] >= 0

    def test_one_ant_per_population_slot(self, colony):
        colony.init()
        assert len(colony.ants) == 8
        assert len(colony.population) == 8
        for ant in colony.ants:
            assert ant.path == [0]
            assert ant.day in colony.population


class TestVertexProbabilities:
    """Tests for choosing the next vertex."""

    def test_probabilities_sum_to_one(self, colony):
        colony.init()
        probabilities = colony.vertex_probabilities(0, {0})
        assert probabilities.sum() == pytest.approx(1.0)
        assert probabilities[0] == 0

    def test_visited_vertices_excluded(self, colony):
        colony.init()
        probabilities = colony.vertex_probabilities(0, {0, 2})
        assert probabilities[2] == 0
        assert probabilities.sum() == pytest.approx(1.0)

    def test_weighting(self, colony):
        """Test weights are pheromone^alpha times edge fitness^beta."""
        colony.init()
        colony.aco.alpha = 2.0
        colony.aco.beta = 1.0
        colony.pheromone[0, :] = [0.0, 1.0, 2.0, 1.0]
        colony.fitnesses[0, :] = [0.0, 3.0, 1.0, 0.0]

        probabilities = colony.vertex_probabilities(0, {0})
        # 1*3 and 4*1, vertex 3 has no weight
        np.testing.assert_allclose(probabilities, [0, 3 / 7, 4 / 7, 0])

    def test_all_infinite_edges(self, colony):
        colony.init()
        colony.fitnesses[:] = math.inf
        assert colony.vertex_probabilities(0, {0}).sum() == 0

    def test_ant_stops_when_nothing_reachable(self, colony, caplog):
        colony.init()
        colony.fitnesses[:] = math.inf
        ant = colony.ants[0]
        ant.reset()

        with caplog.at_level(logging.DEBUG, logger="dietsearch.optimizer.aco"):
            ant.run()

        assert ant.path == [0]
        assert "no finite edge" in caplog.text


class TestIteration:
    """Tests for ant walks and the pheromone update."""

    def test_paths_are_valid(self, colony):
        colony.init()
        for _ in range(6):
            colony.next_iteration()
            for ant in colony.ants:
                assert ant.path[0] == 0
                assert 1 <= len(ant.path) <= 4
                assert len(set(ant.path)) == len(ant.path)
                assert ant.day.mass == sum(colony.vertices[i].mass for i in ant.path)

    def test_population_size_is_stable(self, colony):
        colony.init()
        for _ in range(6):
            colony.next_iteration()
            assert len(colony.population) == 8

    def test_evaporation(self, colony):
        colony.init()
        colony.ants = []
        colony.aco.phero_evap_rate = 0.25
        colony.pheromone[:] = 1.0

        colony.update_pheromone()
        np.testing.assert_allclose(colony.pheromone, 0.75)

    def test_deposit_along_path(self, colony):
        colony.init()
        colony.pheromone[:] = 0.0

        colony.deposit([0, 2, 1], 4.0)

        assert colony.pheromone[0, 2] == pytest.approx(0.5)
        assert colony.pheromone[2, 1] == pytest.approx(0.5)
        assert colony.pheromone.sum() == pytest.approx(1.0)

    def test_no_deposit_for_infinite_or_single_vertex_paths(self, colony):
        colony.init()
        colony.pheromone[:] = 0.0

        colony.deposit([0, 1], math.inf)
        colony.deposit([0], 1.0)

        assert colony.pheromone.sum() == 0

    def test_elitist_tracks_best_path(self, colony):
        colony.aco.elitist = True
        colony.init()
        for _ in range(4):
            colony.next_iteration()

        assert colony.best_path is not None
        assert colony.best_path[0] == 0
        best_ant_fitness = min(ant.fitness for ant in colony.ants)
        assert colony._best_path_fitness <= best_ant_fitness


class TestRegeneration:
    """Tests for replacing the least visited vertex."""

    def test_replaces_least_visited_vertex(self, colony):
        colony.init()
        colony.pheromone[:] = 1.0
        colony.pheromone[:, 3] = 0.01
        kept = colony.vertices[:3]

        colony.regenerate_search_space()

        assert colony.vertices[:3] == kept
        for i in range(4):
            assert colony.fitnesses[i, 3] == pytest.approx(colony.edge_fitness(i, 3))
            assert colony.fitnesses[3, i] == pytest.approx(colony.edge_fitness(3, i))
        # Untouched edges keep their pheromone
        assert colony.pheromone[0, 1] == 1.0
        assert colony.pheromone[0, 3] < 1.0

    def test_best_path_through_replaced_vertex_is_dropped(self, colony):
        colony.init()
        colony.pheromone[:] = 1.0
        colony.pheromone[:, 3] = 0.0
        colony.best_path = [0, 3]

        colony.regenerate_search_space()

        assert colony.best_path is None

    def test_regenerates_every_stagnation_period(self, colony, monkeypatch):
        colony.init()
        calls = []
        monkeypatch.setattr(colony, "regenerate_search_space", lambda: calls.append(colony.iteration))

        for _ in range(12):
            colony.next_iteration()

        assert calls == [5, 10]
