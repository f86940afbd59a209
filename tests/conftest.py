"""Pytest fixtures for dietsearch tests."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from dietsearch.config.settings import RunConfig
from dietsearch.data.catalog import Food
from dietsearch.data.nutrients import Nutrient
from dietsearch.optimizer.constraints import ConstraintData, ConstraintSet
from dietsearch.optimizer.day import Day, Portion
from dietsearch.optimizer.fitness import FitnessContext
from dietsearch.optimizer.models import ConstraintKind, FitnessApproach
from dietsearch.optimizer.pareto import ParetoHierarchy


@pytest.fixture
def sample_foods() -> list[Food]:
    """Five foods with realistic amounts per 100g."""
    return [
        Food.from_amounts(
            "Chicken breast",
            {Nutrient.KCAL: 165, Nutrient.PROTEIN: 31, Nutrient.FAT: 3.6, Nutrient.CARBS: 0},
            group="meat",
        ),
        Food.from_amounts(
            "Brown rice",
            {Nutrient.KCAL: 123, Nutrient.PROTEIN: 2.7, Nutrient.FAT: 1, Nutrient.CARBS: 26},
            group="grain",
        ),
        Food.from_amounts(
            "Broccoli",
            {
                Nutrient.KCAL: 34,
                Nutrient.PROTEIN: 2.8,
                Nutrient.FAT: 0.4,
                Nutrient.CARBS: 7,
                Nutrient.VIT_C: 89,
            },
            group="vegetable",
        ),
        Food.from_amounts(
            "Eggs",
            {Nutrient.KCAL: 143, Nutrient.PROTEIN: 13, Nutrient.FAT: 10, Nutrient.CARBS: 0.7},
            group="dairy_eggs",
        ),
        Food.from_amounts(
            "Olive oil",
            {Nutrient.KCAL: 884, Nutrient.FAT: 100, Nutrient.SAT_FAT: 14},
            group="oil",
        ),
    ]


@pytest.fixture
def chicken(sample_foods) -> Food:
    return sample_foods[0]


@pytest.fixture
def rice(sample_foods) -> Food:
    return sample_foods[1]


@pytest.fixture
def broccoli(sample_foods) -> Food:
    return sample_foods[2]


@pytest.fixture
def macro_constraints() -> list[ConstraintData]:
    """Converge on 2000 kcal and 150g protein, keep fat under 100g."""
    return [
        ConstraintData(
            nutrient=Nutrient.KCAL,
            kind=ConstraintKind.CONVERGE,
            goal=2000,
            max_value=4000,
        ),
        ConstraintData(
            nutrient=Nutrient.PROTEIN,
            kind=ConstraintKind.CONVERGE,
            goal=150,
            max_value=400,
        ),
        ConstraintData(
            nutrient=Nutrient.FAT,
            kind=ConstraintKind.MINIMISE,
            max_value=100,
        ),
    ]


@pytest.fixture
def summed_context(macro_constraints) -> FitnessContext:
    return FitnessContext(constraints=ConstraintSet(macro_constraints))


@pytest.fixture
def pareto_context(macro_constraints) -> FitnessContext:
    return FitnessContext(
        constraints=ConstraintSet(macro_constraints),
        approach=FitnessApproach.PARETO,
        hierarchy=ParetoHierarchy(),
    )


@pytest.fixture
def make_day():
    """Build a Day from (food, mass) pairs."""

    def _make(context: FitnessContext, *portions: tuple[Food, int]) -> Day:
        day = Day(context)
        for food, mass in portions:
            day.add_portion(Portion(food, mass))
        return day

    return _make


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture
def run_config(macro_constraints) -> RunConfig:
    """Small, seeded configuration that runs quickly."""
    return RunConfig(
        seed=7,
        population_size=8,
        min_portion_mass=50,
        max_portion_mass=300,
        constraints=macro_constraints,
    )



@pytest.fixture(autouse=True)
def reset_dietsearch_logger():
    """Undo the handler the CLI installs so caplog sees later records."""
    yield
    logger = logging.getLogger("dietsearch")
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
