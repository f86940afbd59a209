"""Search engine for meal plans."""

from dietsearch.optimizer.aco import AntColony
from dietsearch.optimizer.algorithm import Algorithm, build_algorithm
from dietsearch.optimizer.constraints import ConstraintData, ConstraintSet
from dietsearch.optimizer.day import Day, Portion
from dietsearch.optimizer.ga import GeneticAlgorithm
from dietsearch.optimizer.models import (
    AlgorithmType,
    ConfigurationError,
    ConstraintKind,
    CurveType,
    DietSearchError,
    EmptyCatalogError,
    FitnessApproach,
    SelectionMethod,
)
from dietsearch.optimizer.pso import ParticleSwarm

__all__ = [
    "Algorithm",
    "AlgorithmType",
    "AntColony",
    "ConfigurationError",
    "ConstraintData",
    "ConstraintKind",
    "ConstraintSet",
    "CurveType",
    "Day",
    "DietSearchError",
    "EmptyCatalogError",
    "FitnessApproach",
    "GeneticAlgorithm",
    "ParticleSwarm",
    "Portion",
    "SelectionMethod",
    "build_algorithm",
]
