"""Enums and exceptions shared by the search engine."""

from __future__ import annotations

from enum import Enum


class AlgorithmType(Enum):
    """Search algorithms a run can use."""

    GA = "ga"
    ACO = "aco"
    PSO = "pso"


class FitnessApproach(Enum):
    """How a Day's constraint penalties are combined into one fitness."""

    SUMMED = "summed"  # Weighted sum of penalties
    PARETO = "pareto"  # Non-dominated rank (GA only)


class SelectionMethod(Enum):
    """GA selection operators."""

    TOURNAMENT = "tournament"
    RANK = "rank"


class ConstraintKind(Enum):
    """Constraint curve families."""

    NULL = "null"  # Nutrient is ignored
    HARD = "hard"  # 0 inside [min, max], infinite outside
    CONVERGE = "converge"  # 0 at goal, infinite at goal +/- tolerance
    MINIMISE = "minimise"  # 0 at 0, infinite at the limit (max)


class CurveType(Enum):
    """Shape of a converge curve between the goal and its tolerance."""

    EXPONENTIAL = "exponential"
    MANHATTAN = "manhattan"


class ParetoComparison(Enum):
    """Outcome of comparing two fitness vectors.

    Values are ordered so that a larger value is a worse outcome for the
    left-hand side.
    """

    DOMINATES = -1
    MUTUALLY_NON_DOMINATING = 0
    DOMINATED = 1


# Custom exceptions


class DietSearchError(Exception):
    """Base exception for dietsearch errors."""

    pass


class ConfigurationError(DietSearchError):
    """Raised when a constraint or algorithm parameter is invalid.

    Raised eagerly, before any iteration runs.
    """

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class EmptyCatalogError(ConfigurationError):
    """Raised when an algorithm is given no foods to search over."""

    pass
