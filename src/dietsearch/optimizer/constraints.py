"""Per-nutrient constraint curves.

A constraint maps the total amount of one nutrient in a Day to a penalty.
The lower the penalty, the better the amount; ``inf`` marks an infeasible
amount. The weighted penalty is ``weight * unweighted(amount)``.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml

from dietsearch.data.nutrients import (
    NUTRIENT_COUNT,
    NUTRIENT_INDEX,
    NUTRIENTS,
    Nutrient,
    get_nutrient,
)
from dietsearch.optimizer.models import ConfigurationError, ConstraintKind, CurveType
from dietsearch.optimizer.tools import approx, approx_less_than, normalise_penalty

# Energy per gram of each macronutrient
CALORIES_PER_GRAM_PROTEIN = 4.0
CALORIES_PER_GRAM_FAT = 9.0
CALORIES_PER_GRAM_CARBS = 4.0


@dataclass
class ConstraintData:
    """Parameters for one nutrient's constraint.

    ``min_value <= goal <= max_value`` must hold, and ``weight`` must be
    non-negative. ``tolerance`` is only used by converge constraints; when
    omitted, the distance from the goal to ``min_value``/``max_value`` is used
    on each side.
    """

    nutrient: Nutrient
    kind: ConstraintKind = ConstraintKind.NULL
    min_value: float = 0.0
    max_value: float = math.inf
    goal: Optional[float] = None
    tolerance: Optional[float] = None
    weight: float = 1.0
    curve: CurveType = CurveType.EXPONENTIAL

    def validate(self) -> None:
        """Check the parameters are consistent.

        Raises:
            ConfigurationError: Describing the first invalid parameter found
        """
        name = self.nutrient.value

        if self.weight < 0:
            raise ConfigurationError(
                f"{name}: constraint weight ({self.weight}) must be non-negative",
                field="weight",
            )

        if self.kind == ConstraintKind.NULL:
            return

        if self.min_value < 0:
            raise ConfigurationError(
                f"{name}: min ({self.min_value}) must be non-negative", field="min"
            )

        if self.min_value > self.max_value:
            raise ConfigurationError(
                f"{name}: min ({self.min_value}) is greater than max ({self.max_value})",
                field="min",
            )

        if self.goal is not None and not (self.min_value <= self.goal <= self.max_value):
            raise ConfigurationError(
                f"{name}: goal ({self.goal}) is out of range. It must satisfy "
                f"0 <= min ({self.min_value}) <= goal <= max ({self.max_value})",
                field="goal",
            )

        if self.kind == ConstraintKind.CONVERGE:
            if self.goal is None:
                raise ConfigurationError(
                    f"{name}: converge constraint needs a goal", field="goal"
                )
            if self.tolerance is not None and self.tolerance <= 0:
                raise ConfigurationError(
                    f"{name}: tolerance ({self.tolerance}) must be positive",
                    field="tolerance",
                )
            if self.tolerance is None and math.isinf(self.max_value):
                raise ConfigurationError(
                    f"{name}: converge constraint needs a tolerance or a finite max",
                    field="tolerance",
                )

        if self.kind == ConstraintKind.MINIMISE and not (
            0 < self.max_value < math.inf
        ):
            raise ConfigurationError(
                f"{name}: minimise constraint needs a positive, finite max "
                f"(got {self.max_value})",
                field="max",
            )


class Constraint(ABC):
    """Abstract base class for constraint curves."""

    kind: ConstraintKind

    def __init__(self, weight: float = 1.0):
        self.weight = weight

    @property
    @abstractmethod
    def best_value(self) -> float:
        """The amount with the lowest penalty."""

    @abstractmethod
    def unweighted(self, amount: float) -> float:
        """Penalty for ``amount`` before the weight is applied."""

    def fitness(self, amount: float) -> float:
        """Weighted penalty for ``amount``; never NaN, never negative infinity."""
        penalty = normalise_penalty(self.unweighted(amount))
        if math.isinf(penalty):
            return penalty
        return normalise_penalty(self.weight * penalty)

    def verbose(self) -> str:
        return f"{type(self).__name__} (weight {self.weight})"


class NullConstraint(Constraint):
    """Renders a nutrient unconsidered; every amount scores 0."""

    kind = ConstraintKind.NULL

    @property
    def best_value(self) -> float:
        return 0.0

    def unweighted(self, amount: float) -> float:
        return 0.0

    def verbose(self) -> str:
        return "Unconstrained"


class HardConstraint(Constraint):
    """0 inside [min, max], infinite outside.

    Bounds are compared with an EPSILON margin so that float round-off at the
    boundary does not make a feasible amount infinite.
    """

    kind = ConstraintKind.HARD

    def __init__(self, min_value: float, max_value: float, weight: float = 1.0):
        super().__init__(weight)
        self.min_value = min_value
        self.max_value = max_value

    @property
    def best_value(self) -> float:
        return (self.min_value + self.max_value) / 2

    def out_of_bounds(self, amount: float) -> bool:
        return approx_less_than(amount, self.min_value) or approx_less_than(
            self.max_value, amount
        )

    def unweighted(self, amount: float) -> float:
        if self.out_of_bounds(amount):
            return math.inf
        return 0.0

    def verbose(self) -> str:
        return f"Hard constraint [{self.min_value}, {self.max_value}]"


class ConvergeConstraint(HardConstraint):
    """Encourages convergence on a goal, and is a hard constraint at the same time.

    The penalty is 0 at the goal and rises to infinity at ``goal - lower_tolerance``
    and ``goal + upper_tolerance``. Outside [min, max] it is also infinite.

    Exponential curve, with d the distance from the goal and t the tolerance
    on that side:

        y = s * (t^2 / (t^2 - d^2) - 1),  s = goal^2 / t

    Manhattan curve: y = d.
    """

    kind = ConstraintKind.CONVERGE

    def __init__(
        self,
        goal: float,
        tolerance: Optional[float] = None,
        min_value: float = 0.0,
        max_value: float = math.inf,
        weight: float = 1.0,
        curve: CurveType = CurveType.EXPONENTIAL,
    ):
        super().__init__(min_value, max_value, weight)
        self.goal = goal
        self.curve = curve
        self.lower_tolerance = tolerance if tolerance is not None else goal - min_value
        self.upper_tolerance = tolerance if tolerance is not None else max_value - goal

    @property
    def best_value(self) -> float:
        return self.goal

    def unweighted(self, amount: float) -> float:
        if self.out_of_bounds(amount):
            return math.inf
        if approx(amount, self.goal):
            return 0.0

        tolerance = self.upper_tolerance if amount > self.goal else self.lower_tolerance
        distance = abs(amount - self.goal)
        if distance >= tolerance:
            return math.inf

        if self.curve == CurveType.MANHATTAN:
            return distance
        return self._exponential(distance, tolerance)

    def _exponential(self, distance: float, tolerance: float) -> float:
        scale = self.goal**2 / tolerance if self.goal > 0 else tolerance
        denominator = tolerance**2 - distance**2

        # At the limit; removing this allows -inf through. Dividing by the
        # tolerance keeps the check relative for small tolerances.
        if approx(denominator / tolerance, 0):
            return math.inf
        return scale * (tolerance**2 / denominator - 1)

    def verbose(self) -> str:
        return (
            f"Converge at {self.goal} (-{self.lower_tolerance}/+{self.upper_tolerance}, "
            f"{self.curve.value})"
        )


class MinimiseConstraint(ConvergeConstraint):
    """Encourages minimisation; 0 at 0 and a hard constraint at the limit.

    The converge curve with its goal at 0 and its tolerance equal to the limit.
    """

    kind = ConstraintKind.MINIMISE

    def __init__(
        self,
        limit: float,
        weight: float = 1.0,
        curve: CurveType = CurveType.EXPONENTIAL,
    ):
        super().__init__(
            goal=0.0,
            tolerance=limit,
            min_value=0.0,
            max_value=limit,
            weight=weight,
            curve=curve,
        )
        self.limit = limit

    def unweighted(self, amount: float) -> float:
        if approx(amount, 0):
            return 0.0
        return super().unweighted(amount)

    def verbose(self) -> str:
        return f"Minimise below {self.limit} ({self.curve.value})"


def build_constraint(data: ConstraintData) -> Constraint:
    """Construct the constraint described by ``data``.

    Raises:
        ConfigurationError: If the parameters are invalid
    """
    data.validate()

    if data.kind == ConstraintKind.NULL:
        return NullConstraint(data.weight)
    if data.kind == ConstraintKind.HARD:
        return HardConstraint(data.min_value, data.max_value, data.weight)
    if data.kind == ConstraintKind.CONVERGE:
        return ConvergeConstraint(
            goal=float(data.goal),
            tolerance=data.tolerance,
            min_value=data.min_value,
            max_value=data.max_value,
            weight=data.weight,
            curve=data.curve,
        )
    if data.kind == ConstraintKind.MINIMISE:
        return MinimiseConstraint(data.max_value, data.weight, data.curve)

    raise ConfigurationError(f"Invalid constraint kind: {data.kind}", field="kind")


class ConstraintSet:
    """One constraint per nutrient, in ``NUTRIENTS`` order.

    Nutrients without explicit data get a NullConstraint.
    """

    def __init__(self, data: Iterable[ConstraintData] = ()):
        self.data: dict[Nutrient, ConstraintData] = {}
        for item in data:
            if item.nutrient in self.data:
                raise ConfigurationError(
                    f"{item.nutrient.value}: constraint defined more than once",
                    field="nutrient",
                )
            self.data[item.nutrient] = item

        self._constraints: list[Constraint] = [
            build_constraint(self.data[n]) if n in self.data else NullConstraint()
            for n in NUTRIENTS
        ]

    def __len__(self) -> int:
        return NUTRIENT_COUNT

    def __getitem__(self, key: Union[Nutrient, int]) -> Constraint:
        if isinstance(key, Nutrient):
            key = NUTRIENT_INDEX[key]
        return self._constraints[key]

    def __iter__(self):
        return iter(self._constraints)

    def fitness(self, index: int, amount: float) -> float:
        """Weighted penalty of the nutrient at ``index`` for ``amount``."""
        return self._constraints[index].fitness(amount)

    def num_active(self) -> int:
        """Number of constraints that are not NullConstraints."""
        return sum(1 for c in self._constraints if not isinstance(c, NullConstraint))


def calories_to_macros(calories: float) -> tuple[float, float, float]:
    """Split calories evenly between protein, fat and carbs.

    Returns:
        (protein_g, fat_g, carbs_g)
    """
    each = calories / 3
    return (
        each / CALORIES_PER_GRAM_PROTEIN,
        each / CALORIES_PER_GRAM_FAT,
        each / CALORIES_PER_GRAM_CARBS,
    )


def default_constraints(
    kcal_goal: float,
    male: bool = True,
    age_years: int = 18,
    weight_kg: float = 85.0,
    pregnant: bool = False,
    needs_vit_d: bool = False,
) -> list[ConstraintData]:
    """Baseline constraint profile for a daily calorie goal.

    Macros converge on an even calorie split; sugar and fats are minimised;
    micronutrients converge on NHS recommended amounts with the highest
    "definitely safe" amount as max. Cost is unconstrained.
    """

    def converge(nutrient: Nutrient, goal: float, max_value: float, weight: float):
        return ConstraintData(
            nutrient=nutrient,
            kind=ConstraintKind.CONVERGE,
            goal=goal,
            max_value=max_value,
            weight=weight,
        )

    def minimise(nutrient: Nutrient, max_value: float, weight: float):
        return ConstraintData(
            nutrient=nutrient,
            kind=ConstraintKind.MINIMISE,
            max_value=max_value,
            weight=weight,
        )

    protein_goal, fat_goal, carbs_goal = calories_to_macros(kcal_goal)
    protein_max, fat_max, carbs_max = calories_to_macros(kcal_goal * 1.5)
    more_iron = not male and 19 <= age_years <= 49

    return [
        converge(Nutrient.KCAL, kcal_goal, kcal_goal * 1.5, 2),
        converge(Nutrient.PROTEIN, protein_goal, protein_max, 2),
        converge(Nutrient.FAT, fat_goal, fat_max, 2),
        converge(Nutrient.CARBS, carbs_goal, carbs_max, 2),
        minimise(Nutrient.SUGAR, 30.0, 3),
        minimise(Nutrient.SAT_FAT, 30.0 if male else 20.0, 3),
        minimise(Nutrient.TRANS_FAT, 5.0, 3),
        converge(Nutrient.CALCIUM, 700.0, 1500.0, 1),
        converge(Nutrient.IODINE, 140.0, 500.0, 1),
        converge(Nutrient.IRON, 14.8 if more_iron else 8.7, 17.0, 1),
        converge(Nutrient.VIT_A, 700.0 if male else 600.0, 1500.0, 1),
        converge(Nutrient.VIT_B1, 1.0 if male else 0.8, 100.0, 1),
        converge(Nutrient.VIT_B2, 1.3 if male else 1.1, 40.0, 1),
        converge(Nutrient.VIT_B3, 16.5 if male else 13.2, 17.0, 1),
        converge(Nutrient.VIT_B6, 1.4 if male else 1.2, 10.0, 1),
        converge(Nutrient.VIT_B9, 400.0 if pregnant else 200.0, 1000.0, 1),
        converge(Nutrient.VIT_B12, 1.5, 2000.0, 1),
        converge(Nutrient.VIT_C, 40.0, 1000.0, 1),
        converge(Nutrient.VIT_D, 10.0 if needs_vit_d else 0.0, 100.0, 1),
        converge(Nutrient.VIT_E, 4.0 if male else 3.0, 540.0, 1),
        converge(Nutrient.VIT_K1, weight_kg, 1000.0, 1),
        ConstraintData(nutrient=Nutrient.COST, kind=ConstraintKind.NULL),
    ]


def parse_constraints(data: dict[str, Any]) -> list[ConstraintData]:
    """Parse a ``{nutrient_name: {type, min, max, goal, tolerance, weight, curve}}`` mapping.

    Raises:
        KeyError: If a nutrient name is unknown
        ValueError: If a constraint type or curve is unknown
    """
    result = []
    for nutrient_name, params in data.items():
        params = params or {}
        min_val = params.get("min")
        max_val = params.get("max")
        goal = params.get("goal")
        tolerance = params.get("tolerance")

        result.append(
            ConstraintData(
                nutrient=get_nutrient(nutrient_name),
                kind=ConstraintKind(str(params.get("type", "null")).lower()),
                min_value=float(min_val) if min_val is not None else 0.0,
                max_value=float(max_val) if max_val is not None else math.inf,
                goal=float(goal) if goal is not None else None,
                tolerance=float(tolerance) if tolerance is not None else None,
                weight=float(params.get("weight", 1.0)),
                curve=CurveType(str(params.get("curve", "exponential")).lower()),
            )
        )
    return result


def load_constraints_from_yaml(yaml_path: Path) -> list[ConstraintData]:
    """Parse a YAML constraint profile.

    Args:
        yaml_path: Path to a YAML file with a top-level ``constraints`` mapping

    Returns:
        List of ConstraintData, one per listed nutrient

    Raises:
        FileNotFoundError: If file doesn't exist
        KeyError: If nutrient name is unknown
    """
    with open(yaml_path) as f:
        data = yaml.safe_load(f) or {}

    return parse_constraints(data.get("constraints", {}))
