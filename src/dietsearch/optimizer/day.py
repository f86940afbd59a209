"""Portions and Days: the candidate solutions every algorithm searches over."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from dietsearch.data.catalog import FOOD_MASS, Food
from dietsearch.data.nutrients import (
    NUTRIENT_COUNT,
    NUTRIENT_INDEX,
    NUTRIENTS,
    Nutrient,
    get_nutrient_unit,
)
from dietsearch.optimizer.fitness import Fitness, FitnessContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Portion:
    """A food with a custom mass in grams.

    Portions are immutable; changing a mass produces a new Portion.
    """

    food: Food
    mass: int

    def __post_init__(self) -> None:
        if self.mass <= 0:
            raise ValueError(f"Portion of {self.food.name} must have positive mass, got {self.mass}")
        object.__setattr__(self, "mass", int(self.mass))

    @property
    def multiplier(self) -> float:
        """Factor from the catalog's 100g reference to this portion's mass."""
        return self.mass / FOOD_MASS

    @property
    def contribution(self) -> np.ndarray:
        """Amount of every nutrient this portion adds to a Day."""
        return self.food.nutrients * self.multiplier

    def amount(self, nutrient: Nutrient) -> float:
        return float(self.food.nutrients[NUTRIENT_INDEX[nutrient]] * self.multiplier)

    def with_mass(self, mass: int) -> "Portion":
        return replace(self, mass=mass)

    def split(self, offset: int) -> tuple["Portion", "Portion"]:
        """Split into ``offset`` grams and the remaining grams of the same food.

        Raises:
            ValueError: If either side would be empty
        """
        if not 0 < offset < self.mass:
            raise ValueError(f"Invalid cutoff mass {offset} for a portion of {self.mass}g")
        return self.with_mass(offset), self.with_mass(self.mass - offset)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Portion):
            return NotImplemented
        return self.food == other.food and bool(
            np.array_equal(self.contribution, other.contribution)
        )

    def verbose(self) -> str:
        lines = [f"Name: {self.food.name}", "Nutrients:"]
        for nutrient in NUTRIENTS:
            lines.append(
                f"{nutrient.value}: {self.amount(nutrient)}{get_nutrient_unit(nutrient)}"
            )
        lines.append(f"Mass: {self.mass}g")
        return "\n".join(lines)


class Day:
    """A meal plan for one day: a list of Portions with no repeated food.

    Totals per nutrient and the total mass are cached and updated on every
    change, so fitness reads never re-sum the portions.
    """

    def __init__(self, context: FitnessContext):
        self.context = context
        self._portions: list[Portion] = []
        # Food key -> index in _portions
        self._index: dict[str, int] = {}
        self._amounts = np.zeros(NUTRIENT_COUNT)
        # True while _amounts may be referenced by a clone
        self._shared = False
        self.mass = 0
        # Incremented on every change; lets caches detect stale entries
        self.version = 0
        self.fitness: Fitness = context.new_fitness(self)

    def copy(self) -> "Day":
        """An independent Day with the same portions.

        The nutrient totals are shared until either Day changes.
        """
        clone = Day.__new__(Day)
        clone.context = self.context
        clone._portions = list(self._portions)
        clone._index = dict(self._index)
        clone._amounts = self._amounts
        clone._shared = True
        self._shared = True
        clone.mass = self.mass
        clone.version = 0
        clone.fitness = self.fitness.copy_for(clone)
        return clone

    # --- Portion list operations

    @property
    def portions(self) -> tuple[Portion, ...]:
        return tuple(self._portions)

    def __len__(self) -> int:
        return len(self._portions)

    def index_of(self, food: Food) -> Optional[int]:
        return self._index.get(food.key)

    def add_portion(self, portion: Portion) -> None:
        """Add a portion, merging it into the existing portion of the same food."""
        existing = self._index.get(portion.food.key)
        if existing is not None:
            merged = self._portions[existing]
            self._portions[existing] = merged.with_mass(merged.mass + portion.mass)
        else:
            self._index[portion.food.key] = len(self._portions)
            self._portions.append(portion)

        self._apply_mass_change(portion.food, portion.mass)

    def remove_portion(self, index: int) -> bool:
        """Remove the portion at ``index``.

        Returns:
            False, leaving the Day unchanged, if it is the only portion
        """
        if len(self._portions) <= 1:
            logger.debug("Refused to remove the last portion of a Day")
            return False

        portion = self._portions.pop(index)
        self._index = {p.food.key: i for i, p in enumerate(self._portions)}
        self._apply_mass_change(portion.food, -portion.mass)
        return True

    def set_portion_mass(self, index: int, mass: int) -> None:
        """Set the mass of the portion at ``index``; ``mass`` must be positive."""
        portion = self._portions[index]
        self._portions[index] = portion.with_mass(mass)
        self._apply_mass_change(portion.food, self._portions[index].mass - portion.mass)

    def _apply_mass_change(self, food: Food, mass_change: int) -> None:
        if mass_change == 0:
            return

        if self._shared:
            self._amounts = self._amounts.copy()
            self._shared = False

        delta = food.nutrients * (mass_change / FOOD_MASS)
        self._amounts += delta

        for i in np.flatnonzero(delta):
            self.fitness.set_nutrient_outdated(int(i))
        # The mass overshoot penalty depends on portion masses too
        self.fitness.set_outdated()

        self.mass += mass_change
        self.version += 1

    # --- Nutrient totals

    @property
    def nutrient_amounts(self) -> np.ndarray:
        """Read-only view of the total of every nutrient."""
        view = self._amounts.view()
        view.setflags(write=False)
        return view

    def amount(self, nutrient: Nutrient) -> float:
        return float(self._amounts[NUTRIENT_INDEX[nutrient]])

    # --- Comparison

    def compare(self, other: "Day") -> int:
        return self.fitness.compare(other.fitness)

    def __lt__(self, other: "Day") -> bool:
        return self.compare(other) < 0

    def __gt__(self, other: "Day") -> bool:
        return self.compare(other) > 0

    def same_portions(self, other: "Day") -> bool:
        """Whether both Days hold identical portions, in any order."""
        if len(self._portions) != len(other._portions):
            return False
        return all(any(p == q for q in other._portions) for p in self._portions)

    def verbose(self) -> str:
        lines = [
            f"{nutrient.value}: {self.amount(nutrient)}{get_nutrient_unit(nutrient)}"
            for nutrient in NUTRIENTS
        ]
        lines.append(f"Mass: {self.mass}g")
        return "\n".join(lines)

    def __repr__(self) -> str:
        foods = ", ".join(f"{p.food.name} {p.mass}g" for p in self._portions)
        return f"Day([{foods}])"
