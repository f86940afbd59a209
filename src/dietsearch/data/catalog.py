"""Food catalog: the immutable set of foods a search draws portions from."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import numpy as np
import yaml

from dietsearch.data.nutrients import (
    NUTRIENT_COUNT,
    NUTRIENT_INDEX,
    Nutrient,
    get_nutrient,
)

# Nutrient amounts are given per this many grams of food
FOOD_MASS = 100


@dataclass(frozen=True, eq=False)
class Food:
    """A food from the catalog.

    Nutrient amounts are per 100g and indexed by ``NUTRIENT_INDEX``. The
    vector is made read-only on construction.
    """

    name: str
    nutrients: np.ndarray
    group: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        vector = np.array(self.nutrients, dtype=float)
        if vector.shape != (NUTRIENT_COUNT,):
            raise ValueError(
                f"{self.name}: expected {NUTRIENT_COUNT} nutrient amounts, "
                f"got shape {vector.shape}"
            )
        vector.setflags(write=False)
        object.__setattr__(self, "nutrients", vector)

    @classmethod
    def from_amounts(
        cls,
        name: str,
        amounts: Mapping[Nutrient, float],
        group: str = "",
        description: str = "",
    ) -> "Food":
        """Build a food from a sparse nutrient mapping; missing nutrients are 0."""
        vector = np.zeros(NUTRIENT_COUNT)
        for nutrient, amount in amounts.items():
            vector[NUTRIENT_INDEX[nutrient]] = float(amount)
        return cls(name=name, nutrients=vector, group=group, description=description)

    @property
    def key(self) -> str:
        """Identity of the food type across copies of the catalog."""
        return f"{self.name}|{self.group}"

    def amount(self, nutrient: Nutrient) -> float:
        """Amount of a nutrient in 100g of this food."""
        return float(self.nutrients[NUTRIENT_INDEX[nutrient]])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Food):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Food({self.name!r}, group={self.group!r})"


@dataclass
class FoodCatalog:
    """An ordered, read-only collection of foods."""

    foods: list[Food] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.foods)

    def __iter__(self):
        return iter(self.foods)

    def __getitem__(self, index: int) -> Food:
        return self.foods[index]

    def find(self, name: str) -> Optional[Food]:
        """Return the first food with this name, or None."""
        return next((f for f in self.foods if f.name == name), None)


def load_catalog_from_yaml(yaml_path: Path) -> FoodCatalog:
    """Parse a YAML food list into a FoodCatalog.

    Expected layout::

        foods:
          - name: Chicken breast
            group: meat
            nutrients:
              kcal: 165
              protein: 31

    Args:
        yaml_path: Path to the YAML catalog file

    Returns:
        FoodCatalog with one Food per entry

    Raises:
        FileNotFoundError: If file doesn't exist
        KeyError: If a nutrient name is unknown
    """
    with open(yaml_path) as f:
        data = yaml.safe_load(f) or {}

    foods = []
    for entry in data.get("foods", []):
        amounts = {
            get_nutrient(name): float(amount)
            for name, amount in (entry.get("nutrients") or {}).items()
        }
        foods.append(
            Food.from_amounts(
                name=str(entry["name"]),
                amounts=amounts,
                group=str(entry.get("group", "")),
                description=str(entry.get("description", "")),
            )
        )

    return FoodCatalog(foods=foods)
