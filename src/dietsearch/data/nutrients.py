"""Nutrient dimensions and lookup utilities.

Every food in a catalog carries one amount per nutrient, in the order of the
``Nutrient`` enum. All nutrient values are stored per 100g of food.
"""

from __future__ import annotations

from enum import Enum


class Nutrient(Enum):
    """The nutrient dimensions a Day is scored on."""

    # Proximates
    PROTEIN = "protein"
    FAT = "fat"
    CARBS = "carbs"
    KCAL = "kcal"
    SUGAR = "sugar"
    SAT_FAT = "sat_fat"
    TRANS_FAT = "trans_fat"

    # Inorganics
    CALCIUM = "calcium"
    IODINE = "iodine"
    IRON = "iron"

    # Vitamins
    VIT_A = "vit_a"
    VIT_B1 = "vit_b1"
    VIT_B2 = "vit_b2"
    VIT_B3 = "vit_b3"
    VIT_B6 = "vit_b6"
    VIT_B9 = "vit_b9"
    VIT_B12 = "vit_b12"
    VIT_C = "vit_c"
    VIT_D = "vit_d"
    VIT_E = "vit_e"
    VIT_K1 = "vit_k1"

    # Miscellaneous
    COST = "cost"


NUTRIENTS: list[Nutrient] = list(Nutrient)
NUTRIENT_COUNT: int = len(NUTRIENTS)

# Position of each nutrient in a nutrient vector
NUTRIENT_INDEX: dict[Nutrient, int] = {n: i for i, n in enumerate(NUTRIENTS)}

NUTRIENT_UNITS: dict[Nutrient, str] = {
    Nutrient.PROTEIN: "g",
    Nutrient.FAT: "g",
    Nutrient.CARBS: "g",
    Nutrient.KCAL: "kcal",
    Nutrient.SUGAR: "g",
    Nutrient.SAT_FAT: "g",
    Nutrient.TRANS_FAT: "g",
    Nutrient.CALCIUM: "mg",
    Nutrient.IODINE: "mcg",
    Nutrient.IRON: "mg",
    Nutrient.VIT_A: "mcg",
    Nutrient.VIT_B1: "mg",
    Nutrient.VIT_B2: "mg",
    Nutrient.VIT_B3: "mg",
    Nutrient.VIT_B6: "mg",
    Nutrient.VIT_B9: "mcg",
    Nutrient.VIT_B12: "mcg",
    Nutrient.VIT_C: "mg",
    Nutrient.VIT_D: "mcg",
    Nutrient.VIT_E: "mg",
    Nutrient.VIT_K1: "mcg",
    Nutrient.COST: "£",
}

NUTRIENT_DISPLAY_NAMES: dict[Nutrient, str] = {
    Nutrient.PROTEIN: "Protein",
    Nutrient.FAT: "Fat",
    Nutrient.CARBS: "Carbohydrates",
    Nutrient.KCAL: "Calories",
    Nutrient.SUGAR: "Sugar",
    Nutrient.SAT_FAT: "Saturated Fat",
    Nutrient.TRANS_FAT: "Trans Fat",
    Nutrient.CALCIUM: "Calcium",
    Nutrient.IODINE: "Iodine",
    Nutrient.IRON: "Iron",
    Nutrient.VIT_A: "Vitamin A",
    Nutrient.VIT_B1: "Thiamin (B1)",
    Nutrient.VIT_B2: "Riboflavin (B2)",
    Nutrient.VIT_B3: "Niacin (B3)",
    Nutrient.VIT_B6: "Vitamin B6",
    Nutrient.VIT_B9: "Folate (B9)",
    Nutrient.VIT_B12: "Vitamin B12",
    Nutrient.VIT_C: "Vitamin C",
    Nutrient.VIT_D: "Vitamin D",
    Nutrient.VIT_E: "Vitamin E",
    Nutrient.VIT_K1: "Vitamin K1",
    Nutrient.COST: "Cost",
}

# Alternative spellings accepted in config files
NUTRIENT_ALIASES: dict[str, Nutrient] = {
    "energy": Nutrient.KCAL,
    "calories": Nutrient.KCAL,
    "total_fat": Nutrient.FAT,
    "carbohydrate": Nutrient.CARBS,
    "carbohydrates": Nutrient.CARBS,
    "saturated_fat": Nutrient.SAT_FAT,
    "satfat": Nutrient.SAT_FAT,
    "transfat": Nutrient.TRANS_FAT,
    "vitamin_a": Nutrient.VIT_A,
    "thiamin": Nutrient.VIT_B1,
    "riboflavin": Nutrient.VIT_B2,
    "niacin": Nutrient.VIT_B3,
    "vitamin_b6": Nutrient.VIT_B6,
    "folate": Nutrient.VIT_B9,
    "vitamin_b12": Nutrient.VIT_B12,
    "vitamin_c": Nutrient.VIT_C,
    "vitamin_d": Nutrient.VIT_D,
    "vitamin_e": Nutrient.VIT_E,
    "vitamin_k": Nutrient.VIT_K1,
}


def get_nutrient(name: str) -> Nutrient:
    """Look up a nutrient by name.

    Args:
        name: Nutrient name (e.g., 'protein', 'vit_c', 'vitamin_c', 'Sat Fat')

    Returns:
        The matching Nutrient

    Raises:
        KeyError: If nutrient name not found
    """
    name_lower = name.lower().replace(" ", "_").replace("-", "_")
    if name_lower in NUTRIENT_ALIASES:
        return NUTRIENT_ALIASES[name_lower]
    try:
        return Nutrient(name_lower)
    except ValueError:
        raise KeyError(
            f"Unknown nutrient: {name}. "
            f"Available nutrients: {', '.join(n.value for n in NUTRIENTS)}"
        ) from None


def get_nutrient_unit(nutrient: Nutrient) -> str:
    """Get the unit for a nutrient (e.g., 'g', 'mg', 'mcg', 'kcal')."""
    return NUTRIENT_UNITS[nutrient]


def get_nutrient_display_name(nutrient: Nutrient) -> str:
    """Get a user-friendly display name for a nutrient."""
    return NUTRIENT_DISPLAY_NAMES.get(nutrient, nutrient.value)
