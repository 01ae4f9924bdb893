"""Domain models for utterance classification and extracted quantities."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class Intent(Enum):
    """Purpose of a single user utterance."""

    MEAL_LOG = "meal-log"
    WEIGHT_LOG = "weight-log"
    NUTRITION_QUESTION = "nutrition-question"
    UNRECOGNIZED = "unrecognized"


class MealType(Enum):
    """Meal slot a logged meal belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


WeightUnit = Literal["lbs", "kg"]


@dataclass(frozen=True)
class CaloriesQuantity:
    """Calorie amount in kcal."""

    value: int
    kind: Literal["calories"] = "calories"


@dataclass(frozen=True)
class WeightQuantity:
    """Body weight normalized to pounds.

    ``unit`` keeps the unit the user wrote so replies can mention it.
    """

    value: float
    unit: WeightUnit = "lbs"
    kind: Literal["weight"] = "weight"


ExtractedQuantity = CaloriesQuantity | WeightQuantity


@dataclass(frozen=True)
class MacroSplit:
    """Gram amounts derived from a calorie total."""

    protein_g: int
    carbs_g: int
    fat_g: int
