"""Food-calorie lexicon and naive calorie estimation.

The numbers are coarse defaults meant to give the user something to confirm
or adjust, not nutritional facts.
"""

import math

from niblet.domain.intents import CaloriesQuantity, MacroSplit, MealType

FOOD_CALORIES: dict[str, int] = {
    "sandwich": 350,
    "burger": 550,
    "pizza": 285,
    "salad": 200,
    "pasta": 400,
    "rice": 200,
    "chicken": 250,
    "steak": 450,
    "salmon": 350,
    "fries": 365,
    "burrito": 500,
    "taco": 170,
    "sushi": 300,
    "soup": 150,
    "oatmeal": 150,
    "cereal": 200,
    "pancake": 175,
    "waffle": 220,
    "bagel": 280,
    "toast": 75,
    "egg": 78,
    "bacon": 45,
    "yogurt": 150,
    "smoothie": 250,
    "apple": 95,
    "banana": 105,
    "orange": 60,
    "avocado": 240,
    "cookie": 150,
    "donut": 250,
    "cake": 350,
    "ice cream": 270,
    "chocolate": 210,
    "chips": 150,
    "protein bar": 200,
    "coffee": 5,
    "latte": 190,
    "soda": 140,
    "beer": 155,
    "wine": 125,
}

MEAL_TYPE_DEFAULTS: dict[MealType, int] = {
    MealType.BREAKFAST: 400,
    MealType.LUNCH: 600,
    MealType.DINNER: 700,
    MealType.SNACK: 150,
}

FALLBACK_CALORIES = 350
CALORIE_STEP = 50

# Share of calories, kcal per gram.
_PROTEIN = (0.3, 4)
_CARBS = (0.5, 4)
_FAT = (0.2, 9)

# "snack" is only a default for logging, never a detected meal-type word.
_MEAL_TYPE_WORDS = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)


def estimate_calories(text: str) -> CaloriesQuantity:
    """Sum lexicon matches, falling back to a per-meal-type default."""
    lowered = text.lower()
    total = sum(kcal for food, kcal in FOOD_CALORIES.items() if food in lowered)
    if total:
        return CaloriesQuantity(value=total)
    mentioned = mentioned_meal_type(lowered)
    if mentioned is None:
        return CaloriesQuantity(value=FALLBACK_CALORIES)
    return CaloriesQuantity(value=MEAL_TYPE_DEFAULTS[mentioned])


def mentioned_meal_type(text: str) -> MealType | None:
    """Return the first meal-type word found in ``text``, if any."""
    lowered = text.lower()
    for meal_type in (*_MEAL_TYPE_WORDS, MealType.SNACK):
        if meal_type.value in lowered:
            return meal_type
    return None


def detect_meal_type(text: str) -> MealType:
    """Return the meal type to log ``text`` under."""
    lowered = text.lower()
    for meal_type in _MEAL_TYPE_WORDS:
        if meal_type.value in lowered:
            return meal_type
    return MealType.SNACK


def macro_split(calories: int) -> MacroSplit:
    """Split calories 30/50/20 into protein, carbs and fat grams."""
    return MacroSplit(
        protein_g=_grams(calories, *_PROTEIN),
        carbs_g=_grams(calories, *_CARBS),
        fat_g=_grams(calories, *_FAT),
    )


def adjust_calories(calories: int, steps: int) -> int:
    """Move an estimate by whole ``CALORIE_STEP`` increments, never below 0."""
    return max(0, calories + steps * CALORIE_STEP)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def _grams(calories: int, share: float, kcal_per_gram: int) -> int:
    return round_half_up(calories * share / kcal_per_gram)
