"""Quantity extractors for free-text utterances."""

import re

from niblet.domain.intents import WeightQuantity, WeightUnit

KG_TO_LBS = 2.20462

_WEIGHT_PATTERN = re.compile(
    r"(\d+\.?\d*)\s*(lbs?|pounds?|kg|kilograms?)", re.IGNORECASE
)
_NUMBER_PATTERN = re.compile(r"\d+(\.\d+)?")


def extract_weight(
    text: str, default_unit: WeightUnit | None = None
) -> WeightQuantity | None:
    """Return the first unit-bearing weight in ``text``, in pounds.

    Without a unit token nothing is guessed unless ``default_unit`` is given,
    in which case the first bare number is read in that unit.
    """
    match = _WEIGHT_PATTERN.search(text)
    if match:
        value = float(match.group(1))
        unit: WeightUnit = "kg" if match.group(2).lower().startswith("k") else "lbs"
        return _normalize(value, unit)
    if default_unit is None:
        return None
    number = extract_number(text)
    if number is None:
        return None
    return _normalize(number, default_unit)


def extract_number(text: str) -> float | None:
    """Return the first integer or decimal substring in ``text``."""
    match = _NUMBER_PATTERN.search(text)
    if match is None:
        return None
    return float(match.group(0))


def kg_to_lbs(value: float) -> float:
    """Convert kilograms to pounds rounded to one decimal."""
    return round(value * KG_TO_LBS, 1)


def _normalize(value: float, unit: WeightUnit) -> WeightQuantity:
    if unit == "kg":
        return WeightQuantity(value=kg_to_lbs(value), unit="kg")
    return WeightQuantity(value=value, unit="lbs")
