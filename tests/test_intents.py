"""Tests for intent classification."""

import pytest

from niblet.domain.intents import Intent
from niblet.services.intents import IntentRule, classify_intent


@pytest.mark.parametrize(
    ("text", "intent"),
    [
        ("I weigh 180 lbs today", Intent.WEIGHT_LOG),
        ("my weight is up", Intent.WEIGHT_LOG),
        ("82 kg this morning", Intent.WEIGHT_LOG),
        ("I had a turkey sandwich for lunch", Intent.MEAL_LOG),
        ("ate two eggs", Intent.MEAL_LOG),
        ("How many calories in an apple?", Intent.NUTRITION_QUESTION),
        ("is oatmeal healthy", Intent.NUTRITION_QUESTION),
        ("what now?", Intent.NUTRITION_QUESTION),
        ("hello there", Intent.UNRECOGNIZED),
    ],
)
def test_classify_intent(text: str, intent: Intent) -> None:
    assert classify_intent(text) is intent


def test_weight_wins_over_meal() -> None:
    assert classify_intent("I had lunch and weigh 150 lbs") is Intent.WEIGHT_LOG


def test_meal_wins_over_question() -> None:
    assert classify_intent("I had a salad, was that healthy?") is Intent.MEAL_LOG


def test_classify_intent_accepts_custom_rules() -> None:
    rules = (IntentRule(intent=Intent.MEAL_LOG, keywords=("munched",)),)

    assert classify_intent("munched some chips", rules) is Intent.MEAL_LOG
    assert classify_intent("I weigh 150 lbs", rules) is Intent.UNRECOGNIZED
