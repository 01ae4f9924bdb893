"""Rule-based intent classification for chat utterances."""

from collections.abc import Callable
from dataclasses import dataclass

from niblet.domain.intents import Intent
from niblet.services.extraction import extract_weight


@dataclass(frozen=True)
class IntentRule:
    """One row of the ordered classification table."""

    intent: Intent
    keywords: tuple[str, ...] = ()
    predicate: Callable[[str], bool] | None = None

    def matches(self, lowered: str) -> bool:
        """Return True when the lower-cased utterance satisfies the rule."""
        if any(keyword in lowered for keyword in self.keywords):
            return True
        return self.predicate is not None and self.predicate(lowered)


# Weight comes first so "I weigh 150 lbs after lunch" is not read as a meal.
INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        intent=Intent.WEIGHT_LOG,
        # "weigh" also covers "weight".
        keywords=("weigh",),
        predicate=lambda text: extract_weight(text) is not None,
    ),
    IntentRule(
        intent=Intent.MEAL_LOG,
        keywords=(
            "had",
            "ate",
            "for breakfast",
            "for lunch",
            "for dinner",
            "consumed",
        ),
    ),
    IntentRule(
        intent=Intent.NUTRITION_QUESTION,
        keywords=("how many", "calorie", "nutrition", "healthy", "protein"),
        predicate=lambda text: text.rstrip().endswith("?"),
    ),
)


def classify_intent(
    text: str, rules: tuple[IntentRule, ...] = INTENT_RULES
) -> Intent:
    """Return the first intent whose rule matches ``text``."""
    lowered = text.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.intent
    return Intent.UNRECOGNIZED
