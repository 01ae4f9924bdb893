"""Domain models for the scripted onboarding dialogue."""

from dataclasses import dataclass
from enum import Enum


class OnboardingStep(Enum):
    """Slots of the onboarding dialogue, in the order they are asked."""

    HEIGHT = "height"
    WEIGHT = "weight"
    AGE = "age"
    GENDER = "gender"
    GOAL_WEIGHT = "goal-weight"
    ACTIVITY = "activity"
    CONFIRMATION = "confirmation"
    DONE = "done"


@dataclass
class ProfileDraft:
    """Values captured so far during onboarding."""

    height: float | None = None
    weight: float | None = None
    age: float | None = None
    gender: str | None = None
    goal_weight: float | None = None
    activity_level: str | None = None

    def profile_payload(self) -> dict[str, object]:
        """Return the profile fields in the backend's shape."""
        payload: dict[str, object] = {
            "height": self.height,
            "weight": self.weight,
            "age": self.age,
            "gender": self.gender,
            "activityLevel": self.activity_level,
        }
        return {key: value for key, value in payload.items() if value is not None}
