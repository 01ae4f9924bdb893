"""Goal planning used when onboarding completes."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from niblet.domain.onboarding import ProfileDraft
from niblet.errors import AuthError, BackendError
from niblet.services.lexicon import round_half_up

_logger = logging.getLogger(__name__)

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very-active": 1.9,
}

MINIMUM_DAILY_CALORIES = 1200
CALORIES_PER_WEEKLY_POUND = 500


class GoalsApi(Protocol):
    """Goal operations onboarding needs from the backend."""

    async def calculate_calories(
        self, token: str | None, profile: dict[str, object]
    ) -> dict[str, object]:
        """Return recommended daily calories."""

    async def create_goal(
        self, token: str | None, goal: dict[str, object]
    ) -> dict[str, object]:
        """Create a goal."""


@dataclass
class GoalPlanner:
    """Build and submit a weight goal from an onboarding profile."""

    goals_api: GoalsApi
    weekly_rate_lbs: float = 1.0
    horizon_weeks: int = 12

    async def create_goal(
        self, token: str | None, draft: ProfileDraft, today: datetime | None = None
    ) -> dict[str, object]:
        """Submit a goal for the draft's current and goal weight."""
        goal_type = goal_type_for(draft)
        weekly_change = {
            "lose": -self.weekly_rate_lbs,
            "gain": self.weekly_rate_lbs,
        }.get(goal_type, 0.0)
        calories = await self.recommended_calories(token, draft, weekly_change)
        start = today or datetime.now(tz=UTC)
        goal = {
            "type": goal_type,
            "currentWeight": draft.weight,
            "goalWeight": draft.goal_weight,
            "targetDate": (start + timedelta(weeks=self.horizon_weeks)).isoformat(),
            "weeklyWeightChange": weekly_change,
            "nutrition": goal_nutrition(calories),
        }
        return await self.goals_api.create_goal(token, goal)

    async def recommended_calories(
        self, token: str | None, draft: ProfileDraft, weekly_change: float
    ) -> int:
        """Ask the backend for a daily target, estimating locally on failure."""
        try:
            payload = await self.goals_api.calculate_calories(
                token,
                {
                    "currentWeight": draft.weight,
                    "goalWeight": draft.goal_weight,
                    "height": draft.height or 0,
                    "age": draft.age or 0,
                    "gender": draft.gender or "male",
                    "activityLevel": draft.activity_level or "moderate",
                    "weeklyWeightChange": weekly_change,
                },
            )
        except AuthError:
            raise
        except BackendError as exc:
            _logger.warning("Calorie calculation failed, using estimate: %s", exc)
            return estimate_daily_calories(draft, weekly_change)
        data = payload.get("data")
        if not isinstance(data, dict):
            return estimate_daily_calories(draft, weekly_change)
        recommended = data.get("recommendedCalories")
        if isinstance(recommended, int | float) and recommended > 0:
            return round(recommended)
        return estimate_daily_calories(draft, weekly_change)


def goal_type_for(draft: ProfileDraft) -> str:
    """Return lose, gain or maintain for the draft's weights."""
    if draft.weight is None or draft.goal_weight is None:
        return "maintain"
    if draft.goal_weight < draft.weight:
        return "lose"
    if draft.goal_weight > draft.weight:
        return "gain"
    return "maintain"


def estimate_daily_calories(draft: ProfileDraft, weekly_change: float) -> int:
    """Rough daily target used when the backend cannot calculate one."""
    multiplier = ACTIVITY_MULTIPLIERS.get(draft.activity_level or "moderate", 1.55)
    bmr = 10 * (draft.weight or 0) + 1000
    maintenance = round_half_up(bmr * multiplier)
    adjustment = round_half_up(weekly_change * CALORIES_PER_WEEKLY_POUND)
    return max(MINIMUM_DAILY_CALORIES, maintenance + adjustment)


def goal_nutrition(calories: int) -> dict[str, int]:
    """Split a daily target 30/45/25 into protein, carbs and fat grams."""
    return {
        "dailyCalories": calories,
        "protein": round_half_up(calories * 0.3 / 4),
        "carbs": round_half_up(calories * 0.45 / 4),
        "fat": round_half_up(calories * 0.25 / 9),
    }
