"""Daily calorie summary and manual meal entry."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from niblet.domain.intents import MealType
from niblet.errors import BackendError, InputValidationError
from niblet.services.chat import build_meal_payload

MIN_DESCRIPTION_LENGTH = 3
NOT_FOUND = 404


class DashboardApi(Protocol):
    """Backend reads and writes the dashboard needs."""

    async def get_meals(
        self, token: str | None, date: str | None = None
    ) -> dict[str, object]:
        """Return meals for a date."""

    async def create_meal(
        self, token: str | None, meal: dict[str, object]
    ) -> dict[str, object]:
        """Persist a meal."""

    async def get_current_goal(self, token: str | None) -> dict[str, object]:
        """Return the active goal."""


@dataclass(frozen=True)
class DailySummary:
    """Calories consumed against the daily budget."""

    day: date
    consumed: int
    meal_count: int
    budget: int | None

    @property
    def remaining(self) -> int | None:
        if self.budget is None:
            return None
        return max(0, self.budget - self.consumed)

    @property
    def budget_exceeded(self) -> bool:
        return self.budget is not None and self.consumed > self.budget


@dataclass
class DashboardService:
    """Compose the dashboard view from backend meals and goals."""

    backend: DashboardApi

    async def daily_summary(
        self, token: str | None, day: date | None = None
    ) -> DailySummary:
        """Return the calorie summary for a single day."""
        resolved_day = day or datetime.now(tz=UTC).date()
        meals_payload = await self.backend.get_meals(token, resolved_day.isoformat())
        meals = meals_payload.get("data")
        meals = meals if isinstance(meals, list) else []
        consumed = sum(_calories_of(meal) for meal in meals)
        budget = await self._daily_budget(token)
        return DailySummary(
            day=resolved_day, consumed=consumed, meal_count=len(meals), budget=budget
        )

    async def log_manual_meal(
        self,
        token: str | None,
        meal_type: MealType,
        description: str,
        calories: int,
        logged_at: datetime | None = None,
    ) -> dict[str, object]:
        """Validate and persist a meal entered through the add-meal form."""
        description = description.strip()
        if len(description) < MIN_DESCRIPTION_LENGTH:
            raise InputValidationError(
                "Description must be at least 3 characters.", field="description"
            )
        if calories <= 0:
            raise InputValidationError(
                "Calories must be a positive number.", field="calories"
            )
        payload = build_meal_payload(
            description, calories, meal_type, logged_at, entry_method="manual"
        )
        return await self.backend.create_meal(token, payload)

    async def _daily_budget(self, token: str | None) -> int | None:
        try:
            payload = await self.backend.get_current_goal(token)
        except BackendError as exc:
            if exc.status_code == NOT_FOUND:
                return None
            raise
        goal = payload.get("data")
        if not isinstance(goal, dict):
            return None
        nutrition = goal.get("nutrition")
        if not isinstance(nutrition, dict):
            return None
        calories = nutrition.get("dailyCalories")
        if isinstance(calories, int | float) and calories > 0:
            return round(calories)
        return None


def _calories_of(meal: object) -> int:
    if not isinstance(meal, dict):
        return 0
    calories = meal.get("calories")
    if isinstance(calories, int | float):
        return round(calories)
    return 0
