"""Pydantic request models for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, Field

from niblet.domain.intents import MealType


class ChatMessageRequest(BaseModel):
    """A user turn in the dashboard chat."""

    text: str = Field(min_length=1)


class AdjustEstimateRequest(BaseModel):
    """Direction of a calorie correction on a pending estimate."""

    direction: Literal["lower", "higher"]
    steps: int = Field(default=1, ge=1)

    def signed_steps(self) -> int:
        """Return the number of 50 kcal steps with its sign."""
        return -self.steps if self.direction == "lower" else self.steps


class MealEntryRequest(BaseModel):
    """Add-meal form."""

    meal_type: MealType
    description: str = Field(min_length=3)
    calories: int = Field(gt=0)


class OnboardingAnswerRequest(BaseModel):
    """An answer to the current onboarding question."""

    text: str = Field(min_length=1)


class AssistantMessageRequest(BaseModel):
    """A message relayed to the LLM assistant."""

    thread_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    personality: str | None = None


class RegisterRequest(BaseModel):
    """Registration form."""

    email: str
    password: str
    confirm_password: str
    terms_and_conditions: bool = False


class LoginRequest(BaseModel):
    """Login form."""

    email: str
    password: str


class PersonalityCreateRequest(BaseModel):
    """New assistant personality."""

    name: str
    system_prompt: str
    examples: list[str] = Field(default_factory=list)
    temperature: float = 0.7
    active: bool = True


class PersonalityUpdateRequest(BaseModel):
    """Partial update of a personality."""

    name: str | None = None
    system_prompt: str | None = None
    examples: list[str] | None = None
    temperature: float | None = None
    active: bool | None = None


class TemplateCreateRequest(BaseModel):
    """New prompt template."""

    name: str
    template: str
    category: str = "logging"


class TemplateUpdateRequest(BaseModel):
    """Partial update of a prompt template."""

    name: str | None = None
    template: str | None = None
    category: str | None = None


class TemplateRenderRequest(BaseModel):
    """Values substituted into a template's placeholders."""

    values: dict[str, str | int | float] = Field(default_factory=dict)
