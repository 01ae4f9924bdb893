"""Onboarding dialogue as an explicit slot state machine."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from niblet.domain.conversations import OnboardingConversation
from niblet.domain.messages import Message, MessageMetadata
from niblet.domain.onboarding import OnboardingStep, ProfileDraft
from niblet.errors import (
    AuthError,
    BackendError,
    ConversationBusy,
    ConversationNotFound,
    ExtractionFailure,
    InputValidationError,
)
from niblet.services.extraction import extract_number
from niblet.services.goals import GoalPlanner

_logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "hi there! i'm nibble, your personal nutrition assistant. let's get to know "
    "each other a bit so i can help you reach your goals!"
)
RESTART_TEXT = "no problem! let's start again with your height."
COMPLETED_TEXT = (
    "awesome! your profile is all set up. "
    "let's start tracking your nutrition journey!"
)
SAVE_FAILED_TEXT = "i'm having trouble saving your profile. can we try again?"
AFFIRMATIVE_WORDS = ("yes", "correct", "look", "right", "good")
DASHBOARD_PATH = "/dashboard"
MIN_AGE = 1
MAX_AGE = 120


class ProfileApi(Protocol):
    """Profile operations onboarding needs from the backend."""

    async def update_profile(
        self, token: str | None, profile: dict[str, object]
    ) -> dict[str, object]:
        """Update profile fields."""

    async def complete_onboarding(self, token: str | None) -> dict[str, object]:
        """Mark onboarding as completed."""


@dataclass(frozen=True)
class Slot:
    """One question of the dialogue and how its answer is read."""

    prompt: str
    parse: Callable[[str], object]
    acknowledge: Callable[[object], str]
    field: str
    next_step: OnboardingStep


@dataclass(frozen=True)
class OnboardingTurn:
    """Messages produced by one answer plus where the dialogue now stands."""

    messages: list[Message]
    step: OnboardingStep
    redirect: str | None = None


def _format_number(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _positive_number(hint: str) -> Callable[[str], float]:
    def parse(text: str) -> float:
        value = extract_number(text)
        if value is None or value <= 0:
            raise ExtractionFailure(hint)
        return value

    return parse


def _parse_age(text: str) -> float:
    value = extract_number(text)
    if value is None or not value.is_integer() or not MIN_AGE <= value <= MAX_AGE:
        raise ExtractionFailure(
            f"please provide a valid age between {MIN_AGE} and {MAX_AGE}."
        )
    return value


def _parse_gender(text: str) -> str:
    lowered = text.lower()
    if not any(word in lowered for word in ("male", "female", "other", "prefer")):
        raise ExtractionFailure(
            "please specify male, female, or other for your gender."
        )
    if "female" in lowered:
        return "female"
    if "male" in lowered:
        return "male"
    return "other"


_ACTIVITY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("sedentary", ("sedentary", "not active", "inactive")),
    ("light", ("light", "mild")),
    ("moderate", ("moderate", "average")),
    ("very-active", ("very", "high", "intense")),
)


def _parse_activity(text: str) -> str:
    lowered = text.lower()
    for level, keywords in _ACTIVITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return level
    return "moderate"


SLOTS: dict[OnboardingStep, Slot] = {
    OnboardingStep.HEIGHT: Slot(
        prompt="what's your height in inches?",
        parse=_positive_number(
            "i didn't catch that. please enter your height in inches (e.g., 70)."
        ),
        acknowledge=lambda value: f"got it! {_format_number(value)} inches tall.",
        field="height",
        next_step=OnboardingStep.WEIGHT,
    ),
    OnboardingStep.WEIGHT: Slot(
        prompt="what's your current weight in pounds?",
        parse=_positive_number(
            "i need a number for your weight in pounds. please try again."
        ),
        acknowledge=lambda value: f"{_format_number(value)} pounds. noted!",
        field="weight",
        next_step=OnboardingStep.AGE,
    ),
    OnboardingStep.AGE: Slot(
        prompt="how old are you?",
        parse=_parse_age,
        acknowledge=lambda value: f"{_format_number(value)} years old. thanks!",
        field="age",
        next_step=OnboardingStep.GENDER,
    ),
    OnboardingStep.GENDER: Slot(
        prompt=(
            "what's your gender? this helps me calculate your calorie needs "
            "more accurately."
        ),
        parse=_parse_gender,
        acknowledge=lambda _value: "thanks for sharing that.",
        field="gender",
        next_step=OnboardingStep.GOAL_WEIGHT,
    ),
    OnboardingStep.GOAL_WEIGHT: Slot(
        prompt="what's your goal weight in pounds?",
        parse=_positive_number("i need a number for your goal weight in pounds."),
        acknowledge=lambda value: (
            f"got it! {_format_number(value)} pounds is your goal weight."
        ),
        field="goal_weight",
        next_step=OnboardingStep.ACTIVITY,
    ),
    OnboardingStep.ACTIVITY: Slot(
        prompt=(
            "how would you describe your activity level? "
            "(sedentary, lightly active, moderately active, very active)"
        ),
        parse=_parse_activity,
        acknowledge=lambda value: f"{value} activity level. thanks!",
        field="activity_level",
        next_step=OnboardingStep.CONFIRMATION,
    ),
}


def confirmation_prompt(draft: ProfileDraft) -> str:
    """Summarize captured values and ask the user to confirm them."""
    return (
        "great! here's what i've got:\n\n"
        f"height: {_format_number(draft.height)} inches\n"
        f"weight: {_format_number(draft.weight)} lbs\n"
        f"age: {_format_number(draft.age)}\n"
        f"gender: {draft.gender}\n"
        f"goal weight: {_format_number(draft.goal_weight)} lbs\n"
        f"activity level: {draft.activity_level}\n\n"
        "does that look right to you?"
    )


def is_affirmative(text: str) -> bool:
    """Return True when a confirmation reply accepts the summary."""
    lowered = text.lower()
    return any(word in lowered for word in AFFIRMATIVE_WORDS)


@dataclass
class OnboardingService:
    """Drive the onboarding dialogue one answer at a time."""

    profile_api: ProfileApi
    goal_planner: GoalPlanner
    conversations: dict[UUID, OnboardingConversation] = field(default_factory=dict)

    def start(self, token: str | None) -> OnboardingConversation:
        """Open a dialogue with the welcome message and the first question."""
        conversation = OnboardingConversation(token=token)
        conversation.messages.extend(
            [
                Message.from_assistant(WELCOME_TEXT),
                self._question(conversation),
            ]
        )
        self.conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: UUID) -> OnboardingConversation:
        """Return a dialogue or raise ``ConversationNotFound``."""
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFound(f"Conversation {conversation_id} not found")
        return conversation

    def close(self, conversation_id: UUID) -> None:
        """Discard a dialogue."""
        self.conversations.pop(conversation_id, None)

    async def answer(self, conversation_id: UUID, text: str) -> OnboardingTurn:
        """Apply the user's answer to the current slot.

        A dialogue that reaches ``DONE`` is discarded; the returned turn carries
        its last messages and the dashboard redirect.
        """
        conversation = self.get(conversation_id)
        if not text.strip():
            raise InputValidationError("Answer cannot be empty.", field="text")
        if conversation.lock.locked():
            raise ConversationBusy("An answer is already being processed.")

        async with conversation.lock:
            conversation.messages.append(Message.from_user(text))
            if conversation.step is OnboardingStep.CONFIRMATION:
                replies = await self._confirm(conversation, text)
            else:
                replies = self._fill_slot(conversation, text)
            conversation.messages.extend(replies)
            if conversation.step is not OnboardingStep.DONE:
                return OnboardingTurn(messages=replies, step=conversation.step)

        self.close(conversation_id)
        return OnboardingTurn(
            messages=replies, step=OnboardingStep.DONE, redirect=DASHBOARD_PATH
        )

    def _fill_slot(
        self, conversation: OnboardingConversation, text: str
    ) -> list[Message]:
        slot = SLOTS[conversation.step]
        try:
            value = slot.parse(text)
        except ExtractionFailure as exc:
            return [Message.from_assistant(str(exc)), self._question(conversation)]

        setattr(conversation.draft, slot.field, value)
        conversation.step = slot.next_step
        return [
            Message.from_assistant(slot.acknowledge(value)),
            self._question(conversation),
        ]

    async def _confirm(
        self, conversation: OnboardingConversation, text: str
    ) -> list[Message]:
        if not is_affirmative(text):
            self._restart(conversation)
            return [Message.from_assistant(RESTART_TEXT), self._question(conversation)]

        try:
            await self._save_profile(conversation)
        except AuthError:
            self.close(conversation.id)
            raise
        except BackendError:
            _logger.exception(
                "Failed to complete onboarding",
                extra={"conversation_id": str(conversation.id)},
            )
            self._restart(conversation)
            return [
                Message.from_assistant(SAVE_FAILED_TEXT, kind="error"),
                self._question(conversation),
            ]
        conversation.step = OnboardingStep.DONE
        return [Message.from_assistant(COMPLETED_TEXT)]

    async def _save_profile(self, conversation: OnboardingConversation) -> None:
        draft = conversation.draft
        await self.profile_api.update_profile(
            conversation.token, draft.profile_payload()
        )
        if draft.goal_weight:
            await self.goal_planner.create_goal(conversation.token, draft)
        await self.profile_api.complete_onboarding(conversation.token)

    @staticmethod
    def _restart(conversation: OnboardingConversation) -> None:
        conversation.step = OnboardingStep.HEIGHT
        conversation.draft = ProfileDraft()

    @staticmethod
    def _question(conversation: OnboardingConversation) -> Message:
        step = conversation.step
        if step is OnboardingStep.CONFIRMATION:
            text = confirmation_prompt(conversation.draft)
        else:
            text = SLOTS[step].prompt
        return Message.from_assistant(
            text, kind="question", metadata=MessageMetadata(slot=step.value)
        )
