"""Turn handler for the free-form dashboard chat."""

import logging
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from niblet.domain.conversations import ChatConversation
from niblet.domain.intents import Intent, MealType, WeightUnit
from niblet.domain.messages import Message, MessageMetadata
from niblet.errors import (
    AuthError,
    BackendError,
    ConversationBusy,
    ConversationNotFound,
    InputValidationError,
)
from niblet.services.extraction import extract_weight
from niblet.services.intents import classify_intent
from niblet.services.lexicon import (
    adjust_calories,
    detect_meal_type,
    estimate_calories,
    macro_split,
)

_logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Welcome to Niblet! How can I help you today? You can log a meal, "
    "update your weight, or ask nutrition questions."
)
CLARIFICATION_TEXT = (
    "I'm not sure I understand. You can log a meal by saying something like "
    "'I had a turkey sandwich for lunch', update your weight with "
    "'I weigh 180 lbs today', or ask me nutrition questions."
)
NUTRITION_TEXT = (
    "I'd be happy to help with your nutrition question! A healthy adult diet "
    "typically consists of 2000-2500 calories per day, but your needs may vary "
    "based on age, activity level, and goals. Would you like me to suggest some "
    "meal options based on your calorie target?"
)
MISSING_WEIGHT_TEXT = (
    "I couldn't find a weight in that message. "
    "Try something like 'I weigh 180 lbs today'."
)
ANALYSIS_FAILED_TEXT = (
    "I couldn't analyze that meal. "
    "Could you please provide more details or try again?"
)
ERROR_TEXT = "Sorry, there was an error processing your request. Please try again."
ENCOURAGEMENTS = (
    "Keep up the good work with your tracking!",
    "Consistency is key to reaching your goals.",
    "Great job staying committed to your health journey!",
    "Every weigh-in brings you closer to your goals.",
    "Your dedication to tracking is inspiring!",
)


class MealsApi(Protocol):
    """Meal operations the chat needs from the backend."""

    async def create_meal(
        self, token: str | None, meal: dict[str, object]
    ) -> dict[str, object]:
        """Persist a meal."""

    async def analyze_meal_text(
        self, token: str | None, text: str
    ) -> dict[str, object]:
        """Estimate nutrition for a meal description."""


class WeightApi(Protocol):
    """Weight operations the chat needs from the backend."""

    async def create_weight_entry(
        self, token: str | None, entry: dict[str, object]
    ) -> dict[str, object]:
        """Persist a weight entry."""


@dataclass
class ChatService:
    """Classify each chat turn and answer it.

    Turns are independent: the only state kept is the message list, which the
    confirm and adjust actions look back into.
    """

    meals_api: MealsApi
    weight_api: WeightApi
    backend_analysis: bool = False
    default_weight_unit: WeightUnit | None = None
    rng: random.Random = field(default_factory=random.Random)
    conversations: dict[UUID, ChatConversation] = field(default_factory=dict)

    def start(self, token: str | None) -> ChatConversation:
        """Open a conversation with the welcome message."""
        conversation = ChatConversation(token=token)
        conversation.messages.append(Message.from_assistant(WELCOME_TEXT))
        self.conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: UUID) -> ChatConversation:
        """Return a conversation or raise ``ConversationNotFound``."""
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFound(f"Conversation {conversation_id} not found")
        return conversation

    def close(self, conversation_id: UUID) -> None:
        """Discard a conversation and its messages."""
        self.conversations.pop(conversation_id, None)

    async def handle_message(self, conversation_id: UUID, text: str) -> list[Message]:
        """Process one user turn and return the messages it produced."""
        conversation = self.get(conversation_id)
        if not text.strip():
            raise InputValidationError("Message cannot be empty.", field="text")
        if conversation.lock.locked():
            raise ConversationBusy("A message is already being processed.")

        async with conversation.lock:
            user_message = Message.from_user(text)
            conversation.messages.append(user_message)
            try:
                reply = await self._reply(conversation, text)
            except AuthError:
                self.close(conversation_id)
                raise
            except BackendError:
                _logger.exception(
                    "Chat turn failed", extra={"conversation_id": str(conversation_id)}
                )
                reply = Message.from_assistant(ERROR_TEXT, kind="error")
            conversation.messages.append(reply)
            return [user_message, reply]

    async def confirm_estimate(self, conversation_id: UUID, message_id: str) -> Message:
        """Log the estimate as-is and mark the message confirmed."""
        return await self._log_estimate(
            conversation_id, message_id, 0, "Great job staying on track!"
        )

    async def adjust_estimate(
        self, conversation_id: UUID, message_id: str, steps: int
    ) -> Message:
        """Log the estimate moved by ``steps`` increments of 50 kcal."""
        if steps == 0:
            raise InputValidationError("Adjustment must be non-zero.", field="steps")
        return await self._log_estimate(
            conversation_id, message_id, steps, "Thanks for the correction!"
        )

    async def _log_estimate(
        self, conversation_id: UUID, message_id: str, steps: int, closing: str
    ) -> Message:
        conversation = self.get(conversation_id)
        if conversation.lock.locked():
            raise ConversationBusy("A message is already being processed.")

        async with conversation.lock:
            message = _pending_estimate(conversation, message_id)
            calories = adjust_calories(message.metadata.calories or 0, steps)
            try:
                await self._log_meal(conversation, message, calories)
            except AuthError:
                raise
            except BackendError:
                _logger.exception(
                    "Logging meal failed",
                    extra={"conversation_id": str(conversation_id)},
                )
                conversation.messages.append(
                    Message.from_assistant(ERROR_TEXT, kind="error")
                )
                raise
            message.text = f"I've logged {calories} calories for your meal. {closing}"
            return message

    async def _reply(self, conversation: ChatConversation, text: str) -> Message:
        intent = classify_intent(text)
        _logger.info("Chat intent: %s", intent.value)
        if intent is Intent.WEIGHT_LOG:
            return await self._log_weight(conversation, text)
        if intent is Intent.MEAL_LOG:
            return await self._estimate_meal(conversation, text)
        if intent is Intent.NUTRITION_QUESTION:
            return Message.from_assistant(NUTRITION_TEXT, kind="question")
        return Message.from_assistant(CLARIFICATION_TEXT)

    async def _log_weight(self, conversation: ChatConversation, text: str) -> Message:
        quantity = extract_weight(text, self.default_weight_unit)
        if quantity is None:
            return Message.from_assistant(MISSING_WEIGHT_TEXT)
        await self.weight_api.create_weight_entry(
            conversation.token,
            {
                "weight": quantity.value,
                "date": datetime.now(tz=UTC).isoformat(),
                "unit": "lbs",
                "notes": f'Logged via chat: "{text}"',
            },
        )
        return Message.from_assistant(
            f"Great! I've recorded your weight as {quantity.value:.1f} lbs. "
            f"{self.rng.choice(ENCOURAGEMENTS)}",
            kind="weight-update",
            metadata=MessageMetadata(weight=quantity.value),
        )

    async def _estimate_meal(
        self, conversation: ChatConversation, text: str
    ) -> Message:
        meal_type = detect_meal_type(text)
        if self.backend_analysis:
            calories = await self._analyze_with_backend(conversation, text)
            if calories is None:
                return Message.from_assistant(ANALYSIS_FAILED_TEXT, kind="error")
        else:
            calories = estimate_calories(text).value
        return Message.from_assistant(
            f'I estimate that "{text}" is approximately {calories} calories. '
            "Is this correct?",
            kind="calorie-estimate",
            metadata=MessageMetadata(
                calories=calories,
                meal_type=meal_type.value,
                confirmed=False,
                description=text,
            ),
        )

    async def _analyze_with_backend(
        self, conversation: ChatConversation, text: str
    ) -> int | None:
        payload = await self.meals_api.analyze_meal_text(conversation.token, text)
        data = payload.get("data")
        if not isinstance(data, dict):
            return None
        calories = data.get("calories")
        if isinstance(calories, int | float) and calories > 0:
            return round(calories)
        return None

    async def _log_meal(
        self, conversation: ChatConversation, message: Message, calories: int
    ) -> None:
        description = message.metadata.description or ""
        meal_type = MealType(message.metadata.meal_type or MealType.SNACK.value)
        try:
            await self.meals_api.create_meal(
                conversation.token,
                build_meal_payload(description, calories, meal_type),
            )
        except AuthError:
            self.close(conversation.id)
            raise
        message.metadata.calories = calories
        message.metadata.confirmed = True


def build_meal_payload(
    description: str,
    calories: int,
    meal_type: MealType,
    logged_at: datetime | None = None,
    entry_method: str = "text",
) -> dict[str, object]:
    """Return the backend meal body with the default macro split."""
    macros = macro_split(calories)
    return {
        "name": description,
        "description": description,
        "calories": calories,
        "date": (logged_at or datetime.now(tz=UTC)).isoformat(),
        "mealType": meal_type.value,
        "entryMethod": entry_method,
        "originalText": description,
        "nutrition": {
            "protein": macros.protein_g,
            "carbs": macros.carbs_g,
            "fat": macros.fat_g,
        },
    }


def _pending_estimate(conversation: ChatConversation, message_id: str) -> Message:
    message = conversation.find_message(message_id)
    if message is None or message.kind != "calorie-estimate":
        raise InputValidationError("No calorie estimate with that id.", field="id")
    if message.metadata.confirmed:
        raise InputValidationError("This meal has already been logged.", field="id")
    return message
