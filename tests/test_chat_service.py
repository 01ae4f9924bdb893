"""Tests for the chat turn handler."""

import asyncio

import pytest

from niblet.domain.intents import MealType
from niblet.errors import (
    AuthError,
    BackendError,
    ConversationBusy,
    ConversationNotFound,
    InputValidationError,
)
from niblet.services.chat import (
    CLARIFICATION_TEXT,
    ERROR_TEXT,
    MISSING_WEIGHT_TEXT,
    NUTRITION_TEXT,
    WELCOME_TEXT,
    ChatService,
    build_meal_payload,
)
from tests.conftest import FakeBackend


def test_start_greets_user(chat_service: ChatService) -> None:
    conversation = chat_service.start("token")

    assert conversation.messages[0].text == WELCOME_TEXT
    assert conversation.messages[0].sender == "assistant"


def test_meal_turn_returns_estimate(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    conversation = chat_service.start("token")

    user, reply = asyncio.run(
        chat_service.handle_message(
            conversation.id, "I had a turkey sandwich for lunch"
        )
    )

    assert user.sender == "user"
    assert reply.kind == "calorie-estimate"
    assert reply.text == (
        'I estimate that "I had a turkey sandwich for lunch" is approximately '
        "350 calories. Is this correct?"
    )
    assert reply.metadata.calories == 350
    assert reply.metadata.meal_type == "lunch"
    assert reply.metadata.confirmed is False
    assert backend.calls == []


def test_confirm_logs_meal_with_macros(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    conversation = chat_service.start("token")
    _, estimate = asyncio.run(
        chat_service.handle_message(
            conversation.id, "I had a turkey sandwich for lunch"
        )
    )

    message = asyncio.run(chat_service.confirm_estimate(conversation.id, estimate.id))

    meal = backend.called("create_meal")[0]
    assert meal["calories"] == 350
    assert meal["mealType"] == "lunch"
    assert meal["entryMethod"] == "text"
    assert meal["nutrition"] == {"protein": 26, "carbs": 44, "fat": 8}
    assert message.metadata.confirmed is True
    assert message.text.startswith("I've logged 350 calories")


def test_confirm_twice_is_rejected(chat_service: ChatService) -> None:
    conversation = chat_service.start("token")
    _, estimate = asyncio.run(
        chat_service.handle_message(conversation.id, "I ate pizza for dinner")
    )
    asyncio.run(chat_service.confirm_estimate(conversation.id, estimate.id))

    with pytest.raises(InputValidationError):
        asyncio.run(chat_service.confirm_estimate(conversation.id, estimate.id))


def test_adjust_logs_corrected_amount(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    conversation = chat_service.start("token")
    _, estimate = asyncio.run(
        chat_service.handle_message(
            conversation.id, "I had a turkey sandwich for lunch"
        )
    )

    message = asyncio.run(
        chat_service.adjust_estimate(conversation.id, estimate.id, steps=-1)
    )

    assert backend.called("create_meal")[0]["calories"] == 300
    assert message.metadata.calories == 300
    assert "Thanks for the correction!" in message.text


def test_adjust_requires_direction(chat_service: ChatService) -> None:
    conversation = chat_service.start("token")
    _, estimate = asyncio.run(
        chat_service.handle_message(conversation.id, "I had soup")
    )

    with pytest.raises(InputValidationError):
        asyncio.run(chat_service.adjust_estimate(conversation.id, estimate.id, 0))


def test_overlapping_confirm_and_adjust_log_once(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    backend.meal_delay = 0.01
    conversation = chat_service.start("token")
    _, estimate = asyncio.run(
        chat_service.handle_message(
            conversation.id, "I had a turkey sandwich for lunch"
        )
    )

    async def scenario() -> list[object]:
        return await asyncio.gather(
            chat_service.confirm_estimate(conversation.id, estimate.id),
            chat_service.adjust_estimate(conversation.id, estimate.id, 1),
            return_exceptions=True,
        )

    confirmed, adjusted = asyncio.run(scenario())

    assert len(backend.called("create_meal")) == 1
    assert backend.called("create_meal")[0]["calories"] == 350
    assert confirmed is estimate
    assert isinstance(adjusted, ConversationBusy)
    assert estimate.metadata.confirmed is True


def test_confirm_failure_adds_error_message(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    conversation = chat_service.start("token")
    _, estimate = asyncio.run(
        chat_service.handle_message(conversation.id, "I ate pizza for dinner")
    )
    backend.failures["create_meal"] = BackendError("down", status_code=503)

    with pytest.raises(BackendError):
        asyncio.run(chat_service.confirm_estimate(conversation.id, estimate.id))

    assert conversation.messages[-1].kind == "error"
    assert conversation.messages[-1].text == ERROR_TEXT
    assert estimate.metadata.confirmed is False


def test_weight_turn_creates_entry(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    conversation = chat_service.start("token")

    _, reply = asyncio.run(
        chat_service.handle_message(conversation.id, "I weigh 80 kg today")
    )

    entry = backend.called("create_weight_entry")[0]
    assert entry["weight"] == 176.4
    assert entry["unit"] == "lbs"
    assert entry["notes"] == 'Logged via chat: "I weigh 80 kg today"'
    assert reply.kind == "weight-update"
    assert reply.text.startswith("Great! I've recorded your weight as 176.4 lbs.")


def test_weight_without_unit_asks_again(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    conversation = chat_service.start("token")

    _, reply = asyncio.run(
        chat_service.handle_message(conversation.id, "my weight went up")
    )

    assert reply.text == MISSING_WEIGHT_TEXT
    assert backend.called("create_weight_entry") == []


def test_default_unit_reads_bare_number(backend: FakeBackend) -> None:
    service = ChatService(
        meals_api=backend, weight_api=backend, default_weight_unit="lbs"
    )
    conversation = service.start("token")

    asyncio.run(service.handle_message(conversation.id, "I weigh 150 today"))

    assert backend.called("create_weight_entry")[0]["weight"] == 150.0


def test_question_and_unrecognized_replies(chat_service: ChatService) -> None:
    conversation = chat_service.start("token")

    _, question = asyncio.run(
        chat_service.handle_message(conversation.id, "how many calories in rice?")
    )
    _, other = asyncio.run(chat_service.handle_message(conversation.id, "hello"))

    assert question.text == NUTRITION_TEXT
    assert other.text == CLARIFICATION_TEXT


def test_backend_analysis_uses_analyzer(backend: FakeBackend) -> None:
    service = ChatService(meals_api=backend, weight_api=backend, backend_analysis=True)
    conversation = service.start("token")

    _, reply = asyncio.run(
        service.handle_message(conversation.id, "I had a burrito for dinner")
    )

    assert backend.called("analyze_meal_text") == ["I had a burrito for dinner"]
    assert reply.metadata.calories == 420


def test_backend_failure_becomes_error_message(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    backend.failures["create_weight_entry"] = BackendError("down", status_code=503)
    conversation = chat_service.start("token")

    _, reply = asyncio.run(
        chat_service.handle_message(conversation.id, "I weigh 180 lbs")
    )

    assert reply.kind == "error"
    assert reply.text == ERROR_TEXT


def test_auth_failure_closes_conversation(
    chat_service: ChatService, backend: FakeBackend
) -> None:
    backend.failures["create_weight_entry"] = AuthError("expired", status_code=401)
    conversation = chat_service.start("token")

    with pytest.raises(AuthError):
        asyncio.run(chat_service.handle_message(conversation.id, "I weigh 180 lbs"))
    with pytest.raises(ConversationNotFound):
        chat_service.get(conversation.id)


def test_concurrent_turn_is_rejected(chat_service: ChatService) -> None:
    conversation = chat_service.start("token")

    async def scenario() -> None:
        await conversation.lock.acquire()
        try:
            await chat_service.handle_message(conversation.id, "I had soup")
        finally:
            conversation.lock.release()

    with pytest.raises(ConversationBusy):
        asyncio.run(scenario())


def test_empty_message_is_invalid(chat_service: ChatService) -> None:
    conversation = chat_service.start("token")

    with pytest.raises(InputValidationError):
        asyncio.run(chat_service.handle_message(conversation.id, "  "))


def test_build_meal_payload_for_manual_entry() -> None:
    payload = build_meal_payload(
        "Greek yogurt", 150, MealType.BREAKFAST, entry_method="manual"
    )

    assert payload["name"] == "Greek yogurt"
    assert payload["mealType"] == "breakfast"
    assert payload["entryMethod"] == "manual"
    assert payload["nutrition"] == {"protein": 11, "carbs": 19, "fat": 3}
