"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date
from uuid import UUID

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse

from niblet.api.admin import router as admin_router
from niblet.api.models import (
    AdjustEstimateRequest,
    AssistantMessageRequest,
    ChatMessageRequest,
    LoginRequest,
    MealEntryRequest,
    OnboardingAnswerRequest,
    RegisterRequest,
)
from niblet.app_logging import configure_logging
from niblet.containers import AppContainer
from niblet.domain.messages import Message
from niblet.errors import (
    AuthError,
    BackendError,
    ConversationBusy,
    NibletError,
    ProviderError,
    RecordNotFound,
)
from niblet.services.accounts import AuthSession
from niblet.services.dashboard import DailySummary

LOGIN_PATH = "/login"


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Return the bearer token from the Authorization header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(NibletError)
    async def handle_niblet_error(request: Request, exc: NibletError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning(
                "Request failed: %s", exc, extra={"path": request.url.path}
            )
        body: dict[str, object] = {"error": _format_error(container, exc)}
        field = getattr(exc, "field", None)
        if field:
            body["field"] = field
        if isinstance(exc, AuthError):
            body["redirect"] = LOGIN_PATH
        return JSONResponse(status_code=status_code, content=body)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Chat

    @app.post("/chat/conversations", status_code=status.HTTP_201_CREATED)
    async def start_chat(
        request: Request, token: str | None = Depends(bearer_token)
    ) -> dict[str, object]:
        """Open a chat conversation for the caller."""
        state_container: AppContainer = request.app.state.container
        conversation = state_container.chat_service.start(token)
        return {
            "id": str(conversation.id),
            "messages": [_serialize_message(m) for m in conversation.messages],
        }

    @app.get("/chat/conversations/{conversation_id}")
    async def chat_history(
        conversation_id: UUID, request: Request
    ) -> dict[str, object]:
        """Return every message of a chat conversation."""
        state_container: AppContainer = request.app.state.container
        conversation = state_container.chat_service.get(conversation_id)
        return {
            "id": str(conversation.id),
            "messages": [_serialize_message(m) for m in conversation.messages],
        }

    @app.delete(
        "/chat/conversations/{conversation_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def close_chat(conversation_id: UUID, request: Request) -> None:
        """Discard a chat conversation."""
        state_container: AppContainer = request.app.state.container
        state_container.chat_service.close(conversation_id)

    @app.post("/chat/conversations/{conversation_id}/messages")
    async def post_chat_message(
        conversation_id: UUID, payload: ChatMessageRequest, request: Request
    ) -> dict[str, object]:
        """Process one chat turn."""
        state_container: AppContainer = request.app.state.container
        messages = await state_container.chat_service.handle_message(
            conversation_id, payload.text
        )
        return {"messages": [_serialize_message(m) for m in messages]}

    @app.post("/chat/conversations/{conversation_id}/messages/{message_id}/confirm")
    async def confirm_estimate(
        conversation_id: UUID, message_id: str, request: Request
    ) -> dict[str, object]:
        """Log a calorie estimate as proposed."""
        state_container: AppContainer = request.app.state.container
        message = await state_container.chat_service.confirm_estimate(
            conversation_id, message_id
        )
        return {"message": _serialize_message(message)}

    @app.post("/chat/conversations/{conversation_id}/messages/{message_id}/adjust")
    async def adjust_estimate(
        conversation_id: UUID,
        message_id: str,
        payload: AdjustEstimateRequest,
        request: Request,
    ) -> dict[str, object]:
        """Log a calorie estimate corrected up or down."""
        state_container: AppContainer = request.app.state.container
        message = await state_container.chat_service.adjust_estimate(
            conversation_id, message_id, payload.signed_steps()
        )
        return {"message": _serialize_message(message)}

    # Meals and dashboard

    @app.post("/meals", status_code=status.HTTP_201_CREATED)
    async def add_meal(
        payload: MealEntryRequest,
        request: Request,
        token: str | None = Depends(bearer_token),
    ) -> dict[str, object]:
        """Log a meal from the add-meal form."""
        state_container: AppContainer = request.app.state.container
        return await state_container.dashboard_service.log_manual_meal(
            token, payload.meal_type, payload.description, payload.calories
        )

    @app.get("/dashboard/summary")
    async def dashboard_summary(
        request: Request,
        day: date | None = None,
        token: str | None = Depends(bearer_token),
    ) -> dict[str, object]:
        """Return today's calories against the daily budget."""
        state_container: AppContainer = request.app.state.container
        summary = await state_container.dashboard_service.daily_summary(token, day)
        return _serialize_summary(summary)

    # Onboarding

    @app.post("/onboarding/conversations", status_code=status.HTTP_201_CREATED)
    async def start_onboarding(
        request: Request, token: str | None = Depends(bearer_token)
    ) -> dict[str, object]:
        """Open the onboarding dialogue."""
        state_container: AppContainer = request.app.state.container
        conversation = state_container.onboarding_service.start(token)
        return {
            "id": str(conversation.id),
            "step": conversation.step.value,
            "messages": [_serialize_message(m) for m in conversation.messages],
        }

    @app.get("/onboarding/conversations/{conversation_id}")
    async def onboarding_state(
        conversation_id: UUID, request: Request
    ) -> dict[str, object]:
        """Return the dialogue's current step and messages."""
        state_container: AppContainer = request.app.state.container
        conversation = state_container.onboarding_service.get(conversation_id)
        return {
            "id": str(conversation.id),
            "step": conversation.step.value,
            "messages": [_serialize_message(m) for m in conversation.messages],
        }

    @app.delete(
        "/onboarding/conversations/{conversation_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def close_onboarding(conversation_id: UUID, request: Request) -> None:
        """Discard an abandoned onboarding dialogue."""
        state_container: AppContainer = request.app.state.container
        state_container.onboarding_service.close(conversation_id)

    @app.post("/onboarding/conversations/{conversation_id}/answers")
    async def answer_onboarding(
        conversation_id: UUID, payload: OnboardingAnswerRequest, request: Request
    ) -> dict[str, object]:
        """Answer the current onboarding question."""
        state_container: AppContainer = request.app.state.container
        turn = await state_container.onboarding_service.answer(
            conversation_id, payload.text
        )
        return {
            "step": turn.step.value,
            "redirect": turn.redirect,
            "messages": [_serialize_message(m) for m in turn.messages],
        }

    # Assistant

    @app.post("/assistant/threads")
    async def create_thread(request: Request) -> dict[str, object]:
        """Create an assistant thread."""
        state_container: AppContainer = request.app.state.container
        thread_id = await state_container.assistant_service.create_thread()
        return {"threadId": thread_id, "success": True}

    @app.post("/assistant/messages")
    async def send_assistant_message(
        payload: AssistantMessageRequest, request: Request
    ) -> dict[str, object]:
        """Relay a message to the assistant and return its reply."""
        state_container: AppContainer = request.app.state.container
        reply = await state_container.assistant_service.send_message(
            payload.thread_id, payload.message, payload.personality
        )
        return {
            "message": reply.message,
            "messageId": reply.message_id,
            "threadId": reply.thread_id,
        }

    @app.get("/assistant/personalities")
    async def active_personalities(request: Request) -> dict[str, object]:
        """Return the personalities users can pick from."""
        state_container: AppContainer = request.app.state.container
        personalities = state_container.personality_service.list_personalities(
            active_only=True
        )
        return {"personalities": [asdict(p) for p in personalities]}

    # Auth

    @app.post("/auth/register", status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest, request: Request) -> dict[str, object]:
        """Create an account."""
        state_container: AppContainer = request.app.state.container
        session = await state_container.account_service.register(
            payload.email,
            payload.password,
            payload.confirm_password,
            payload.terms_and_conditions,
        )
        return _serialize_session(session)

    @app.post("/auth/login")
    async def login(payload: LoginRequest, request: Request) -> dict[str, object]:
        """Log in."""
        state_container: AppContainer = request.app.state.container
        session = await state_container.account_service.login(
            payload.email, payload.password
        )
        return _serialize_session(session)

    return app


def _status_for(exc: NibletError) -> int:
    """Map an application error to its HTTP status."""
    if isinstance(exc, AuthError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, BackendError | ProviderError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, RecordNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConversationBusy):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def _format_error(container: AppContainer, exc: NibletError) -> str:
    """Return a user-facing error message with local debug info."""
    message = str(exc)
    if (
        isinstance(exc, BackendError | ProviderError)
        and not isinstance(exc, AuthError)
        and container.settings.environment == "local"
    ):
        return f"{message} (debug: {type(exc).__name__})"
    return message


def _serialize_message(message: Message) -> dict[str, object]:
    """Render a message for JSON responses."""
    metadata = {
        key: value
        for key, value in asdict(message.metadata).items()
        if value is not None
    }
    return {
        "id": message.id,
        "sender": message.sender,
        "kind": message.kind,
        "text": message.text,
        "timestamp": message.timestamp.isoformat(),
        "metadata": metadata,
    }


def _serialize_summary(summary: DailySummary) -> dict[str, object]:
    return {
        "date": summary.day.isoformat(),
        "consumed": summary.consumed,
        "mealCount": summary.meal_count,
        "budget": summary.budget,
        "remaining": summary.remaining,
        "budgetExceeded": summary.budget_exceeded,
    }


def _serialize_session(session: AuthSession) -> dict[str, object]:
    return {"token": session.token, "user": session.user, "redirect": session.redirect}
