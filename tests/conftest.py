"""Shared test fixtures."""

import asyncio
import random
from dataclasses import dataclass, field

import pytest

from niblet.adapters.memory_personality_repository import (
    InMemoryPersonalityRepository,
)
from niblet.config import Settings
from niblet.containers import AppContainer
from niblet.domain.assistant import RunStatus, ThreadMessage
from niblet.services.accounts import AccountService
from niblet.services.assistant import AssistantClient, AssistantService
from niblet.services.chat import ChatService
from niblet.services.dashboard import DashboardService
from niblet.services.goals import GoalPlanner
from niblet.services.onboarding import OnboardingService
from niblet.services.personalities import PersonalityService


@dataclass
class FakeBackend:
    """Records backend calls and returns canned payloads."""

    calls: list[tuple[str, object]] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)
    meals: list[dict[str, object]] = field(default_factory=list)
    current_goal: dict[str, object] | None = None
    recommended_calories: int | None = 1850
    analyzed_calories: int | None = 420
    onboarding_completed: bool = False
    meal_delay: float = 0.0

    def _record(self, name: str, payload: object = None) -> None:
        self.calls.append((name, payload))
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> list[object]:
        return [payload for call, payload in self.calls if call == name]

    async def create_meal(self, token, meal):  # type: ignore[no-untyped-def]
        self._record("create_meal", meal)
        if self.meal_delay:
            await asyncio.sleep(self.meal_delay)
        return {"success": True, "data": {"_id": "meal-1", **meal}}

    async def analyze_meal_text(self, token, text):  # type: ignore[no-untyped-def]
        self._record("analyze_meal_text", text)
        return {"success": True, "data": {"calories": self.analyzed_calories}}

    async def create_weight_entry(self, token, entry):  # type: ignore[no-untyped-def]
        self._record("create_weight_entry", entry)
        return {"success": True, "data": entry}

    async def update_profile(self, token, profile):  # type: ignore[no-untyped-def]
        self._record("update_profile", profile)
        return {"success": True, "data": profile}

    async def complete_onboarding(self, token):  # type: ignore[no-untyped-def]
        self._record("complete_onboarding")
        return {"success": True}

    async def calculate_calories(self, token, profile):  # type: ignore[no-untyped-def]
        self._record("calculate_calories", profile)
        return {
            "success": True,
            "data": {"recommendedCalories": self.recommended_calories},
        }

    async def create_goal(self, token, goal):  # type: ignore[no-untyped-def]
        self._record("create_goal", goal)
        return {"success": True, "data": goal}

    async def get_meals(self, token, date=None):  # type: ignore[no-untyped-def]
        self._record("get_meals", date)
        return {"success": True, "count": len(self.meals), "data": self.meals}

    async def get_current_goal(self, token):  # type: ignore[no-untyped-def]
        self._record("get_current_goal")
        return {"success": True, "data": self.current_goal}

    async def register(self, email, password):  # type: ignore[no-untyped-def]
        self._record("register", email)
        return {"token": "new-token", "user": {"id": "u1", "email": email}}

    async def login(self, email, password):  # type: ignore[no-untyped-def]
        self._record("login", email)
        return {
            "token": "login-token",
            "user": {
                "id": "u1",
                "email": email,
                "onboardingCompleted": self.onboarding_completed,
            },
        }


@dataclass
class FakeAssistantClient(AssistantClient):
    """Assistant client that walks through scripted run statuses."""

    statuses: list[str] = field(default_factory=lambda: ["queued", "completed"])
    error_message: str | None = None
    replies: list[ThreadMessage] = field(
        default_factory=lambda: [
            ThreadMessage(id="msg-2", role="assistant", text="hey there!"),
            ThreadMessage(id="msg-1", role="user", text="hi"),
        ]
    )
    posted: list[tuple[str, str]] = field(default_factory=list)
    retrieve_count: int = 0

    async def create_thread(self) -> str:
        return "thread-1"

    async def add_message(self, thread_id: str, text: str) -> str:
        self.posted.append((thread_id, text))
        return "msg-1"

    async def create_run(self, thread_id: str, assistant_id: str) -> RunStatus:
        return RunStatus(id="run-1", status="queued")

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunStatus:
        index = min(self.retrieve_count, len(self.statuses) - 1)
        self.retrieve_count += 1
        return RunStatus(
            id=run_id, status=self.statuses[index], error_message=self.error_message
        )

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        return self.replies


@dataclass
class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records the requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_url="http://backend.test/api",
        assistant_id="asst_123",
        openai_api_key="openai-key",
        admin_token="admin-token",
        environment="test",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def assistant_client() -> FakeAssistantClient:
    return FakeAssistantClient()


@pytest.fixture
def personality_service() -> PersonalityService:
    return PersonalityService(InMemoryPersonalityRepository.with_defaults())


@pytest.fixture
def chat_service(backend: FakeBackend) -> ChatService:
    return ChatService(meals_api=backend, weight_api=backend, rng=random.Random(0))


@pytest.fixture
def onboarding_service(backend: FakeBackend) -> OnboardingService:
    return OnboardingService(profile_api=backend, goal_planner=GoalPlanner(backend))


@pytest.fixture
def container(
    settings: Settings,
    backend: FakeBackend,
    assistant_client: FakeAssistantClient,
    personality_service: PersonalityService,
    chat_service: ChatService,
    onboarding_service: OnboardingService,
) -> AppContainer:
    assistant_service = AssistantService(
        client=assistant_client,
        assistant_id=settings.assistant_id,
        personalities=personality_service,
        sleep=RecordingSleep(),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        chat_service=chat_service,
        onboarding_service=onboarding_service,
        assistant_service=assistant_service,
        personality_service=personality_service,
        dashboard_service=DashboardService(backend),
        account_service=AccountService(backend),
        close_resources=close_resources,
    )
