"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from niblet.adapters.backend_client import HttpxBackendClient
from niblet.adapters.memory_personality_repository import (
    InMemoryPersonalityRepository,
)
from niblet.adapters.openai_assistant_client import OpenAIAssistantClient
from niblet.adapters.supabase_personality_repository import (
    SupabasePersonalityRepository,
)
from niblet.config import Settings
from niblet.services.accounts import AccountService
from niblet.services.assistant import AssistantService
from niblet.services.chat import ChatService
from niblet.services.dashboard import DashboardService
from niblet.services.goals import GoalPlanner
from niblet.services.onboarding import OnboardingService
from niblet.services.personalities import PersonalityRepository, PersonalityService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    chat_service: ChatService
    onboarding_service: OnboardingService
    assistant_service: AssistantService
    personality_service: PersonalityService
    dashboard_service: DashboardService
    account_service: AccountService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    backend_client = HttpxBackendClient.create(
        resolved_settings.api_url, timeout=resolved_settings.backend_timeout_seconds
    )
    assistant_client = OpenAIAssistantClient.create(resolved_settings.openai_api_key)

    personality_repository: PersonalityRepository
    if resolved_settings.uses_supabase:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        personality_repository = SupabasePersonalityRepository(supabase_client)
    else:
        personality_repository = InMemoryPersonalityRepository.with_defaults()
    personality_service = PersonalityService(personality_repository)

    chat_service = ChatService(
        meals_api=backend_client,
        weight_api=backend_client,
        backend_analysis=resolved_settings.chat_backend_analysis,
        default_weight_unit=resolved_settings.default_weight_unit,
    )
    onboarding_service = OnboardingService(
        profile_api=backend_client,
        goal_planner=GoalPlanner(backend_client),
    )
    assistant_service = AssistantService(
        client=assistant_client,
        assistant_id=resolved_settings.assistant_id,
        personalities=personality_service,
    )

    async def close_resources() -> None:
        await backend_client.close()
        await assistant_client.close()

    return AppContainer(
        settings=resolved_settings,
        chat_service=chat_service,
        onboarding_service=onboarding_service,
        assistant_service=assistant_service,
        personality_service=personality_service,
        dashboard_service=DashboardService(backend_client),
        account_service=AccountService(backend_client),
        close_resources=close_resources,
    )
