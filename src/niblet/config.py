"""Application configuration."""

import os
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_url: str = Field(
        default="http://localhost:5080/api",
        validation_alias=AliasChoices("api_url", "NEXT_PUBLIC_API_URL"),
    )
    assistant_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("assistant_id", "NEXT_PUBLIC_ASSISTANT_ID"),
    )
    openai_api_key: str
    admin_token: str
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    chat_backend_analysis: bool = False
    default_weight_unit: Literal["lbs", "kg"] | None = None
    backend_timeout_seconds: float = 15
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def uses_supabase(self) -> bool:
        """Return True when the admin store should live in Supabase."""
        return bool(self.supabase_url and self.supabase_service_key)
