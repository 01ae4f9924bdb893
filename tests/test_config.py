"""Tests for settings loading."""

from niblet.config import Settings


def test_settings_read_frontend_variable_names(monkeypatch) -> None:
    monkeypatch.setenv("NEXT_PUBLIC_API_URL", "https://api.example.com/api")
    monkeypatch.setenv("NEXT_PUBLIC_ASSISTANT_ID", "asst_env")
    monkeypatch.setenv("OPENAI_API_KEY", "key")
    monkeypatch.setenv("ADMIN_TOKEN", "admin")

    settings = Settings()

    assert settings.api_url == "https://api.example.com/api"
    assert settings.assistant_id == "asst_env"
    assert not settings.uses_supabase


def test_supabase_store_needs_url_and_key() -> None:
    settings = Settings(
        openai_api_key="key",
        admin_token="admin",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )

    assert settings.uses_supabase
    assert settings.default_weight_unit is None
