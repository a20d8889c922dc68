"""Application configuration."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from daily_meals.domain.meals import DEFAULT_TEMPLATE, MealSlot, load_template

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "medium"
    openai_store: bool = False
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    user_id: str = "local"
    storage_path: Path | None = Path(".daily_meals/storage.json")
    storage_namespace: str = "nutri-mindflow"
    storage_quota_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    timezone: str = "UTC"
    meal_template_path: Path | None = None
    history_limit: int = Field(default=100, ge=1)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def remote_sync_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def resolve_template(path: Path | None) -> tuple[MealSlot, ...]:
    """Return the configured meal template, or the built-in one."""
    if path is None:
        return DEFAULT_TEMPLATE
    return load_template(path)
