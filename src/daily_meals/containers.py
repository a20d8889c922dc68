"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from daily_meals.adapters.openai_vision_client import OpenAIVisionClient
from daily_meals.adapters.supabase_analysis_repository import (
    SupabaseAnalysisRepository,
)
from daily_meals.adapters.supabase_history_repository import (
    SupabaseHistoryRepository,
)
from daily_meals.adapters.supabase_meal_status_repository import (
    SupabaseMealStatusRepository,
)
from daily_meals.config import Settings, resolve_template
from daily_meals.services.analysis import AnalysisRepository, AnalysisService
from daily_meals.services.clock import make_today
from daily_meals.services.days import DayService, build_day_service
from daily_meals.services.storage import StorageArea, StorageKeys
from daily_meals.services.sync import MealSyncService
from daily_meals.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    storage_area: StorageArea
    day_service: DayService
    analysis_service: AnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    template = resolve_template(resolved_settings.meal_template_path)
    storage_area = StorageArea(
        path=resolved_settings.storage_path,
        quota_bytes=resolved_settings.storage_quota_bytes,
    )
    storage = storage_area.open_session()
    keys = StorageKeys(namespace=resolved_settings.storage_namespace)

    sync_service = MealSyncService(user_id=resolved_settings.user_id)
    analysis_repository: AnalysisRepository | None = None
    if resolved_settings.remote_sync_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        sync_service.status_repository = SupabaseMealStatusRepository(supabase_client)
        sync_service.backup_repository = SupabaseHistoryRepository(supabase_client)
        analysis_repository = SupabaseAnalysisRepository(supabase_client)

    day_service = build_day_service(
        storage,
        template=template,
        today=make_today(resolved_settings.timezone),
        keys=keys,
        history_limit=resolved_settings.history_limit,
        sync=sync_service,
    )
    openai_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
    vision_service = VisionService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    analysis_service = AnalysisService(
        vision_service=vision_service,
        meal_records=day_service.meal_records,
        template=template,
        user_id=resolved_settings.user_id,
        repository=analysis_repository,
    )

    async def close_resources() -> None:
        await openai_client.close()
        storage.close()

    return AppContainer(
        settings=resolved_settings,
        storage_area=storage_area,
        day_service=day_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
