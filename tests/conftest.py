"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import pytest

from daily_meals.config import Settings
from daily_meals.containers import AppContainer
from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.domain.days import HistoryEntry
from daily_meals.domain.meals import MealSlot, MealStatus, Nutrition
from daily_meals.services.analysis import AnalysisRepository, AnalysisService
from daily_meals.services.days import DayService, build_day_service
from daily_meals.services.storage import StorageArea, StorageKeys
from daily_meals.services.sync import (
    HistoryBackupRepository,
    MealStatusRepository,
    MealSyncService,
)
from daily_meals.services.vision import VisionClient, VisionService

TEMPLATE: tuple[MealSlot, ...] = (
    MealSlot(id=1, time="07:30", name="Breakfast", nutrition=Nutrition(350)),
    MealSlot(id=2, time="10:00", name="Snack", nutrition=Nutrition(200)),
    MealSlot(id=3, time="13:00", name="Lunch", nutrition=Nutrition(300)),
    MealSlot(id=4, time="19:30", name="Dinner"),
)


@dataclass
class FakeClock:
    """Mutable local calendar used as the ``today`` callable."""

    current: date = date(2024, 5, 10)

    def __call__(self) -> str:
        return self.current.isoformat()

    def advance(self, days: int = 1) -> None:
        self.current += timedelta(days=days)


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "food_name": "Grilled salmon",
            "description": "Salmon fillet with rice and greens.",
            "calories": 420,
            "protein_g": 32,
            "carbs_g": 30,
            "fat_g": 18,
            "fiber_g": 4,
            "confidence": 0.81,
            "suggested_foods": ["quinoa", "steamed broccoli", "lemon"],
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append({"image_data_url": image_data_url, "prompt": prompt})
        return self.payload


@dataclass
class FailingVisionClient(VisionClient):
    """Vision client that always errors."""

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        raise RuntimeError("vision backend down")


@dataclass
class InMemoryMealStatusRepository(MealStatusRepository):
    """Records upserted meal statuses."""

    rows: dict[tuple[str, str, int], dict[str, object]] = field(default_factory=dict)
    fail: bool = False

    def upsert_status(  # noqa: PLR0913
        self,
        user_id: str,
        date_key: str,
        meal_id: int,
        status: MealStatus,
        completed_at: datetime | None,
        meal_data: dict[str, object],
    ) -> None:
        if self.fail:
            raise ConnectionError("network unreachable")
        self.rows[(user_id, date_key, meal_id)] = {
            "status": status,
            "completed_at": completed_at,
            "meal_data": meal_data,
        }


@dataclass
class InMemoryHistoryBackupRepository(HistoryBackupRepository):
    """Records backed up history entries."""

    entries: list[HistoryEntry] = field(default_factory=list)
    fail: bool = False

    def insert_backup(self, user_id: str, entry: HistoryEntry) -> None:
        if self.fail:
            raise ConnectionError("network unreachable")
        self.entries.append(entry)


@dataclass
class InMemoryAnalysisRepository(AnalysisRepository):
    """Stores analyses under a remote-style id."""

    saved: dict[str, AnalysisRecord] = field(default_factory=dict)
    fail: bool = False

    def save_analysis(self, user_id: str, record: AnalysisRecord) -> str:
        if self.fail:
            raise ConnectionError("network unreachable")
        remote_id = f"remote-{len(self.saved) + 1}"
        self.saved[remote_id] = record
        return remote_id


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        storage_path=tmp_path / "storage.json",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage_area() -> StorageArea:
    return StorageArea()


@pytest.fixture
def status_repository() -> InMemoryMealStatusRepository:
    return InMemoryMealStatusRepository()


@pytest.fixture
def backup_repository() -> InMemoryHistoryBackupRepository:
    return InMemoryHistoryBackupRepository()


@pytest.fixture
def sync_service(
    status_repository: InMemoryMealStatusRepository,
    backup_repository: InMemoryHistoryBackupRepository,
) -> MealSyncService:
    return MealSyncService(
        user_id="user-1",
        status_repository=status_repository,
        backup_repository=backup_repository,
    )


@pytest.fixture
def day_service(
    storage_area: StorageArea, clock: FakeClock, sync_service: MealSyncService
) -> DayService:
    return build_day_service(
        storage_area.open_session(),
        template=TEMPLATE,
        today=clock,
        keys=StorageKeys(),
        sync=sync_service,
    )


@pytest.fixture
def container(
    settings: Settings, storage_area: StorageArea, day_service: DayService
) -> AppContainer:
    vision_service = VisionService(
        client=FakeVisionClient(),
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )
    analysis_service = AnalysisService(
        vision_service=vision_service,
        meal_records=day_service.meal_records,
        template=day_service.template,
        user_id=settings.user_id,
        repository=InMemoryAnalysisRepository(),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        storage_area=storage_area,
        day_service=day_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
