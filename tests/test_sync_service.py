"""Tests for remote mirroring of meal state."""

from datetime import UTC, datetime

from daily_meals.domain.days import HistoryEntry
from daily_meals.domain.meals import MealSlot, Nutrition
from daily_meals.services.sync import MealSyncService
from tests.conftest import (
    InMemoryHistoryBackupRepository,
    InMemoryMealStatusRepository,
)

SLOT = MealSlot(
    id=1,
    time="07:30",
    name="Breakfast",
    nutrition=Nutrition(350, protein_g=20),
    foods=("eggs",),
)


def test_sync_status_sends_meal_data() -> None:
    repository = InMemoryMealStatusRepository()
    service = MealSyncService(user_id="user-1", status_repository=repository)

    assert service.sync_status("2024-05-10", SLOT.with_status("completed"))

    row = repository.rows[("user-1", "2024-05-10", 1)]
    assert row["completed_at"] is not None
    assert row["meal_data"] == {
        "name": "Breakfast",
        "time": "07:30",
        "foods": ["eggs"],
        "calories": 350,
        "protein": 20,
        "carbs": 0.0,
        "fat": 0.0,
    }


def test_sync_status_of_upcoming_slot_has_no_completion_time() -> None:
    repository = InMemoryMealStatusRepository()
    service = MealSyncService(user_id="user-1", status_repository=repository)

    service.sync_status("2024-05-10", SLOT)

    assert repository.rows[("user-1", "2024-05-10", 1)]["completed_at"] is None


def test_sync_is_skipped_without_repositories() -> None:
    service = MealSyncService(user_id="user-1")
    entry = HistoryEntry(date="2024-05-10", archived_at=datetime.now(tz=UTC))

    assert service.sync_status("2024-05-10", SLOT) is False
    assert service.backup_day(entry) is False


def test_failures_are_reported_not_raised() -> None:
    service = MealSyncService(
        user_id="user-1",
        status_repository=InMemoryMealStatusRepository(fail=True),
        backup_repository=InMemoryHistoryBackupRepository(fail=True),
    )
    entry = HistoryEntry(date="2024-05-10", archived_at=datetime.now(tz=UTC))

    assert service.sync_status("2024-05-10", SLOT) is False
    assert service.backup_day(entry) is False


def test_backup_day_stores_entry() -> None:
    repository = InMemoryHistoryBackupRepository()
    service = MealSyncService(user_id="user-1", backup_repository=repository)
    entry = HistoryEntry(
        date="2024-05-10", total_calories=900, archived_at=datetime.now(tz=UTC)
    )

    assert service.backup_day(entry)
    assert repository.entries == [entry]
