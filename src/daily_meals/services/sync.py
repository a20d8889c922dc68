"""Best-effort mirroring of local meal state to the remote database."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from daily_meals.domain.days import HistoryEntry
from daily_meals.domain.meals import COMPLETED, MealSlot, MealStatus

logger = logging.getLogger(__name__)


class MealStatusRepository(Protocol):
    """Remote persistence for per-day meal status rows."""

    def upsert_status(  # noqa: PLR0913
        self,
        user_id: str,
        date_key: str,
        meal_id: int,
        status: MealStatus,
        completed_at: datetime | None,
        meal_data: dict[str, object],
    ) -> None:
        """Create or update the status row for a meal on a date."""


class HistoryBackupRepository(Protocol):
    """Remote persistence for archived days."""

    def insert_backup(self, user_id: str, entry: HistoryEntry) -> None:
        """Store an archived day."""


@dataclass
class MealSyncService:
    """Pushes local changes to remote tables without ever failing the caller."""

    user_id: str
    status_repository: MealStatusRepository | None = None
    backup_repository: HistoryBackupRepository | None = None

    def sync_status(self, date_key: str, slot: MealSlot) -> bool:
        """Mirror a slot's status; returns False when skipped or failed."""
        if self.status_repository is None:
            return False
        completed_at = datetime.now(tz=UTC) if slot.status == COMPLETED else None
        try:
            self.status_repository.upsert_status(
                user_id=self.user_id,
                date_key=date_key,
                meal_id=slot.id,
                status=slot.status,
                completed_at=completed_at,
                meal_data=_meal_data(slot),
            )
        except Exception:
            logger.exception("Failed to sync status of meal %s", slot.id)
            return False
        return True

    def backup_day(self, entry: HistoryEntry) -> bool:
        """Back up an archived day; returns False when skipped or failed."""
        if self.backup_repository is None:
            return False
        try:
            self.backup_repository.insert_backup(self.user_id, entry)
        except Exception:
            logger.exception("Failed to back up meal history for %s", entry.date)
            return False
        return True


def _meal_data(slot: MealSlot) -> dict[str, object]:
    data: dict[str, object] = {
        "name": slot.name,
        "time": slot.time,
        "foods": list(slot.foods),
    }
    if slot.nutrition is not None:
        data["calories"] = slot.nutrition.calories
        data["protein"] = slot.nutrition.protein_g
        data["carbs"] = slot.nutrition.carbs_g
        data["fat"] = slot.nutrition.fat_g
    return data
