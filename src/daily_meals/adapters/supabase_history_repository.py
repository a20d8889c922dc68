"""Supabase repository for archived meal days."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from daily_meals.domain.days import HistoryEntry
from daily_meals.services.sync import HistoryBackupRepository


@dataclass
class SupabaseHistoryRepository(HistoryBackupRepository):
    """Supabase implementation for meal status history backups."""

    client: Client

    def insert_backup(self, user_id: str, entry: HistoryEntry) -> None:
        """Insert a history row for an archived day."""
        self.client.table("meal_status_history").insert(
            {
                "user_id": user_id,
                "date": entry.date,
                "meal_status_data": [
                    slot.model_dump(mode="json") for slot in entry.slots
                ],
                "total_calories": entry.total_calories,
                "created_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()
