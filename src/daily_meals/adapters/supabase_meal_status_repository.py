"""Supabase repository for per-day meal status rows."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from daily_meals.domain.meals import MealStatus
from daily_meals.services.sync import MealStatusRepository


@dataclass
class SupabaseMealStatusRepository(MealStatusRepository):
    """Supabase implementation for the daily meal status table."""

    client: Client

    def upsert_status(  # noqa: PLR0913
        self,
        user_id: str,
        date_key: str,
        meal_id: int,
        status: MealStatus,
        completed_at: datetime | None,
        meal_data: dict[str, object],
    ) -> None:
        """Insert or update the row for a user's meal on a date."""
        self.client.table("daily_meal_status").upsert(
            {
                "user_id": user_id,
                "date": date_key,
                "meal_id": meal_id,
                "status": status,
                "completed_at": completed_at.isoformat() if completed_at else None,
                "meal_data": meal_data,
            },
            on_conflict="user_id,date,meal_id",
        ).execute()
