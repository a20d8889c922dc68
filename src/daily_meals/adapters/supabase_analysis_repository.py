"""Supabase repository for food-photo analyses."""

from dataclasses import dataclass

from supabase import Client

from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.services.analysis import AnalysisRepository


@dataclass
class SupabaseAnalysisRepository(AnalysisRepository):
    """Supabase implementation for analysis persistence."""

    client: Client

    def save_analysis(self, user_id: str, record: AnalysisRecord) -> str:
        """Upsert an analysis row and return its id."""
        response = (
            self.client.table("meal_analyses")
            .upsert(
                {
                    "id": record.id,
                    "user_id": user_id,
                    "food_name": record.food_name,
                    "description": record.description,
                    "calories": record.calories,
                    "protein": record.protein_g,
                    "carbs": record.carbs_g,
                    "fat": record.fat_g,
                    "fiber": record.fiber_g,
                    "confidence": record.confidence,
                    "suggested_foods": record.suggested_foods,
                    "meal_id": record.meal_id,
                    "created_at": record.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save meal analysis")
        return str(response.data[0]["id"])
