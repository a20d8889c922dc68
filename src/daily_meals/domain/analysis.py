"""Domain models for food-photo analyses."""

from datetime import datetime

from pydantic import BaseModel, Field

from daily_meals.domain.meals import Nutrition


class AnalysisRecord(BaseModel):
    """AI-derived nutrition estimate for a photographed meal."""

    id: str
    food_name: str
    description: str = ""
    calories: float = Field(default=0.0, ge=0.0)
    protein_g: float = Field(default=0.0, ge=0.0)
    carbs_g: float = Field(default=0.0, ge=0.0)
    fat_g: float = Field(default=0.0, ge=0.0)
    fiber_g: float = Field(default=0.0, ge=0.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    suggested_foods: list[str] = Field(default_factory=list)
    meal_id: int | None = None
    created_at: datetime
    synced: bool = False

    def nutrition(self) -> Nutrition:
        """Return the macro breakdown as meal nutrition."""
        return Nutrition(
            calories=self.calories,
            protein_g=self.protein_g,
            carbs_g=self.carbs_g,
            fat_g=self.fat_g,
        )
