"""Change notifications shared between mounted day views."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from daily_meals.domain.meals import MealStatus

MEAL_COMPLETED_EVENT = "meal-completed"


class MealChange(BaseModel):
    """Payload of a meal status change; only the meal id is guaranteed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    meal_id: int = Field(alias="mealId")
    status: MealStatus | None = None
    calories: float | None = None
    foods: list[str] = Field(default_factory=list)
    analysis_data: dict[str, object] | None = Field(default=None, alias="analysisData")
    timestamp: datetime | None = None
