"""Pydantic models for the HTTP API."""

from pydantic import BaseModel, Field

from daily_meals.domain.meals import MealSlot, MealStatus, Nutrition


class MealSlotOut(BaseModel):
    """Meal slot as shown on today's dashboard."""

    id: int
    time: str
    name: str
    status: MealStatus
    calories: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    foods: list[str] = Field(default_factory=list)
    description: str | None = None

    @classmethod
    def from_slot(cls, slot: MealSlot) -> "MealSlotOut":
        nutrition = slot.nutrition
        return cls(
            id=slot.id,
            time=slot.time,
            name=slot.name,
            status=slot.status,
            calories=nutrition.calories if nutrition else None,
            protein_g=nutrition.protein_g if nutrition else None,
            carbs_g=nutrition.carbs_g if nutrition else None,
            fat_g=nutrition.fat_g if nutrition else None,
            foods=list(slot.foods),
            description=slot.description,
        )


class DayOut(BaseModel):
    """Today's meals and the running calorie total."""

    date: str
    total_calories: int
    meals: list[MealSlotOut]


class NutritionIn(BaseModel):
    """Manually recorded nutrition for a meal."""

    calories: float = Field(ge=0.0)
    protein_g: float = Field(default=0.0, ge=0.0)
    carbs_g: float = Field(default=0.0, ge=0.0)
    fat_g: float = Field(default=0.0, ge=0.0)

    def to_nutrition(self) -> Nutrition:
        return Nutrition(
            calories=self.calories,
            protein_g=self.protein_g,
            carbs_g=self.carbs_g,
            fat_g=self.fat_g,
        )


class AnalysisIn(BaseModel):
    """Photo to analyze, as base64 image bytes."""

    image_base64: str = Field(min_length=1)
    food_name: str | None = None
    meal_id: int | None = None
