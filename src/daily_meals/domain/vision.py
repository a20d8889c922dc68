"""Models for vision analysis results."""

from pydantic import BaseModel, Field


class MealAnalysisExtract(BaseModel):
    """Structured output of a food-photo analysis."""

    food_name: str
    description: str
    calories: float = Field(ge=0.0)
    protein_g: float = Field(default=0.0, ge=0.0)
    carbs_g: float = Field(default=0.0, ge=0.0)
    fat_g: float = Field(default=0.0, ge=0.0)
    fiber_g: float = Field(default=0.0, ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)
    suggested_foods: list[str] = Field(default_factory=list)
