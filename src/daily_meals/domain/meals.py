"""Domain models for the daily meal template."""

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

MealStatus = Literal["upcoming", "completed"]

UPCOMING: MealStatus = "upcoming"
COMPLETED: MealStatus = "completed"


class UnknownMealSlot(LookupError):
    """Raised when a meal slot id is not part of the day's template."""

    def __init__(self, slot_id: int) -> None:
        super().__init__(f"Unknown meal slot: {slot_id}")
        self.slot_id = slot_id


@dataclass(frozen=True)
class Nutrition:
    """Macronutrients for one serving of a meal."""

    calories: float
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0


@dataclass(frozen=True)
class MealSlot:
    """One scheduled meal occurrence of a day."""

    id: int
    time: str
    name: str
    status: MealStatus = UPCOMING
    nutrition: Nutrition | None = None
    foods: tuple[str, ...] = ()
    description: str | None = None

    def with_status(self, status: MealStatus) -> "MealSlot":
        """Return a copy of the slot with a new completion status."""
        return replace(self, status=status)


DEFAULT_TEMPLATE: tuple[MealSlot, ...] = (
    MealSlot(
        id=1,
        time="07:30",
        name="Breakfast",
        nutrition=Nutrition(calories=350, protein_g=20, carbs_g=35, fat_g=12),
        foods=(
            "2 scrambled eggs",
            "1 slice of whole-grain bread",
            "1 fruit",
            "Black coffee or green tea",
        ),
        description="Balanced option to start the day with energy.",
    ),
    MealSlot(
        id=2,
        time="10:00",
        name="Morning snack",
        nutrition=Nutrition(calories=200, protein_g=12, carbs_g=10, fat_g=14),
        foods=("1 unsweetened greek yogurt", "1 handful of nuts"),
        description="Light snack between the main meals.",
    ),
    MealSlot(
        id=3,
        time="13:00",
        name="Lunch",
        nutrition=Nutrition(calories=450, protein_g=35, carbs_g=45, fat_g=15),
        foods=(
            "150g grilled chicken",
            "1/2 cup brown rice",
            "Green salad",
            "1 spoon of olive oil",
        ),
        description="Protein, complex carbs and vegetables.",
    ),
    MealSlot(
        id=4,
        time="16:00",
        name="Afternoon snack",
        nutrition=Nutrition(calories=180, protein_g=5, carbs_g=20, fat_g=8),
        foods=("1 fruit", "1 spoon of peanut butter"),
        description="Keeps hunger down before dinner.",
    ),
    MealSlot(
        id=5,
        time="19:30",
        name="Dinner",
        nutrition=Nutrition(calories=380, protein_g=30, carbs_g=35, fat_g=10),
        foods=("150g baked fish", "Steamed vegetables", "1 small sweet potato"),
        description="Light meal that is easy to digest.",
    ),
)


def load_template(path: Path) -> tuple[MealSlot, ...]:
    """Load a meal template from a JSON list of slot objects."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Meal template must be a JSON list: {path}")
    slots = [_parse_slot(item) for item in raw]
    ids = [slot.id for slot in slots]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Meal template has duplicate slot ids: {path}")
    return tuple(slots)


def _parse_slot(item: dict[str, object]) -> MealSlot:
    nutrition = None
    if isinstance(item.get("calories"), int | float):
        nutrition = Nutrition(
            calories=float(item["calories"]),
            protein_g=float(item.get("protein_g", 0.0)),
            carbs_g=float(item.get("carbs_g", 0.0)),
            fat_g=float(item.get("fat_g", 0.0)),
        )
    status = item.get("status", UPCOMING)
    if status not in (UPCOMING, COMPLETED):
        raise ValueError(f"Invalid meal status: {status}")
    foods = item.get("foods") or []
    return MealSlot(
        id=int(item["id"]),
        time=str(item.get("time", "")),
        name=str(item.get("name", "")),
        status=status,
        nutrition=nutrition,
        foods=tuple(str(food) for food in foods),
        description=item.get("description"),
    )
