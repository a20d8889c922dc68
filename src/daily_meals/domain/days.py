"""Persisted day-scoped records."""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from daily_meals.domain.meals import COMPLETED, MealStatus, Nutrition

DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class SlotStatus(BaseModel):
    """Completion status of one slot, as stored for a day."""

    id: int
    status: MealStatus


class DayRecord(BaseModel):
    """Stored slot statuses for one calendar date."""

    date: str = Field(pattern=DATE_KEY_PATTERN)
    slots: list[SlotStatus] = Field(default_factory=list)

    def status_of(self, slot_id: int) -> MealStatus | None:
        """Return the stored status of a slot, if the record has one."""
        for slot in self.slots:
            if slot.id == slot_id:
                return slot.status
        return None


class CalorieLedger(BaseModel):
    """Running calorie total for a date and the amount each slot added."""

    date: str = Field(pattern=DATE_KEY_PATTERN)
    total: int = Field(default=0, ge=0)
    contributions: dict[int, int] = Field(default_factory=dict)


class HistoryEntry(BaseModel):
    """Archived snapshot of a finished day."""

    date: str = Field(pattern=DATE_KEY_PATTERN)
    slots: list[SlotStatus] = Field(default_factory=list)
    total_calories: int = Field(default=0, ge=0)
    archived_at: datetime

    @computed_field
    @property
    def completed_count(self) -> int:
        return sum(1 for slot in self.slots if slot.status == COMPLETED)

    @computed_field
    @property
    def adherence(self) -> float:
        """Percentage of slots completed that day."""
        if not self.slots:
            return 0.0
        return round(100.0 * self.completed_count / len(self.slots), 1)


class MealEntry(BaseModel):
    """Locally recorded nutrition and analysis link for a meal slot on a date."""

    id: int
    date: str | None = Field(default=None, pattern=DATE_KEY_PATTERN)
    name: str = ""
    nutrition: Nutrition | None = None
    analysis_id: str | None = None
