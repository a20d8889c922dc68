"""Food-photo analyses: vision call, local cache and remote copy."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.domain.meals import MealSlot, UnknownMealSlot
from daily_meals.services.meal_records import MealRecordStore
from daily_meals.services.vision import VisionService

logger = logging.getLogger(__name__)


class AnalysisUnavailable(RuntimeError):
    """Raised when the vision model could not analyze an image."""


class AnalysisRepository(Protocol):
    """Remote persistence for analyses."""

    def save_analysis(self, user_id: str, record: AnalysisRecord) -> str:
        """Persist an analysis and return its remote id."""


@dataclass
class AnalysisService:
    """Turns a photo into a cached AnalysisRecord linked to a meal slot."""

    vision_service: VisionService
    meal_records: MealRecordStore
    template: Sequence[MealSlot]
    user_id: str
    repository: AnalysisRepository | None = None

    async def analyze(
        self,
        image_bytes: bytes,
        food_name: str | None = None,
        meal_id: int | None = None,
    ) -> AnalysisRecord:
        """Analyze an image, cache the result and link it to the meal."""
        slot = self._slot(meal_id) if meal_id is not None else None
        try:
            extract = await self.vision_service.analyze(image_bytes, food_name)
        except Exception as exc:
            logger.exception("Vision analysis failed")
            raise AnalysisUnavailable("Could not analyze the image") from exc
        record = AnalysisRecord(
            id=str(uuid4()),
            food_name=food_name or extract.food_name or "Meal",
            description=extract.description,
            calories=extract.calories,
            protein_g=extract.protein_g,
            carbs_g=extract.carbs_g,
            fat_g=extract.fat_g,
            fiber_g=extract.fiber_g,
            confidence=extract.confidence,
            suggested_foods=extract.suggested_foods,
            meal_id=meal_id,
            created_at=datetime.now(tz=UTC),
        )
        record = self._persist_remote(record)
        if not self.meal_records.save_analysis(record):
            logger.warning("Analysis %s was not cached locally", record.id)
        if slot is not None:
            self.meal_records.link_analysis(slot.id, slot.name, record.id)
        return record

    def list_analyses(self) -> list[AnalysisRecord]:
        return self.meal_records.list_analyses()

    def _persist_remote(self, record: AnalysisRecord) -> AnalysisRecord:
        if self.repository is None:
            return record
        try:
            remote_id = self.repository.save_analysis(self.user_id, record)
        except Exception:
            logger.exception("Failed to save analysis remotely, keeping local copy")
            return record
        return record.model_copy(update={"id": remote_id, "synced": True})

    def _slot(self, meal_id: int) -> MealSlot:
        for slot in self.template:
            if slot.id == meal_id:
                return slot
        raise UnknownMealSlot(meal_id)
