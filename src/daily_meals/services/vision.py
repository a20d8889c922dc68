"""Food-photo analysis using LLM vision."""

import base64
from dataclasses import dataclass
from typing import Protocol

from daily_meals.domain.vision import MealAnalysisExtract

_NUMBER = {"type": "number", "minimum": 0.0}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "food_name": {"type": "string"},
        "description": {"type": "string"},
        "calories": _NUMBER,
        "protein_g": _NUMBER,
        "carbs_g": _NUMBER,
        "fat_g": _NUMBER,
        "fiber_g": _NUMBER,
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "suggested_foods": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "food_name",
        "description",
        "calories",
        "protein_g",
        "carbs_g",
        "fat_g",
        "fiber_g",
        "confidence",
        "suggested_foods",
    ],
    "additionalProperties": False,
}


class VisionClient(Protocol):
    """Interface for LLM vision analysis."""

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured analysis data for an image."""


@dataclass
class VisionService:
    """Builds the analysis prompt and validates the model's answer."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze(
        self, image_bytes: bytes, food_name: str | None = None
    ) -> MealAnalysisExtract:
        """Estimate nutrition for the meal shown in an image."""
        raw = await self.client.analyze(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            image_data_url=_to_data_url(image_bytes),
            schema=ANALYSIS_SCHEMA,
            prompt=_build_prompt(food_name),
        )
        return MealAnalysisExtract.model_validate(raw)


def _build_prompt(food_name: str | None) -> str:
    subject = food_name or "meal"
    return (
        f"Analyze this photo of food ({subject}). "
        "Give a short name and a description of at most two sentences, "
        "estimated total calories (kcal) and protein, carbs, fat and fiber "
        "in grams for the whole plate, your confidence (0-1), "
        "and 3-4 similar or complementary foods."
    )


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
