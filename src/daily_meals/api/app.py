"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from daily_meals.api.schemas import AnalysisIn, DayOut, MealSlotOut, NutritionIn
from daily_meals.app_logging import configure_logging
from daily_meals.containers import AppContainer
from daily_meals.domain.analysis import AnalysisRecord
from daily_meals.domain.days import HistoryEntry, MealEntry
from daily_meals.domain.meals import UnknownMealSlot
from daily_meals.services.analysis import AnalysisUnavailable
from daily_meals.services.reconciler import DayView


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(UnknownMealSlot)
    async def unknown_meal_slot(
        request: Request, exc: UnknownMealSlot
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(AnalysisUnavailable)
    async def analysis_unavailable(
        request: Request, exc: AnalysisUnavailable
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/days/today")
    async def today(request: Request) -> DayOut:
        """Return today's meals after any pending rollover."""
        view = _open_view(request)
        try:
            return _day_out(view)
        finally:
            view.unmount()

    @app.post("/days/today/meals/{meal_id}/confirm")
    async def confirm_meal(meal_id: int, request: Request) -> DayOut:
        """Mark a meal as completed."""
        view = _open_view(request)
        try:
            view.confirm(meal_id)
            return _day_out(view)
        finally:
            view.unmount()

    @app.post("/days/today/meals/{meal_id}/undo")
    async def undo_meal(meal_id: int, request: Request) -> DayOut:
        """Mark a completed meal as upcoming again."""
        view = _open_view(request)
        try:
            view.undo(meal_id)
            return _day_out(view)
        finally:
            view.unmount()

    @app.put("/days/today/meals/{meal_id}/nutrition")
    async def record_nutrition(
        meal_id: int, payload: NutritionIn, request: Request
    ) -> MealEntry:
        """Record nutrition entered by hand for a meal."""
        state_container: AppContainer = request.app.state.container
        return state_container.day_service.record_nutrition(
            meal_id, payload.to_nutrition()
        )

    @app.get("/history")
    async def history(request: Request) -> dict[str, list[HistoryEntry]]:
        """Return archived days, oldest first."""
        state_container: AppContainer = request.app.state.container
        return {"days": state_container.day_service.history()}

    @app.post("/analyses", status_code=status.HTTP_201_CREATED)
    async def create_analysis(payload: AnalysisIn, request: Request) -> AnalysisRecord:
        """Analyze a meal photo and link the estimate to a meal."""
        state_container: AppContainer = request.app.state.container
        image_bytes = _decode_image(payload.image_base64)
        record = await state_container.analysis_service.analyze(
            image_bytes, food_name=payload.food_name, meal_id=payload.meal_id
        )
        logger.info("Stored analysis %s (synced=%s)", record.id, record.synced)
        return record

    @app.get("/analyses")
    async def list_analyses(request: Request) -> dict[str, list[AnalysisRecord]]:
        """Return locally cached analyses."""
        state_container: AppContainer = request.app.state.container
        return {"analyses": state_container.analysis_service.list_analyses()}

    return app


def _open_view(request: Request) -> DayView:
    state_container: AppContainer = request.app.state.container
    return state_container.day_service.open_view()


def _day_out(view: DayView) -> DayOut:
    return DayOut(
        date=view.date_key or "",
        total_calories=view.total_calories(),
        meals=[MealSlotOut.from_slot(slot) for slot in view.slots],
    )


def _decode_image(value: str) -> bytes:
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=422,
            detail="image_base64 is not valid base64",
        ) from exc
