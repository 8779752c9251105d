"""FastAPI server exposing the chat pipeline and gear management endpoints."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from gear_app.app import GearConciergeApp
from gear_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.validation import (
    ClassifyRequest,
    GearItemInput,
    GearItemPatch,
    GearPerformanceInput,
    LayeringRequest,
    TripInput,
    TripPatch,
)
from tools.gear_store import NotFoundError

LOGGER = get_logger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
DEFAULT_HISTORY_LIMIT = 50
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _internal_error(event: str, message: str) -> JSONResponse:
    log_event(LOGGER, logging.ERROR, event, exc_info=True)
    return _error(500, message)


def _parse_limit(limit: Optional[str]) -> int:
    """Read the leading integer of ``limit`` ("5.0" and "5abc" mean 5); anything else is the default."""

    match = _LEADING_INT.match(limit or "")
    parsed = int(match.group(1)) if match else 0
    return parsed if parsed > 0 else DEFAULT_HISTORY_LIMIT


def get_concierge(request: Request) -> GearConciergeApp:
    return request.app.state.concierge


def create_app(concierge: GearConciergeApp | None = None) -> FastAPI:
    """Build the ASGI app; the concierge is created in the lifespan unless injected."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = concierge is None
        app.state.concierge = concierge or GearConciergeApp()
        log_event(LOGGER, logging.INFO, "server_started")
        try:
            yield
        finally:
            if owned:
                app.state.concierge.close()
            log_event(LOGGER, logging.INFO, "server_stopped")

    app = FastAPI(title="Gear Concierge", version="0.1.0", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")

    @app.get("/healthz")
    async def healthcheck(concierge: GearConciergeApp = Depends(get_concierge)) -> dict:
        """Lightweight readiness check."""

        return {
            "status": "ok",
            "service": "gear-concierge",
            "environment": concierge.config.environment or "local",
            "model": concierge.config.model,
        }

    # -- chat ------------------------------------------------------------

    @app.post("/api/chat")
    async def chat(
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        with operation_context("api:chat"):
            try:
                result = await concierge.orchestrator.handle_message(payload.get("message"))
            except ValidationError:
                return _error(400, "Message is required")
            except Exception:
                return _internal_error("chat_failed", "Failed to process chat message")
            return result.to_api()

    @app.get("/api/chat/history")
    def chat_history(
        limit: Optional[str] = None,
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        parsed_limit = _parse_limit(limit)
        try:
            history = concierge.store.get_chat_history(parsed_limit)
        except Exception:
            response = _internal_error("chat_history_failed", "Failed to fetch chat history")
            response.headers.update(NO_CACHE_HEADERS)
            return response
        return JSONResponse(content=[entry.to_api() for entry in history], headers=NO_CACHE_HEADERS)

    # -- gear ------------------------------------------------------------

    @app.post("/api/gear")
    def create_gear(
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            gear = GearItemInput.model_validate(payload)
            return concierge.store.create_gear_item(gear).to_api()
        except (ValidationError, ValueError):
            return _error(400, "Failed to create gear item")
        except Exception:
            return _internal_error("gear_create_failed", "Failed to create gear item")

    @app.get("/api/gear")
    def list_gear(
        category: Optional[str] = None,
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            return [item.to_api() for item in concierge.store.get_gear_items(category or None)]
        except Exception:
            return _internal_error("gear_list_failed", "Failed to fetch gear items")

    @app.post("/api/gear/classify")
    async def classify_gear(
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            request = ClassifyRequest.model_validate(payload)
        except ValidationError:
            return _error(400, "Description is required")
        return await concierge.interpreter.classify_gear(request.description)

    @app.get("/api/gear/{gear_id}")
    def get_gear(gear_id: str, concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            item = concierge.store.get_gear_item(gear_id)
        except Exception:
            return _internal_error("gear_fetch_failed", "Failed to fetch gear item")
        if not item:
            return _error(404, "Gear item not found")
        return item.to_api()

    @app.patch("/api/gear/{gear_id}")
    def update_gear(
        gear_id: str,
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            updates = GearItemPatch.model_validate(payload).model_dump(exclude_unset=True)
            return concierge.store.update_gear_item(gear_id, updates).to_api()
        except NotFoundError:
            return _error(404, "Gear item not found")
        except (ValidationError, ValueError):
            return _error(400, "Failed to update gear item")
        except Exception:
            return _internal_error("gear_update_failed", "Failed to update gear item")

    @app.delete("/api/gear/{gear_id}")
    def delete_gear(gear_id: str, concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            deleted = concierge.store.delete_gear_item(gear_id)
        except Exception:
            return _internal_error("gear_delete_failed", "Failed to delete gear item")
        if not deleted:
            return _error(404, "Gear item not found")
        return {"deleted": True}

    @app.post("/api/gear/{gear_id}/performance")
    def record_performance(
        gear_id: str,
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            performance = GearPerformanceInput.model_validate({**payload, "gearId": gear_id})
            return concierge.store.create_gear_performance(performance).to_api()
        except (ValidationError, ValueError):
            return _error(400, "Failed to record performance")
        except Exception:
            return _internal_error("performance_create_failed", "Failed to record performance")

    @app.get("/api/gear/{gear_id}/performance")
    def list_performance(gear_id: str, concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            return [record.to_api() for record in concierge.store.get_gear_performance(gear_id)]
        except Exception:
            return _internal_error("performance_list_failed", "Failed to fetch performance data")

    # -- trips -----------------------------------------------------------

    @app.post("/api/trips")
    def create_trip(
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            trip = TripInput.model_validate(payload)
            return concierge.store.create_trip(trip).to_api()
        except (ValidationError, ValueError):
            return _error(400, "Failed to create trip")
        except Exception:
            return _internal_error("trip_create_failed", "Failed to create trip")

    @app.get("/api/trips")
    def list_trips(concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            return [trip.to_api() for trip in concierge.store.get_trips()]
        except Exception:
            return _internal_error("trip_list_failed", "Failed to fetch trips")

    @app.get("/api/trips/{trip_id}")
    def get_trip(trip_id: str, concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            trip = concierge.store.get_trip(trip_id)
        except Exception:
            return _internal_error("trip_fetch_failed", "Failed to fetch trip")
        if not trip:
            return _error(404, "Trip not found")
        return trip.to_api()

    @app.patch("/api/trips/{trip_id}")
    def update_trip(
        trip_id: str,
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            updates = TripPatch.model_validate(payload).model_dump(exclude_unset=True)
            return concierge.store.update_trip(trip_id, updates).to_api()
        except NotFoundError:
            return _error(404, "Trip not found")
        except (ValidationError, ValueError):
            return _error(400, "Failed to update trip")
        except Exception:
            return _internal_error("trip_update_failed", "Failed to update trip")

    # -- weather and analytics ------------------------------------------

    @app.get("/api/weather/{location}")
    def weather(location: str, concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            return concierge.weather_provider.get_weather_forecast(location).model_dump()
        except Exception:
            return _internal_error("weather_failed", "Failed to fetch weather data")

    @app.get("/api/analytics/stats")
    def analytics_stats(concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            return concierge.analytics_stats()
        except Exception:
            return _internal_error("analytics_failed", "Failed to fetch analytics")

    @app.get("/api/analytics/gaps")
    def analytics_gaps(
        activities: Optional[str] = None,
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        names = [name.strip() for name in (activities or "").split(",") if name.strip()]
        try:
            return concierge.gear_gaps(names)
        except Exception:
            return _internal_error("analytics_failed", "Failed to analyze gear gaps")

    @app.get("/api/analytics/score")
    def analytics_score(concierge: GearConciergeApp = Depends(get_concierge)) -> Any:
        try:
            return concierge.gear_score()
        except Exception:
            return _internal_error("analytics_failed", "Failed to calculate gear score")

    @app.post("/api/analytics/layering")
    def analytics_layering(
        payload: Dict[str, Any] = Body(...),
        concierge: GearConciergeApp = Depends(get_concierge),
    ) -> Any:
        try:
            request = LayeringRequest.model_validate(payload)
        except ValidationError:
            return _error(400, "Activity and conditions are required")
        try:
            return concierge.layering(request.activity, request.conditions.model_dump())
        except Exception:
            return _internal_error("analytics_failed", "Failed to recommend layering")

    return app


configure_logging()
app = create_app()


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)
