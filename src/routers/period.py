"""Cycle engine endpoints: prediction, month calendar and service probe.

Every response carries ``success``.  Engine failures become
``{"success": false, "message": ...}`` with 400 for invalid input and 500
for anything else; the client falls back to showing logged history only.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from src.cycles.engine import EngineResult, ErrorKind, PredictRequest
from src.dependencies import AppSettings, Engine, Store
from src.models.base import FailureResponse
from src.models.periods import (
    CalendarDayRead,
    CalendarResponse,
    PeriodPredictionRead,
    PredictRequestBody,
    PredictResponse,
)

router = APIRouter(prefix="/period", tags=["period"])
logger = logging.getLogger("femora.period")

_FAILURES = {
    400: {"model": FailureResponse, "description": "Invalid input"},
    500: {"model": FailureResponse, "description": "Computation failed"},
}


def failure_response(result: EngineResult) -> JSONResponse:
    status = 400 if result.error_kind == ErrorKind.validation else 500
    body = FailureResponse(message=result.message)
    return JSONResponse(status_code=status, content=body.model_dump(by_alias=True))


@router.get("/health")
async def period_health(engine: Engine, settings: AppSettings) -> dict:
    """Probe polled by the client's service-status indicator."""
    return {
        "status": "healthy",
        "service": "period",
        "version": settings.app_version,
        "configVersion": engine.config.version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/predict", response_model=PredictResponse, responses=_FAILURES)
async def predict(body: PredictRequestBody, engine: Engine) -> Any:
    result = engine.predict(
        PredictRequest(
            last_period_start_date=body.last_period_start_date,
            period_length=body.period_length,
            average_cycle_length=body.average_cycle_length,
            horizon=body.horizon,
        )
    )
    if not result.success:
        return failure_response(result)

    outcome = result.value
    return PredictResponse(
        message=result.message,
        predictions=[PeriodPredictionRead.model_validate(p) for p in outcome.predictions],
        calendar_data=[CalendarDayRead.model_validate(d) for d in outcome.calendar_data],
        next_period_date=outcome.next_period_date,
        next_ovulation_date=outcome.next_ovulation_date,
        degraded=outcome.degraded,
    )


@router.get("/calendar/{year}/{month}", response_model=CalendarResponse, responses=_FAILURES)
async def calendar(
    year: int,
    month: int,
    engine: Engine,
    store: Store,
    user_id: str | None = Query(default=None, alias="userId", min_length=1),
) -> Any:
    history = store.list(user_id) if user_id else []
    result = engine.calendar(year, month, history)
    if not result.success:
        return failure_response(result)

    outcome = result.value
    return CalendarResponse(
        message=result.message,
        calendar_data=[CalendarDayRead.model_validate(d) for d in outcome.calendar_data],
        degraded=outcome.degraded,
    )
