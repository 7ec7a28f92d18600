"""CRUD endpoints for a user's logged periods, plus history analytics."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Path

from src.dependencies import Engine, Store
from src.models.periods import (
    HistoryAnalytics,
    PeriodEntryCreate,
    PeriodEntryRead,
    PeriodEntryUpdate,
    PeriodHistoryResponse,
)
from src.services.period_store import PeriodNotFoundError, PeriodStore

router = APIRouter(prefix="/periods", tags=["periods"])
logger = logging.getLogger("femora.periods")

UserId = Annotated[str, Path(min_length=1, max_length=128)]


def _ensure_unique_start(
    store: PeriodStore, user_id: str, start: date, exclude: uuid.UUID | None = None
) -> None:
    for period in store.list(user_id):
        if period.start_date == start and period.id != exclude:
            raise HTTPException(
                status_code=409,
                detail=f"A period starting {start.isoformat()} is already logged",
            )


@router.get("/{user_id}", response_model=PeriodHistoryResponse)
async def list_periods(engine: Engine, store: Store, user_id: UserId) -> Any:
    periods = store.list(user_id)
    result = engine.analyze(periods)

    analytics = HistoryAnalytics()
    cycle_lengths: dict[date, int | None] = {}
    if result.success and result.value.summary is not None:
        analysis = result.value
        summary = analysis.summary
        analytics = HistoryAnalytics(
            average_cycle_length=summary.average_cycle_length,
            average_period_length=summary.average_period_length,
            next_predicted_date=analysis.next_predicted_date,
            next_ovulation_date=analysis.next_ovulation_date,
            irregularity_score=summary.irregularity_score,
            cycle_length_std=summary.cycle_length_std,
            is_irregular=summary.is_irregular,
            cycles_used=summary.cycles_used,
            degraded=analysis.degraded,
        )
        cycle_lengths = {s.start_date: s.cycle_length for s in summary.statistics}
    elif not result.success:
        logger.warning("Analytics unavailable for user %s: %s", user_id, result.message)
        analytics = HistoryAnalytics(degraded=True)

    return PeriodHistoryResponse(
        periods=[
            PeriodEntryRead.model_validate(p).model_copy(
                update={"cycle_length": cycle_lengths.get(p.start_date)}
            )
            for p in periods
        ],
        analytics=analytics,
        message=result.message,
    )


@router.post("/{user_id}", response_model=PeriodEntryRead, status_code=201)
async def create_period(body: PeriodEntryCreate, store: Store, user_id: UserId) -> Any:
    _ensure_unique_start(store, user_id, body.start_date)
    period = store.create(user_id, body.model_dump())
    return PeriodEntryRead.model_validate(period)


@router.get("/{user_id}/{period_id}", response_model=PeriodEntryRead)
async def get_period(period_id: uuid.UUID, store: Store, user_id: UserId) -> Any:
    try:
        period = store.get(user_id, period_id)
    except PeriodNotFoundError:
        raise HTTPException(status_code=404, detail="Period not found")
    return PeriodEntryRead.model_validate(period)


@router.patch("/{user_id}/{period_id}", response_model=PeriodEntryRead)
async def update_period(
    period_id: uuid.UUID, body: PeriodEntryUpdate, store: Store, user_id: UserId
) -> Any:
    updates = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key == "notes"
    }
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        current = store.get(user_id, period_id)
    except PeriodNotFoundError:
        raise HTTPException(status_code=404, detail="Period not found")

    start = updates.get("start_date", current.start_date)
    end = updates.get("end_date", current.end_date)
    if end < start:
        raise HTTPException(status_code=422, detail="endDate must not be before startDate")
    if "start_date" in updates:
        _ensure_unique_start(store, user_id, start, exclude=period_id)

    try:
        period = store.update(user_id, period_id, updates)
    except PeriodNotFoundError:
        raise HTTPException(status_code=404, detail="Period not found")
    return PeriodEntryRead.model_validate(period)


@router.delete("/{user_id}/{period_id}", status_code=204)
async def delete_period(period_id: uuid.UUID, store: Store, user_id: UserId) -> None:
    try:
        store.delete(user_id, period_id)
    except PeriodNotFoundError:
        raise HTTPException(status_code=404, detail="Period not found")
