"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from src.config import Settings, get_settings
from src.cycles.engine import CycleEngine
from src.services.period_store import PeriodStore


def get_period_store(request: Request) -> PeriodStore:
    """Return the store the app factory attached to ``app.state``."""
    return request.app.state.period_store


def get_cycle_engine(request: Request) -> CycleEngine:
    return request.app.state.cycle_engine


# Annotated shortcuts for route signatures
Store = Annotated[PeriodStore, Depends(get_period_store)]
Engine = Annotated[CycleEngine, Depends(get_cycle_engine)]
AppSettings = Annotated[Settings, Depends(get_settings)]
