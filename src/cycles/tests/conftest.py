"""Shared fixtures and builders for cycle engine tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.cycles.calendar_builder import CalendarBuilder
from src.cycles.config_loader import CycleConfig, load_cycle_config
from src.cycles.engine import CycleEngine
from src.cycles.models import FlowLevel, PeriodEntry
from src.cycles.predictor import CyclePredictor

# Baseline from the client's default request
BASE_DATE = date(2024, 1, 10)


def make_entry(start: date, duration: int = 5, flow: FlowLevel = FlowLevel.medium) -> PeriodEntry:
    return PeriodEntry(
        start_date=start,
        end_date=start + timedelta(days=duration - 1),
        flow=flow,
    )


def build_history(start: date, cycle_lengths: list[int], duration: int = 5) -> list[PeriodEntry]:
    """Build len(cycle_lengths) + 1 consecutive periods, oldest first."""
    entries = [make_entry(start, duration)]
    for length in cycle_lengths:
        start = start + timedelta(days=length)
        entries.append(make_entry(start, duration))
    return entries


# ---------------------------------------------------------------------------
# Config / component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_config() -> CycleConfig:
    """Load the real bundled cycle config for tests."""
    return load_cycle_config()


@pytest.fixture
def predictor(cycle_config: CycleConfig) -> CyclePredictor:
    return CyclePredictor(cycle_config)


@pytest.fixture
def builder(cycle_config: CycleConfig) -> CalendarBuilder:
    return CalendarBuilder(cycle_config)


@pytest.fixture
def engine(cycle_config: CycleConfig) -> CycleEngine:
    return CycleEngine(cycle_config)


@pytest.fixture
def regular_history() -> list[PeriodEntry]:
    """Two 28-day cycles ending with a period on 2024-01-10."""
    return build_history(date(2023, 12, 13), [28])
