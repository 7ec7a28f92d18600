"""Pydantic models for period history, predictions and calendar views.

Wire format is camelCase (``lastPeriodStartDate``, ``calendarData`` ...)
to match the web client.
"""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import Field, field_validator, model_validator

from src.cycles.models import CyclePhase, DayType, FlowLevel
from src.models.base import FemoraBase, TimestampMixin


def _dedupe_tags(tags: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for tag in tags:
        tag = tag.strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


# ---------- Period entries ----------

class PeriodEntryBase(FemoraBase):
    start_date: date
    end_date: date
    flow: FlowLevel = FlowLevel.medium
    symptoms: list[str] = Field(default_factory=list)
    notes: str | None = None

    @field_validator("symptoms")
    @classmethod
    def _unique_symptoms(cls, v: list[str]) -> list[str]:
        return _dedupe_tags(v)

    @model_validator(mode="after")
    def _check_range(self) -> PeriodEntryBase:
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class PeriodEntryCreate(PeriodEntryBase):
    pass


class PeriodEntryUpdate(FemoraBase):
    start_date: date | None = None
    end_date: date | None = None
    flow: FlowLevel | None = None
    symptoms: list[str] | None = None
    notes: str | None = None

    @field_validator("symptoms")
    @classmethod
    def _unique_symptoms(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe_tags(v) if v is not None else None


class PeriodEntryRead(PeriodEntryBase, TimestampMixin):
    id: uuid.UUID
    cycle_length: int | None = None


# ---------- Analytics ----------

class HistoryAnalytics(FemoraBase):
    average_cycle_length: int | None = None
    average_period_length: int | None = None
    next_predicted_date: date | None = None
    next_ovulation_date: date | None = None
    irregularity_score: int = 0
    cycle_length_std: float = 0.0
    is_irregular: bool = False
    cycles_used: int = 0
    degraded: bool = False


class PeriodHistoryResponse(FemoraBase):
    periods: list[PeriodEntryRead]
    analytics: HistoryAnalytics
    message: str = ""


# ---------- Predictions / calendar ----------

class PredictRequestBody(FemoraBase):
    last_period_start_date: date
    period_length: int
    average_cycle_length: int
    horizon: int | None = None


class MonthInfoRead(FemoraBase):
    month: str
    year: int
    days_in_month: int
    is_leap_year: bool


class PeriodPredictionRead(FemoraBase):
    period_number: int
    period_start_date: date
    period_end_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    cycle_day: int
    month_info: MonthInfoRead


class CalendarDayRead(FemoraBase):
    date: date
    day_type: DayType
    cycle_day: int = 0
    phase: CyclePhase | None = None
    is_predicted: bool = False


class PredictResponse(FemoraBase):
    success: bool = True
    message: str
    predictions: list[PeriodPredictionRead] = Field(default_factory=list)
    calendar_data: list[CalendarDayRead] = Field(default_factory=list)
    next_period_date: date | None = None
    next_ovulation_date: date | None = None
    degraded: bool = False


class CalendarResponse(FemoraBase):
    success: bool = True
    message: str
    calendar_data: list[CalendarDayRead] = Field(default_factory=list)
    degraded: bool = False
