"""Plain data types shared by the cycle engine components.

The engine works on these dataclasses only.  Pydantic wire schemas live in
``src.models.periods`` and are built from these via ``from_attributes``.
"""

from __future__ import annotations

import calendar
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class FlowLevel(str, Enum):
    light = "light"
    medium = "medium"
    heavy = "heavy"


class DayType(str, Enum):
    period = "period"
    ovulation = "ovulation"
    fertile = "fertile"
    regular = "regular"


class CyclePhase(str, Enum):
    menstrual = "menstrual"
    follicular = "follicular"
    ovulation = "ovulation"
    luteal = "luteal"


class CycleClassification(str, Enum):
    short = "short"
    normal = "normal"
    long = "long"


@dataclass
class PeriodEntry:
    """One observed menstrual period.

    Attributes:
        id:         Opaque identifier assigned at creation.
        start_date: First day of bleeding.
        end_date:   Last day of bleeding (inclusive).
        flow:       Flow intensity.
        symptoms:   Free-text tags; order is irrelevant.
        notes:      Optional free text.
    """

    start_date: date
    end_date: date
    flow: FlowLevel = FlowLevel.medium
    symptoms: list[str] = field(default_factory=list)
    notes: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def duration(self) -> int:
        """Inclusive length in days."""
        return (self.end_date - self.start_date).days + 1

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class CycleStatistic:
    """Derived per-entry statistic.

    ``cycle_length`` is None for the first entry of a history because it
    needs a previous start date.
    """

    start_date: date
    period_duration: int
    cycle_length: int | None = None
    classification: CycleClassification | None = None


@dataclass
class CycleSummary:
    """Aggregate view of a period history.

    Attributes:
        statistics:            One CycleStatistic per entry, oldest first.
        average_cycle_length:  Rounded mean cycle length (positive integer).
        average_period_length: Rounded mean period duration (positive integer).
        mean_cycle_length:     Unrounded mean, None if fewer than two entries.
        mean_period_length:    Unrounded mean, None if fewer than two entries.
        cycle_length_std:      Sample std dev of cycle lengths (0.0 if < 2 cycles).
        irregularity_score:    0–100, grows with cycle-to-cycle variation.
        is_irregular:          True if std dev exceeds the configured threshold.
        cycles_used:           Number of cycle lengths the averages came from.
        used_defaults:         True when the default baselines were substituted.
        last_period_start:     Start date of the most recent entry.
    """

    statistics: list[CycleStatistic]
    average_cycle_length: int
    average_period_length: int
    last_period_start: date
    mean_cycle_length: float | None = None
    mean_period_length: float | None = None
    cycle_length_std: float = 0.0
    irregularity_score: int = 0
    is_irregular: bool = False
    cycles_used: int = 0
    used_defaults: bool = False


@dataclass
class MonthInfo:
    """Calendar facts about the month a predicted period starts in."""

    month: str
    year: int
    days_in_month: int
    is_leap_year: bool

    @classmethod
    def for_date(cls, day: date) -> MonthInfo:
        return cls(
            month=calendar.month_name[day.month],
            year=day.year,
            days_in_month=calendar.monthrange(day.year, day.month)[1],
            is_leap_year=calendar.isleap(day.year),
        )


@dataclass
class PeriodPrediction:
    """One projected future cycle.

    Attributes:
        period_number:        1-based ordinal among the generated predictions.
        period_start_date:    Projected first day of the period.
        period_end_date:      Projected last day of the period (inclusive).
        ovulation_date:       Projected ovulation, one luteal phase before
                              ``period_start_date``.
        fertile_window_start: First fertile day.
        fertile_window_end:   Last fertile day.
        cycle_day:            Cycle day on which ovulation falls.
        month_info:           Facts about the month of ``period_start_date``.
    """

    period_number: int
    period_start_date: date
    period_end_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    cycle_day: int
    month_info: MonthInfo

    def in_period(self, day: date) -> bool:
        return self.period_start_date <= day <= self.period_end_date

    def in_fertile_window(self, day: date) -> bool:
        return self.fertile_window_start <= day <= self.fertile_window_end


@dataclass
class CalendarDay:
    """Classification of one day within a requested month.

    ``cycle_day`` is 0 and ``phase`` is None when no period start precedes
    the date.
    """

    date: date
    day_type: DayType
    cycle_day: int = 0
    phase: CyclePhase | None = None
    is_predicted: bool = False
