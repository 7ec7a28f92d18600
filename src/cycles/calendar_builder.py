"""Month view builder.

Expands a (year, month) into one ``CalendarDay`` per date, reconciling
logged periods with predictor output.  Classification precedence for a
single day is::

    logged period > predicted period > ovulation > fertile > regular

``cycle_day`` and ``phase`` are measured from the nearest preceding period
start, logged or predicted.  Days before the first start, or more than one
average cycle past the last one, get ``cycle_day`` 0 and no phase.
"""

from __future__ import annotations

import bisect
import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.errors import CycleValidationError
from src.cycles.models import (
    CalendarDay,
    CyclePhase,
    DayType,
    PeriodEntry,
    PeriodPrediction,
)
from src.cycles.predictor import CyclePredictor

logger = logging.getLogger("femora.cycles.calendar")


@dataclass
class _CycleAnchor:
    start: date
    period_length: int
    ovulation: date
    is_predicted: bool


class CalendarBuilder:
    """Build per-day calendar classifications for a month."""

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()
        self._predictor = CyclePredictor(self._config)

    def validate_month(self, year: int, month: int) -> None:
        cal = self._config.calendar
        if not cal.min_year <= year <= cal.max_year:
            raise CycleValidationError(
                f"year must be between {cal.min_year} and {cal.max_year}, got {year}"
            )
        if not 1 <= month <= 12:
            raise CycleValidationError(f"month must be between 1 and 12, got {month}")

    @staticmethod
    def days_in_month(year: int, month: int) -> list[date]:
        count = calendar.monthrange(year, month)[1]
        first = date(year, month, 1)
        return [first + timedelta(days=i) for i in range(count)]

    def _anchors(
        self,
        entries: Sequence[PeriodEntry],
        predictions: Sequence[PeriodPrediction],
        period_length: int,
        average_cycle_length: int,
    ) -> list[_CycleAnchor]:
        # Logged starts win over a predicted start on the same date
        starts: dict[date, tuple[int, bool]] = {}
        for p in predictions:
            starts[p.period_start_date] = (period_length, True)
        for e in entries:
            starts[e.start_date] = (e.duration, False)

        ordered = sorted(starts)
        anchors: list[_CycleAnchor] = []
        for i, start in enumerate(ordered):
            length, predicted = starts[start]
            next_start = ordered[i + 1] if i + 1 < len(ordered) else None
            anchors.append(
                _CycleAnchor(
                    start=start,
                    period_length=length,
                    ovulation=self._predictor.ovulation_for_cycle(
                        start, average_cycle_length, next_start
                    ),
                    is_predicted=predicted,
                )
            )
        return anchors

    def _phase(self, day: date, anchor: _CycleAnchor, cycle_day: int) -> CyclePhase:
        tolerance = self._config.ovulation.phase_tolerance_days
        if cycle_day <= anchor.period_length:
            return CyclePhase.menstrual
        if abs((day - anchor.ovulation).days) <= tolerance:
            return CyclePhase.ovulation
        if day > anchor.ovulation:
            return CyclePhase.luteal
        return CyclePhase.follicular

    def build(
        self,
        year: int,
        month: int,
        entries: Sequence[PeriodEntry] = (),
        predictions: Sequence[PeriodPrediction] = (),
        period_length: int | None = None,
        average_cycle_length: int | None = None,
    ) -> list[CalendarDay]:
        """Classify every day of ``year``/``month``.

        Args:
            year:                 Calendar year.
            month:                Calendar month, 1–12.
            entries:              Logged periods.
            predictions:          Predictor output to overlay.
            period_length:        Period length for predicted cycles.
            average_cycle_length: Cycle length used to place ovulation when
                                  the following start is unknown.

        Returns:
            One CalendarDay per day of the month, in date order.

        Raises:
            CycleValidationError: If year or month is outside the supported range.
        """
        self.validate_month(year, month)

        defaults = self._config.defaults
        period_length = period_length or defaults.period_length_days
        average_cycle_length = average_cycle_length or defaults.cycle_length_days

        anchors = self._anchors(entries, predictions, period_length, average_cycle_length)
        anchor_starts = [a.start for a in anchors]
        ovulation_days = {p.ovulation_date for p in predictions}

        days: list[CalendarDay] = []
        for day in self.days_in_month(year, month):
            if any(e.contains(day) for e in entries):
                day_type, is_predicted = DayType.period, False
            elif any(p.in_period(day) for p in predictions):
                day_type, is_predicted = DayType.period, True
            elif day in ovulation_days:
                day_type, is_predicted = DayType.ovulation, True
            elif any(p.in_fertile_window(day) for p in predictions):
                day_type, is_predicted = DayType.fertile, True
            else:
                day_type, is_predicted = DayType.regular, False

            idx = bisect.bisect_right(anchor_starts, day) - 1
            anchor = anchors[idx] if idx >= 0 else None
            cycle_day = (day - anchor.start).days + 1 if anchor else 0
            # No known start yet, or past the end of the last known cycle
            if anchor is None or (idx == len(anchors) - 1 and cycle_day > average_cycle_length):
                days.append(CalendarDay(date=day, day_type=day_type, is_predicted=is_predicted))
                continue
            days.append(
                CalendarDay(
                    date=day,
                    day_type=day_type,
                    cycle_day=cycle_day,
                    phase=self._phase(day, anchor, cycle_day),
                    is_predicted=is_predicted,
                )
            )

        logger.debug(
            "Built calendar %04d-%02d: %d days, %d anchors",
            year,
            month,
            len(days),
            len(anchors),
        )
        return days
