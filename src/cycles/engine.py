"""Request/response boundary of the cycle engine.

``CycleEngine`` composes the cycle model, predictor and calendar builder and
never lets an exception escape: every operation returns an ``EngineResult``
that is either a success carrying a value or a failure carrying an
``ErrorKind`` and a human-readable message.  HTTP handlers map
``ErrorKind.validation`` to 400 and anything else to 500.

The engine is stateless.  History is supplied by the caller on each call and
all averages are recomputed from it every time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Generic, Iterable, TypeVar

from src.cycles.calendar_builder import CalendarBuilder
from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.cycle_model import sort_entries, summarize_history
from src.cycles.errors import (
    CycleValidationError,
    InsufficientHistoryError,
    InternalComputationError,
)
from src.cycles.models import (
    CalendarDay,
    CycleSummary,
    PeriodEntry,
    PeriodPrediction,
)
from src.cycles.predictor import CyclePredictor

logger = logging.getLogger("femora.cycles.engine")

T = TypeVar("T")


class ErrorKind(str, Enum):
    validation = "validation"
    internal = "internal"


@dataclass
class EngineResult(Generic[T]):
    """Discriminated success/failure value returned by every engine call."""

    success: bool
    message: str
    value: T | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, value: T, message: str) -> EngineResult[T]:
        return cls(success=True, message=message, value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> EngineResult[T]:
        return cls(success=False, message=message, error_kind=kind)


@dataclass
class PredictRequest:
    """Explicit baseline for a prediction."""

    last_period_start_date: date
    period_length: int
    average_cycle_length: int
    horizon: int | None = None


@dataclass
class PredictionOutcome:
    """Predictions plus the calendar of the baseline month.

    ``degraded`` is True when the baseline came from default constants
    instead of the user's own history, or when the baseline month is outside
    the calendar range and ``calendar_data`` is empty.
    """

    predictions: list[PeriodPrediction] = field(default_factory=list)
    calendar_data: list[CalendarDay] = field(default_factory=list)
    next_period_date: date | None = None
    next_ovulation_date: date | None = None
    degraded: bool = False
    summary: CycleSummary | None = None


@dataclass
class CalendarOutcome:
    calendar_data: list[CalendarDay] = field(default_factory=list)
    degraded: bool = False


@dataclass
class HistoryAnalysis:
    """Analytics for a stored history; ``summary`` is None when it is empty."""

    summary: CycleSummary | None = None
    next_predicted_date: date | None = None
    next_ovulation_date: date | None = None
    degraded: bool = False


class CycleEngine:
    """Stateless facade over the cycle model, predictor and calendar builder.

    Usage::

        engine = CycleEngine()
        result = engine.predict(PredictRequest(date(2024, 1, 10), 5, 28, horizon=1))
        if result.success:
            result.value.next_period_date   # date(2024, 2, 7)
        else:
            print(result.error_kind, result.message)
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()
        self._predictor = CyclePredictor(self._config)
        self._calendar = CalendarBuilder(self._config)

    @property
    def config(self) -> CycleConfig:
        return self._config

    # ------------------------------------------------------------------
    # Boundary guard
    # ------------------------------------------------------------------

    def _run(self, operation: str, fn: Callable[[], EngineResult[T]]) -> EngineResult[T]:
        try:
            return fn()
        except CycleValidationError as exc:
            logger.info("%s rejected: %s", operation, exc)
            return EngineResult.fail(ErrorKind.validation, str(exc))
        except (InternalComputationError, OverflowError) as exc:
            logger.error("%s failed in date arithmetic: %s", operation, exc)
            return EngineResult.fail(
                ErrorKind.internal, f"Could not compute {operation}: {exc}"
            )
        except Exception:
            logger.exception("Unexpected error during %s", operation)
            return EngineResult.fail(
                ErrorKind.internal, f"Unexpected error while computing {operation}"
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def predict(self, request: PredictRequest) -> EngineResult[PredictionOutcome]:
        """Project cycles from an explicit baseline.

        The returned calendar covers the month of ``last_period_start_date``,
        with the baseline period itself shown as logged.
        """

        def _predict() -> EngineResult[PredictionOutcome]:
            predictions = self._predictor.predict(
                last_period_start=request.last_period_start_date,
                period_length=request.period_length,
                average_cycle_length=request.average_cycle_length,
                horizon=request.horizon,
            )
            base = request.last_period_start_date
            baseline_period = PeriodEntry(
                start_date=base,
                end_date=base + timedelta(days=request.period_length - 1),
            )
            calendar_data = self._base_calendar(
                base,
                [baseline_period],
                predictions,
                request.period_length,
                request.average_cycle_length,
            )
            message = "Predictions generated successfully"
            if calendar_data is None:
                message = "Predictions generated; calendar unavailable for this month"
            return EngineResult.ok(
                PredictionOutcome(
                    predictions=predictions,
                    calendar_data=calendar_data or [],
                    next_period_date=predictions[0].period_start_date,
                    next_ovulation_date=predictions[0].ovulation_date,
                    degraded=calendar_data is None,
                ),
                message,
            )

        return self._run("prediction", _predict)

    def predict_from_history(
        self,
        history: Iterable[PeriodEntry],
        horizon: int | None = None,
    ) -> EngineResult[PredictionOutcome]:
        """Project cycles from a logged history.

        An empty history succeeds with no predictions.  A history of one
        entry succeeds on default baselines and is flagged ``degraded``.
        """

        def _predict() -> EngineResult[PredictionOutcome]:
            entries = sort_entries(history)
            try:
                summary = summarize_history(entries, self._config)
            except InsufficientHistoryError as exc:
                return EngineResult.ok(PredictionOutcome(), str(exc))

            predictions = self._predictor.predict(
                last_period_start=summary.last_period_start,
                period_length=summary.average_period_length,
                average_cycle_length=summary.average_cycle_length,
                horizon=horizon,
            )
            last = summary.last_period_start
            calendar_data = self._base_calendar(
                last,
                entries,
                predictions,
                summary.average_period_length,
                summary.average_cycle_length,
            )
            message = "Predictions generated successfully"
            if summary.used_defaults:
                message = "Predictions use default cycle lengths until two periods are logged"
            elif calendar_data is None:
                message = "Predictions generated; calendar unavailable for this month"
            return EngineResult.ok(
                PredictionOutcome(
                    predictions=predictions,
                    calendar_data=calendar_data or [],
                    next_period_date=predictions[0].period_start_date,
                    next_ovulation_date=predictions[0].ovulation_date,
                    degraded=summary.used_defaults or calendar_data is None,
                    summary=summary,
                ),
                message,
            )

        return self._run("prediction", _predict)

    def _cycles_through(self, summary: CycleSummary, last_day: date) -> int:
        # Cycles needed to reach last_day, before the horizon cap
        span = (last_day - summary.last_period_start).days
        return math.ceil(span / summary.average_cycle_length) if span > 0 else 1

    def _base_calendar(
        self,
        base: date,
        entries: list[PeriodEntry],
        predictions: list[PeriodPrediction],
        period_length: int,
        average_cycle_length: int,
    ) -> list[CalendarDay] | None:
        """Month view around ``base``, or None when that month is out of range."""
        try:
            self._calendar.validate_month(base.year, base.month)
        except CycleValidationError as exc:
            logger.info("Predictions returned without a calendar: %s", exc)
            return None
        return self._calendar.build(
            base.year,
            base.month,
            entries=entries,
            predictions=predictions,
            period_length=period_length,
            average_cycle_length=average_cycle_length,
        )

    def calendar(
        self,
        year: int,
        month: int,
        history: Iterable[PeriodEntry] = (),
    ) -> EngineResult[CalendarOutcome]:
        """Build the month view for ``year``/``month`` from a logged history.

        If the history is too inconsistent to predict from (for example an
        average period as long as the average cycle) the calendar still
        succeeds with logged periods only and is flagged ``degraded``.  A
        month further out than the horizon cap is also flagged ``degraded``.
        """

        def _calendar() -> EngineResult[CalendarOutcome]:
            self._calendar.validate_month(year, month)
            entries = sort_entries(history)
            if not entries:
                days = self._calendar.build(year, month)
                return EngineResult.ok(
                    CalendarOutcome(calendar_data=days), "No periods logged yet"
                )

            summary = summarize_history(entries, self._config)
            last_day = self._calendar.days_in_month(year, month)[-1]
            needed = self._cycles_through(summary, last_day)
            max_horizon = self._config.prediction.max_horizon
            try:
                predictions = self._predictor.predict(
                    last_period_start=summary.last_period_start,
                    period_length=summary.average_period_length,
                    average_cycle_length=summary.average_cycle_length,
                    horizon=min(needed, max_horizon),
                )
            except CycleValidationError as exc:
                logger.warning("Calendar %04d-%02d without predictions: %s", year, month, exc)
                days = self._calendar.build(year, month, entries=entries)
                return EngineResult.ok(
                    CalendarOutcome(calendar_data=days, degraded=True),
                    f"Predictions unavailable: {exc}",
                )

            days = self._calendar.build(
                year,
                month,
                entries=entries,
                predictions=predictions,
                period_length=summary.average_period_length,
                average_cycle_length=summary.average_cycle_length,
            )
            if needed > max_horizon:
                logger.info(
                    "Calendar %04d-%02d is %d cycles past the last logged start",
                    year,
                    month,
                    needed,
                )
                return EngineResult.ok(
                    CalendarOutcome(calendar_data=days, degraded=True),
                    f"Predictions unavailable beyond {max_horizon} cycles",
                )
            return EngineResult.ok(
                CalendarOutcome(calendar_data=days, degraded=summary.used_defaults),
                "Calendar generated successfully",
            )

        return self._run("calendar", _calendar)

    def analyze(self, history: Iterable[PeriodEntry]) -> EngineResult[HistoryAnalysis]:
        """Summarize a history and report the next expected period."""

        def _analyze() -> EngineResult[HistoryAnalysis]:
            entries = sort_entries(history)
            try:
                summary = summarize_history(entries, self._config)
            except InsufficientHistoryError as exc:
                return EngineResult.ok(HistoryAnalysis(), str(exc))

            analysis = HistoryAnalysis(summary=summary, degraded=summary.used_defaults)
            try:
                predictions = self._predictor.predict(
                    last_period_start=summary.last_period_start,
                    period_length=summary.average_period_length,
                    average_cycle_length=summary.average_cycle_length,
                    horizon=1,
                )
            except CycleValidationError as exc:
                analysis.degraded = True
                return EngineResult.ok(analysis, f"Predictions unavailable: {exc}")

            analysis.next_predicted_date = predictions[0].period_start_date
            analysis.next_ovulation_date = predictions[0].ovulation_date
            return EngineResult.ok(analysis, "History analyzed successfully")

        return self._run("analysis", _analyze)
