"""Calendar-averaging period predictor.

Projects future cycles from a single baseline: the most recent period start,
a period length and an average cycle length.  Every projected cycle is
anchored to the same baseline; there is no re-estimation mid-horizon.

For cycle ``k`` (1-based) with base date ``B``, cycle length ``C``, period
length ``P`` and luteal phase ``L``::

    period start   = B + k*C
    period end     = period start + P - 1
    ovulation      = period start - L
    fertile window = [ovulation - before, ovulation + after]

The luteal phase, fertile offsets and horizon bounds come from
``cycle_config.yaml``.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.errors import CycleValidationError, InternalComputationError
from src.cycles.models import MonthInfo, PeriodPrediction

logger = logging.getLogger("femora.cycles.predictor")


class CyclePredictor:
    """Project period, ovulation and fertile-window dates.

    Usage::

        predictor = CyclePredictor()
        predictions = predictor.predict(
            last_period_start=date(2024, 1, 10),
            period_length=5,
            average_cycle_length=28,
            horizon=3,
        )
        predictions[0].period_start_date   # date(2024, 2, 7)
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    @property
    def config(self) -> CycleConfig:
        return self._config

    def validate(
        self,
        period_length: int,
        average_cycle_length: int,
        horizon: int,
    ) -> None:
        """Reject baselines that cannot describe a real cycle.

        Raises:
            CycleValidationError: With a message naming the offending value.
        """
        luteal = self._config.ovulation.luteal_phase_days
        max_horizon = self._config.prediction.max_horizon

        if period_length < 1:
            raise CycleValidationError(
                f"periodLength must be at least 1 day, got {period_length}"
            )
        if average_cycle_length <= luteal:
            raise CycleValidationError(
                f"averageCycleLength ({average_cycle_length}) must be longer than the "
                f"{luteal}-day luteal phase"
            )
        if period_length >= average_cycle_length:
            raise CycleValidationError(
                f"periodLength ({period_length}) must be shorter than "
                f"averageCycleLength ({average_cycle_length})"
            )
        if not 1 <= horizon <= max_horizon:
            raise CycleValidationError(
                f"horizon must be between 1 and {max_horizon}, got {horizon}"
            )

    def predict(
        self,
        last_period_start: date,
        period_length: int,
        average_cycle_length: int,
        horizon: int | None = None,
    ) -> list[PeriodPrediction]:
        """Generate ``horizon`` consecutive cycle predictions.

        Args:
            last_period_start:    Start date of the most recent period.
            period_length:        Period duration in days.
            average_cycle_length: Cycle length in days.
            horizon:              Number of cycles to project (default from config).

        Returns:
            Predictions ordered by ``period_number``.

        Raises:
            CycleValidationError:     If the baseline is inconsistent.
            InternalComputationError: If a projected date is out of range.
        """
        cycles = self._config.resolve_horizon(horizon)
        self.validate(period_length, average_cycle_length, cycles)

        ov = self._config.ovulation
        predictions: list[PeriodPrediction] = []

        try:
            for k in range(1, cycles + 1):
                start = last_period_start + timedelta(days=k * average_cycle_length)
                ovulation = start - timedelta(days=ov.luteal_phase_days)
                predictions.append(
                    PeriodPrediction(
                        period_number=k,
                        period_start_date=start,
                        period_end_date=start + timedelta(days=period_length - 1),
                        ovulation_date=ovulation,
                        fertile_window_start=ovulation - timedelta(days=ov.fertile_days_before),
                        fertile_window_end=ovulation + timedelta(days=ov.fertile_days_after),
                        cycle_day=average_cycle_length - ov.luteal_phase_days + 1,
                        month_info=MonthInfo.for_date(start),
                    )
                )
        except OverflowError as exc:
            raise InternalComputationError(
                f"Projected dates from {last_period_start.isoformat()} exceed the "
                "supported date range"
            ) from exc

        logger.debug(
            "Projected %d cycles from %s (cycle=%d, period=%d)",
            cycles,
            last_period_start,
            average_cycle_length,
            period_length,
        )
        return predictions

    def ovulation_for_cycle(
        self,
        cycle_start: date,
        average_cycle_length: int,
        next_cycle_start: date | None = None,
    ) -> date:
        """Return the ovulation date of the cycle beginning at ``cycle_start``.

        Uses the known next start when available, otherwise the average
        cycle length.
        """
        luteal = timedelta(days=self._config.ovulation.luteal_phase_days)
        if next_cycle_start is not None:
            return next_cycle_start - luteal
        return cycle_start + timedelta(days=average_cycle_length) - luteal
