"""Cycle statistics derived from a logged period history.

Turns an ascending sequence of ``PeriodEntry`` into per-entry
``CycleStatistic`` values and the averages the predictor is anchored to.

Averages are arithmetic means over every available statistic, rounded
half-up to whole days.  A cycle length needs two start dates, so with fewer
than two entries both averages fall back to the configured defaults and the
summary is flagged ``used_defaults``.
"""

from __future__ import annotations

import logging
import math
import statistics
from typing import Iterable, Sequence

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.errors import CycleValidationError, InsufficientHistoryError
from src.cycles.models import (
    CycleClassification,
    CycleStatistic,
    CycleSummary,
    PeriodEntry,
)

logger = logging.getLogger("femora.cycles.cycle_model")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values."""
    return int(math.floor(value + 0.5))


def sort_entries(entries: Iterable[PeriodEntry]) -> list[PeriodEntry]:
    """Return entries ordered by start date, oldest first."""
    return sorted(entries, key=lambda e: e.start_date)


def classify_cycle(cycle_length: int, config: CycleConfig | None = None) -> CycleClassification:
    """Classify a cycle length as short, normal, or long.

    Args:
        cycle_length: Cycle length in days.
        config:       Thresholds source (defaults to the global config).

    Returns:
        The classification.
    """
    cl = (config or get_cycle_config()).cycle_length
    if cycle_length < cl.min_cycle_days:
        return CycleClassification.short
    if cycle_length > cl.max_cycle_days:
        return CycleClassification.long
    return CycleClassification.normal


def compute_cycle_statistics(
    entries: Sequence[PeriodEntry],
    config: CycleConfig | None = None,
) -> list[CycleStatistic]:
    """Compute one CycleStatistic per entry.

    Args:
        entries: Period history sorted by ``start_date`` ascending.
        config:  Engine config used for cycle classification.

    Returns:
        Statistics in the same order as ``entries``.

    Raises:
        InsufficientHistoryError: If ``entries`` is empty.
        CycleValidationError:     On an inverted date range, a duplicate start
                                  date, or unsorted input.
    """
    if not entries:
        raise InsufficientHistoryError("No periods have been logged yet")

    cfg = config or get_cycle_config()
    stats: list[CycleStatistic] = []
    previous: PeriodEntry | None = None

    for entry in entries:
        if entry.end_date < entry.start_date:
            raise CycleValidationError(
                f"Period starting {entry.start_date.isoformat()} ends before it starts "
                f"({entry.end_date.isoformat()})"
            )

        cycle_length: int | None = None
        classification: CycleClassification | None = None
        if previous is not None:
            cycle_length = (entry.start_date - previous.start_date).days
            if cycle_length == 0:
                raise CycleValidationError(
                    f"Duplicate period start date {entry.start_date.isoformat()}"
                )
            if cycle_length < 0:
                raise CycleValidationError(
                    "Period history must be sorted by start date "
                    f"({entry.start_date.isoformat()} follows {previous.start_date.isoformat()})"
                )
            classification = classify_cycle(cycle_length, cfg)

        stats.append(
            CycleStatistic(
                start_date=entry.start_date,
                period_duration=entry.duration,
                cycle_length=cycle_length,
                classification=classification,
            )
        )
        previous = entry

    return stats


def _irregularity_score(mean_length: float, std_length: float) -> int:
    # Coefficient of variation as a percentage, capped at 100
    if mean_length <= 0:
        return 0
    return min(100, round_half_up(std_length / mean_length * 100))


def summarize_history(
    entries: Sequence[PeriodEntry],
    config: CycleConfig | None = None,
) -> CycleSummary:
    """Derive averages and regularity metrics from a sorted period history.

    Args:
        entries: Period history sorted by ``start_date`` ascending, at least one.
        config:  Engine config (defaults, thresholds).

    Returns:
        CycleSummary for the history.

    Raises:
        InsufficientHistoryError: If ``entries`` is empty.
        CycleValidationError:     If the history is malformed.
    """
    cfg = config or get_cycle_config()
    stats = compute_cycle_statistics(entries, cfg)
    last_start = stats[-1].start_date

    if len(stats) < 2:
        logger.debug(
            "Only %d period logged; using default baselines %d/%d",
            len(stats),
            cfg.defaults.cycle_length_days,
            cfg.defaults.period_length_days,
        )
        return CycleSummary(
            statistics=stats,
            average_cycle_length=cfg.defaults.cycle_length_days,
            average_period_length=cfg.defaults.period_length_days,
            last_period_start=last_start,
            used_defaults=True,
        )

    lengths = [s.cycle_length for s in stats if s.cycle_length is not None]
    durations = [s.period_duration for s in stats]

    mean_length = statistics.mean(lengths)
    mean_duration = statistics.mean(durations)
    std_length = statistics.stdev(lengths) if len(lengths) > 1 else 0.0

    return CycleSummary(
        statistics=stats,
        average_cycle_length=max(1, round_half_up(mean_length)),
        average_period_length=max(1, round_half_up(mean_duration)),
        last_period_start=last_start,
        mean_cycle_length=round(float(mean_length), 2),
        mean_period_length=round(float(mean_duration), 2),
        cycle_length_std=round(std_length, 2),
        irregularity_score=_irregularity_score(mean_length, std_length),
        is_irregular=std_length > cfg.cycle_length.irregular_std_days,
        cycles_used=len(lengths),
    )
