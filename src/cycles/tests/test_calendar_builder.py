"""Tests for month calendar classification."""

from __future__ import annotations

import calendar
from datetime import date

import pytest

from src.cycles.calendar_builder import CalendarBuilder
from src.cycles.errors import CycleValidationError
from src.cycles.models import CalendarDay, CyclePhase, DayType
from src.cycles.predictor import CyclePredictor
from src.cycles.tests.conftest import BASE_DATE, make_entry


def by_date(days: list[CalendarDay]) -> dict[date, CalendarDay]:
    return {d.date: d for d in days}


class TestMonthShape:
    """Every month has exactly one entry per calendar day."""

    @pytest.mark.parametrize(
        "year,month,expected",
        [(2024, 2, 29), (2023, 2, 28), (1900, 2, 28), (2000, 2, 29), (2024, 4, 30), (2024, 12, 31)],
    )
    def test_one_day_per_calendar_day(
        self, builder: CalendarBuilder, year: int, month: int, expected: int
    ) -> None:
        """Leap years give February 29 days."""
        days = builder.build(year, month)
        assert len(days) == expected
        assert days[0].date == date(year, month, 1)
        assert days[-1].date == date(year, month, expected)

    def test_total_over_a_year(self, builder: CalendarBuilder) -> None:
        for month in range(1, 13):
            assert len(builder.build(2031, month)) == calendar.monthrange(2031, month)[1]

    @pytest.mark.parametrize("year,month", [(1899, 12), (2201, 1), (2024, 0), (2024, 13)])
    def test_out_of_range_rejected(self, builder: CalendarBuilder, year: int, month: int) -> None:
        with pytest.raises(CycleValidationError):
            builder.build(year, month)

    def test_no_history_is_all_regular(self, builder: CalendarBuilder) -> None:
        """Without any starts there is no cycle day or phase."""
        days = builder.build(2024, 5)
        assert all(d.day_type == DayType.regular for d in days)
        assert all(d.cycle_day == 0 and d.phase is None for d in days)
        assert not any(d.is_predicted for d in days)


class TestClassification:
    """January 2024 with a logged period on the 10th and one predicted cycle."""

    @pytest.fixture
    def january(self, builder: CalendarBuilder, predictor: CyclePredictor) -> dict[date, CalendarDay]:
        predictions = predictor.predict(BASE_DATE, 5, 28, horizon=1)
        days = builder.build(
            2024,
            1,
            entries=[make_entry(BASE_DATE, 5)],
            predictions=predictions,
            period_length=5,
            average_cycle_length=28,
        )
        return by_date(days)

    def test_days_before_first_start_have_no_cycle_day(
        self, january: dict[date, CalendarDay]
    ) -> None:
        day = january[date(2024, 1, 9)]
        assert day.day_type == DayType.regular
        assert day.cycle_day == 0
        assert day.phase is None

    def test_logged_period_days(self, january: dict[date, CalendarDay]) -> None:
        for n in range(10, 15):
            day = january[date(2024, 1, n)]
            assert day.day_type == DayType.period
            assert not day.is_predicted
            assert day.phase == CyclePhase.menstrual
        assert january[date(2024, 1, 10)].cycle_day == 1
        assert january[date(2024, 1, 14)].cycle_day == 5

    def test_follicular_after_period(self, january: dict[date, CalendarDay]) -> None:
        day = january[date(2024, 1, 15)]
        assert day.day_type == DayType.regular
        assert day.phase == CyclePhase.follicular
        assert day.cycle_day == 6

    def test_fertile_window(self, january: dict[date, CalendarDay]) -> None:
        for n in (19, 20, 21, 22, 23, 25):
            day = january[date(2024, 1, n)]
            assert day.day_type == DayType.fertile
            assert day.is_predicted
        assert january[date(2024, 1, 19)].phase == CyclePhase.follicular

    def test_ovulation_day(self, january: dict[date, CalendarDay]) -> None:
        day = january[date(2024, 1, 24)]
        assert day.day_type == DayType.ovulation
        assert day.is_predicted
        assert day.phase == CyclePhase.ovulation
        assert day.cycle_day == 15

    def test_ovulation_phase_spans_one_day_either_side(
        self, january: dict[date, CalendarDay]
    ) -> None:
        assert january[date(2024, 1, 23)].phase == CyclePhase.ovulation
        assert january[date(2024, 1, 25)].phase == CyclePhase.ovulation
        assert january[date(2024, 1, 22)].phase == CyclePhase.follicular

    def test_luteal_after_ovulation(self, january: dict[date, CalendarDay]) -> None:
        day = january[date(2024, 1, 31)]
        assert day.day_type == DayType.regular
        assert day.phase == CyclePhase.luteal
        assert day.cycle_day == 22
        assert not day.is_predicted

    def test_cycle_day_stops_after_last_known_cycle(self, builder: CalendarBuilder) -> None:
        """Days more than one cycle past the last start get no cycle day."""
        days = by_date(
            builder.build(2024, 2, entries=[make_entry(BASE_DATE)], average_cycle_length=28)
        )
        assert days[date(2024, 2, 6)].cycle_day == 28
        assert days[date(2024, 2, 6)].phase == CyclePhase.luteal
        for n in (7, 15, 29):
            day = days[date(2024, 2, n)]
            assert day.cycle_day == 0
            assert day.phase is None
            assert day.day_type == DayType.regular


class TestPrecedence:
    """Logged periods beat predicted periods, which beat ovulation and fertile days."""

    def test_predicted_period_days(self, builder: CalendarBuilder, predictor: CyclePredictor) -> None:
        predictions = predictor.predict(BASE_DATE, 5, 28, horizon=1)
        days = by_date(
            builder.build(2024, 2, entries=[make_entry(BASE_DATE)], predictions=predictions)
        )
        first = days[date(2024, 2, 7)]
        assert first.day_type == DayType.period
        assert first.is_predicted
        assert first.cycle_day == 1
        assert first.phase == CyclePhase.menstrual
        assert days[date(2024, 2, 12)].day_type == DayType.regular

    def test_logged_period_dominates_fertile_window(
        self, builder: CalendarBuilder, predictor: CyclePredictor
    ) -> None:
        predictions = predictor.predict(BASE_DATE, 5, 28, horizon=1)
        # An unexpected early period logged inside the predicted fertile window
        early = make_entry(date(2024, 1, 23), 3)
        days = by_date(
            builder.build(
                2024, 1, entries=[make_entry(BASE_DATE), early], predictions=predictions
            )
        )
        for n in (23, 24, 25):
            day = days[date(2024, 1, n)]
            assert day.day_type == DayType.period
            assert not day.is_predicted
        assert days[date(2024, 1, 23)].cycle_day == 1

    def test_predicted_period_dominates_fertile_window(
        self, builder: CalendarBuilder, predictor: CyclePredictor
    ) -> None:
        # Short cycles: the second ovulation lands inside the first predicted period
        predictions = predictor.predict(date(2024, 3, 1), 9, 15, horizon=2)
        first, second = predictions
        assert first.in_period(second.ovulation_date)
        days = by_date(builder.build(2024, 3, predictions=predictions, period_length=9))
        overlap = days[second.ovulation_date]
        assert overlap.day_type == DayType.period
        assert overlap.is_predicted
