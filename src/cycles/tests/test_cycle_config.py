"""Tests for cycle_config.yaml loading and validation."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from src.cycles.config_loader import (
    ConfigValidationError,
    CycleConfig,
    _validate_and_build,
    get_cycle_config,
    load_cycle_config,
    reload_cycle_config,
)


class TestConfigLoading:
    """Tests for loading cycle_config.yaml."""

    def test_load_default_config(self, cycle_config: CycleConfig) -> None:
        """The bundled cycle_config.yaml loads without errors."""
        assert cycle_config.version == "1.0"

    def test_clinical_defaults(self, cycle_config: CycleConfig) -> None:
        """Defaults are a 28-day cycle, 5-day period and 14-day luteal phase."""
        assert cycle_config.defaults.cycle_length_days == 28
        assert cycle_config.defaults.period_length_days == 5
        assert cycle_config.ovulation.luteal_phase_days == 14

    def test_fertile_window_offsets(self, cycle_config: CycleConfig) -> None:
        """The fertile window runs five days before ovulation to one day after."""
        ov = cycle_config.ovulation
        assert ov.fertile_days_before == 5
        assert ov.fertile_days_after == 1

    def test_horizon_bounds(self, cycle_config: CycleConfig) -> None:
        assert cycle_config.prediction.default_horizon == 3
        assert cycle_config.prediction.max_horizon == 12

    def test_calendar_range(self, cycle_config: CycleConfig) -> None:
        assert cycle_config.calendar.min_year == 1900
        assert cycle_config.calendar.max_year == 2200

    def test_resolve_horizon_uses_default(self, cycle_config: CycleConfig) -> None:
        assert cycle_config.resolve_horizon(None) == 3
        assert cycle_config.resolve_horizon(7) == 7

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """A missing config path is a FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_cycle_config(tmp_path / "nope.yaml")

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("defaults: [unclosed")
        with pytest.raises(ConfigValidationError):
            load_cycle_config(bad)


class TestConfigValidation:
    """Out-of-range and mistyped values are reported together."""

    def test_empty_config_uses_defaults(self) -> None:
        """Omitted sections fall back to built-in values."""
        config = _validate_and_build({})
        assert config.defaults.cycle_length_days == 28
        assert config.prediction.max_horizon == 12

    def test_non_integer_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="luteal_phase_days"):
            _validate_and_build({"ovulation": {"luteal_phase_days": "two weeks"}})

    def test_period_longer_than_cycle_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="period_length_days"):
            _validate_and_build(
                {"defaults": {"cycle_length_days": 20, "period_length_days": 25}}
            )

    def test_inverted_year_range_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="min_year"):
            _validate_and_build({"calendar": {"min_year": 2100, "max_year": 2000}})

    def test_default_horizon_above_max_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="default_horizon"):
            _validate_and_build({"prediction": {"default_horizon": 20, "max_horizon": 12}})

    def test_errors_are_aggregated(self) -> None:
        """All validation errors are listed in one exception."""
        with pytest.raises(ConfigValidationError) as exc_info:
            _validate_and_build(
                {
                    "ovulation": {"luteal_phase_days": "x"},
                    "cycle_length": {"min_cycle_days": 50, "max_cycle_days": 40},
                }
            )
        assert "2 validation error(s)" in str(exc_info.value)


class TestReload:
    """Hot reload of the process-wide config."""

    def test_reload_replaces_singleton(self, tmp_path: Path) -> None:
        custom = tmp_path / "cycle_config.yaml"
        custom.write_text(
            textwrap.dedent(
                """
                version: "2.0"
                ovulation:
                  luteal_phase_days: 12
                """
            )
        )
        try:
            reloaded = reload_cycle_config(custom)
            assert reloaded.version == "2.0"
            assert get_cycle_config().ovulation.luteal_phase_days == 12
        finally:
            reload_cycle_config()
        assert get_cycle_config().version == "1.0"

    def test_invalid_reload_keeps_old_config(self, tmp_path: Path) -> None:
        """A failed reload leaves the previous config in place."""
        before = get_cycle_config()
        bad = tmp_path / "bad.yaml"
        bad.write_text("prediction:\n  max_horizon: zero\n")
        with pytest.raises(ConfigValidationError):
            reload_cycle_config(bad)
        assert get_cycle_config() is before
