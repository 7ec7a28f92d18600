"""Load, validate, and hot-reload the cycle engine configuration.

The config lives in ``cycle_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_cycle_config()`` to re-read from
disk after an update without a restart.

Usage::

    from src.cycles.config_loader import get_cycle_config

    config = get_cycle_config()
    config.ovulation.luteal_phase_days   # 14
    config.prediction.max_horizon        # 12
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger("femora.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "cycle_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class DefaultsConfig:
    """Baselines used when history is too short to average."""

    cycle_length_days: int = 28
    period_length_days: int = 5


@dataclass
class OvulationConfig:
    """Ovulation and fertile window projection settings."""

    luteal_phase_days: int = 14
    fertile_days_before: int = 5
    fertile_days_after: int = 1
    phase_tolerance_days: int = 1


@dataclass
class PredictionConfig:
    """Forecast horizon bounds."""

    default_horizon: int = 3
    max_horizon: int = 12


@dataclass
class CalendarConfig:
    """Supported calendar range."""

    min_year: int = 1900
    max_year: int = 2200


@dataclass
class CycleLengthConfig:
    """Cycle length classification thresholds."""

    min_cycle_days: int = 21
    max_cycle_days: int = 45
    irregular_std_days: float = 7.0


@dataclass
class CycleConfig:
    """Complete, validated cycle engine configuration.

    Attributes:
        version:      Config schema version string.
        defaults:     Fallback cycle and period lengths.
        ovulation:    Luteal length and fertile window offsets.
        prediction:   Horizon bounds.
        calendar:     Supported year range.
        cycle_length: Short/long/irregular thresholds.
    """

    version: str = "1.0"
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    ovulation: OvulationConfig = field(default_factory=OvulationConfig)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    cycle_length: CycleLengthConfig = field(default_factory=CycleLengthConfig)
    _raw: dict = field(default_factory=dict, repr=False)

    def resolve_horizon(self, horizon: int | None) -> int:
        """Return the requested horizon, or the default when none was given."""
        if horizon is None:
            return self.prediction.default_horizon
        return horizon


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when cycle_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Cycle config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path} must contain a mapping at the top level")
    return data


def _validate_and_build(raw: dict) -> CycleConfig:
    """Validate the raw YAML dict and construct a CycleConfig.

    Missing sections fall back to the dataclass defaults.  All problems are
    collected and reported together.

    Args:
        raw: Parsed YAML dict.

    Returns:
        Validated CycleConfig instance.

    Raises:
        ConfigValidationError: If any value has the wrong type or an
            inconsistent range.
    """
    errors: list[str] = []

    def _int(section: dict, key: str, default: int, where: str, minimum: int = 0) -> int:
        value = section.get(key, default)
        try:
            number = int(value)
        except (TypeError, ValueError):
            errors.append(f"{where}.{key} must be an integer, got {value!r}")
            return default
        if number < minimum:
            errors.append(f"{where}.{key} = {number} must be >= {minimum}")
        return number

    def _section(key: str) -> dict:
        value = raw.get(key) or {}
        if not isinstance(value, dict):
            errors.append(f"'{key}' must be a mapping")
            return {}
        return value

    version = str(raw.get("version", "1.0"))

    # ── Defaults ──
    d_raw = _section("defaults")
    defaults = DefaultsConfig(
        cycle_length_days=_int(d_raw, "cycle_length_days", 28, "defaults", 1),
        period_length_days=_int(d_raw, "period_length_days", 5, "defaults", 1),
    )
    if defaults.period_length_days >= defaults.cycle_length_days:
        errors.append("defaults.period_length_days must be shorter than cycle_length_days")

    # ── Ovulation ──
    o_raw = _section("ovulation")
    ovulation = OvulationConfig(
        luteal_phase_days=_int(o_raw, "luteal_phase_days", 14, "ovulation", 1),
        fertile_days_before=_int(o_raw, "fertile_days_before", 5, "ovulation"),
        fertile_days_after=_int(o_raw, "fertile_days_after", 1, "ovulation"),
        phase_tolerance_days=_int(o_raw, "phase_tolerance_days", 1, "ovulation"),
    )
    if ovulation.luteal_phase_days >= defaults.cycle_length_days:
        errors.append("ovulation.luteal_phase_days must be shorter than the default cycle")

    # ── Prediction ──
    p_raw = _section("prediction")
    prediction = PredictionConfig(
        default_horizon=_int(p_raw, "default_horizon", 3, "prediction", 1),
        max_horizon=_int(p_raw, "max_horizon", 12, "prediction", 1),
    )
    if prediction.default_horizon > prediction.max_horizon:
        errors.append("prediction.default_horizon exceeds prediction.max_horizon")

    # ── Calendar ──
    c_raw = _section("calendar")
    calendar_cfg = CalendarConfig(
        min_year=_int(c_raw, "min_year", 1900, "calendar", 1),
        max_year=_int(c_raw, "max_year", 2200, "calendar", 1),
    )
    if calendar_cfg.min_year > calendar_cfg.max_year:
        errors.append("calendar.min_year is after calendar.max_year")
    if calendar_cfg.max_year >= 9999:
        errors.append("calendar.max_year must leave room for date arithmetic (< 9999)")

    # ── Cycle length ──
    cl_raw = _section("cycle_length")
    try:
        irregular_std = float(cl_raw.get("irregular_std_days", 7.0))
    except (TypeError, ValueError):
        errors.append(
            f"cycle_length.irregular_std_days must be a number, "
            f"got {cl_raw.get('irregular_std_days')!r}"
        )
        irregular_std = 7.0
    cycle_length = CycleLengthConfig(
        min_cycle_days=_int(cl_raw, "min_cycle_days", 21, "cycle_length", 1),
        max_cycle_days=_int(cl_raw, "max_cycle_days", 45, "cycle_length", 1),
        irregular_std_days=irregular_std,
    )
    if cycle_length.min_cycle_days > cycle_length.max_cycle_days:
        errors.append("cycle_length.min_cycle_days exceeds cycle_length.max_cycle_days")

    if errors:
        raise ConfigValidationError(
            f"cycle_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return CycleConfig(
        version=version,
        defaults=defaults,
        ovulation=ovulation,
        prediction=prediction,
        calendar=calendar_cfg,
        cycle_length=cycle_length,
        _raw=raw,
    )


def load_cycle_config(path: Path | None = None) -> CycleConfig:
    """Load and validate the cycle config from disk.

    Args:
        path: Override path to YAML. Uses the bundled cycle_config.yaml by default.

    Returns:
        Validated CycleConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded cycle config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: CycleConfig | None = None
_config_lock = threading.Lock()


def get_cycle_config() -> CycleConfig:
    """Return the global CycleConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_cycle_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_cycle_config()
    return _config


def reload_cycle_config(path: Path | None = None) -> CycleConfig:
    """Reload the cycle config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Args:
        path: Override path to YAML. Defaults to bundled cycle_config.yaml.

    Returns:
        The newly loaded CycleConfig.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_cycle_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info(
        "Reloaded cycle config: %s → %s",
        old_version,
        new_config.version,
    )
    return new_config
