"""Femora cycle prediction and calendar engine.

Pure, stateless computation over a caller-supplied period history.

Modules:
    cycle_model: Per-cycle statistics and history averages
    predictor: Period, ovulation and fertile-window projection
    calendar_builder: Per-day month classification
    engine: Failure-safe request/response boundary
    config_loader: Load/validate/hot-reload cycle_config.yaml
"""

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.engine import CycleEngine, EngineResult, ErrorKind, PredictRequest
from src.cycles.errors import (
    CycleEngineError,
    CycleValidationError,
    InsufficientHistoryError,
    InternalComputationError,
)

__all__ = [
    "CycleConfig",
    "get_cycle_config",
    "CycleEngine",
    "EngineResult",
    "ErrorKind",
    "PredictRequest",
    "CycleEngineError",
    "CycleValidationError",
    "InsufficientHistoryError",
    "InternalComputationError",
]
