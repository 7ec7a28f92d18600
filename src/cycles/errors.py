"""Exceptions raised inside the cycle engine.

None of these cross the engine boundary: ``CycleEngine`` converts them into
failed ``EngineResult`` values.
"""

from __future__ import annotations


class CycleEngineError(Exception):
    """Base class for all cycle engine failures."""


class CycleValidationError(CycleEngineError, ValueError):
    """Input is malformed or semantically inconsistent.

    Examples: duplicate period start dates, a period as long as the cycle,
    a calendar year outside the supported range.
    """


class InsufficientHistoryError(CycleEngineError):
    """No period has been logged yet.

    Callers treat this as a displayable "no data yet" state, not a failure.
    """


class InternalComputationError(CycleEngineError):
    """Date arithmetic left the representable range."""
