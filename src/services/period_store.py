"""Keyed period-history store.

The cycle engine never persists anything; it reads a user's history from a
``PeriodStore`` supplied by the caller.  ``InMemoryPeriodStore`` is the
implementation wired into the app: one instance per application, attached to
``app.state`` in the lifespan hook, so separate app instances never share
state.  Swap in a database-backed class implementing the same protocol for
multi-instance deployments.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Protocol

from src.cycles.models import PeriodEntry
from src.models.base import utc_now

logger = logging.getLogger("femora.services.period_store")


@dataclass
class StoredPeriod(PeriodEntry):
    """A PeriodEntry plus bookkeeping timestamps."""

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


class PeriodNotFoundError(KeyError):
    """Raised when a period id does not exist for the user."""


class PeriodStore(Protocol):
    def list(self, user_id: str) -> list[StoredPeriod]: ...

    def get(self, user_id: str, period_id: uuid.UUID) -> StoredPeriod: ...

    def create(self, user_id: str, data: dict[str, Any]) -> StoredPeriod: ...

    def update(
        self, user_id: str, period_id: uuid.UUID, patch: dict[str, Any]
    ) -> StoredPeriod: ...

    def delete(self, user_id: str, period_id: uuid.UUID) -> None: ...


class InMemoryPeriodStore:
    """Thread-safe dict-of-dicts store: user_id → period_id → StoredPeriod."""

    def __init__(self) -> None:
        self._data: dict[str, dict[uuid.UUID, StoredPeriod]] = {}
        self._lock = threading.Lock()

    def list(self, user_id: str) -> list[StoredPeriod]:
        """Return the user's periods, oldest start date first."""
        with self._lock:
            periods = list(self._data.get(user_id, {}).values())
        return sorted(periods, key=lambda p: p.start_date)

    def get(self, user_id: str, period_id: uuid.UUID) -> StoredPeriod:
        with self._lock:
            try:
                return self._data[user_id][period_id]
            except KeyError:
                raise PeriodNotFoundError(period_id) from None

    def create(self, user_id: str, data: dict[str, Any]) -> StoredPeriod:
        period = StoredPeriod(**data)
        with self._lock:
            self._data.setdefault(user_id, {})[period.id] = period
        logger.info("Created period %s for user %s", period.id, user_id)
        return period

    def update(
        self, user_id: str, period_id: uuid.UUID, patch: dict[str, Any]
    ) -> StoredPeriod:
        with self._lock:
            try:
                current = self._data[user_id][period_id]
            except KeyError:
                raise PeriodNotFoundError(period_id) from None
            updated = replace(current, **patch, updated_at=utc_now())
            self._data[user_id][period_id] = updated
        return updated

    def delete(self, user_id: str, period_id: uuid.UUID) -> None:
        with self._lock:
            periods = self._data.get(user_id, {})
            if period_id not in periods:
                raise PeriodNotFoundError(period_id)
            del periods[period_id]
        logger.info("Deleted period %s for user %s", period_id, user_id)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
