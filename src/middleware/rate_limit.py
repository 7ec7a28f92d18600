"""In-memory sliding-window rate limiter.

Per-instance state only; a multi-instance deployment needs a shared backend
(e.g. Redis) behind the same interface.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.config import Settings, get_settings

logger = logging.getLogger("femora.rate_limit")

# Probes are polled by the client's status widget and never limited
_EXEMPT_SUFFIXES = ("/health",)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP sliding window rate limiter."""

    def __init__(
        self,
        app: Any,
        settings: Settings | None = None,
        window_seconds: int = 60,
    ) -> None:
        super().__init__(app)
        s = settings or get_settings()
        self._enabled = s.rate_limit_enabled
        self._max_requests = s.rate_limit_per_minute
        self._window_seconds = window_seconds
        # ip -> request timestamps, oldest first; never holds an empty deque
        self._requests: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def _client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _cleanup(self, ip: str, now: float) -> None:
        hits = self._requests.get(ip)
        if hits is None:
            return
        cutoff = now - self._window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._requests[ip]

    def _sweep(self, now: float) -> None:
        """Prune every client once per window so idle IPs are forgotten."""
        if now - self._last_sweep < self._window_seconds:
            return
        self._last_sweep = now
        for ip in list(self._requests):
            self._cleanup(ip, now)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self._enabled or request.url.path.endswith(_EXEMPT_SUFFIXES):
            return await call_next(request)

        ip = self._client_ip(request)
        now = time.monotonic()
        self._sweep(now)
        self._cleanup(ip, now)
        hits = self._requests.get(ip) or deque()

        if len(hits) >= self._max_requests:
            oldest = hits[0] if hits else now
            retry_after = int(self._window_seconds - (now - oldest))
            logger.warning("Rate limit exceeded for %s on %s", ip, request.url.path)
            return Response(
                content='{"success":false,"message":"Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(max(retry_after, 1))},
            )

        hits.append(now)
        self._requests[ip] = hits

        response = await call_next(request)

        remaining = self._max_requests - len(hits)
        response.headers["X-RateLimit-Limit"] = str(self._max_requests)
        response.headers["X-RateLimit-Remaining"] = str(max(remaining, 0))

        return response
