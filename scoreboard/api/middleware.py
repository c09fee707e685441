"""Request rate limiting and response security headers."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Callable, NamedTuple, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .errors import error_response, handle_unexpected

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; img-src 'self' data:"
    ),
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class RateLimitDecision(NamedTuple):
    allowed: bool
    limit: int
    remaining: int
    reset_after: int


class FixedWindowRateLimiter:
    """Counts requests per key in fixed windows of ``window_seconds``.

    Windows are kept in start order, so expired entries always sit at the
    front and are dropped as new hits arrive. At most ``max_keys`` windows
    are tracked; past that the oldest window is evicted even if it is
    still running.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 50000,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._windows: "OrderedDict[str, Tuple[float, int]]" = OrderedDict()
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
                # Restarted windows go to the back to keep start order.
                self._windows.pop(key, None)
            count += 1
            self._windows[key] = (started, count)
            self._prune(now)

        reset_after = max(0, math.ceil(started + self.window_seconds - now))
        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=reset_after,
        )

    def _prune(self, now: float) -> None:
        while self._windows:
            key, (started, _) = next(iter(self._windows.items()))
            expired = now - started >= self.window_seconds
            if not expired and len(self._windows) <= self.max_keys:
                break
            del self._windows[key]


def client_key(request: Request, trust_proxy: bool = False) -> str:
    """Identify the caller by peer address.

    The first ``X-Forwarded-For`` hop is used only when ``trust_proxy`` is
    set, i.e. when a reverse proxy in front of the app overwrites the header.
    """

    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self, app, limiter: FixedWindowRateLimiter, trust_proxy: bool = False
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next):
        key = client_key(request, self.trust_proxy)
        decision = self.limiter.hit(key)
        headers = {
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(decision.reset_after),
        }

        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
            headers["Retry-After"] = str(decision.reset_after)
            return error_response(429, RATE_LIMIT_MESSAGE, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Render unexpected exceptions as a 500 envelope inside the middleware stack.

    Installed innermost so the response still passes through CORS and the
    security headers on its way out.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return await handle_unexpected(request, exc)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


__all__ = [
    "FixedWindowRateLimiter",
    "RATE_LIMIT_MESSAGE",
    "RateLimitDecision",
    "RateLimitMiddleware",
    "SECURITY_HEADERS",
    "SecurityHeadersMiddleware",
    "UnhandledErrorMiddleware",
    "client_key",
]
