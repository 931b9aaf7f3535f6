"""Per-client sliding-window rate limiting.

Four limiter classes exist: a global one applied to every request by
middleware, and ``auth``, ``plaid`` and ``database`` limiters applied to
individual routes as dependencies. Counters are per client IP and live in
process memory.
"""

import asyncio
import logging
import math
import threading
import time
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from ..config import ClaritySettings, RateLimitConfig, RateLimitRule
from .errors import ApiError

logger = logging.getLogger(__name__)

GLOBAL = "global"
AUTH = "auth"
PLAID = "plaid"
DATABASE = "database"

_ERROR_LABELS = {
    GLOBAL: "Too many API requests",
    AUTH: "Too many authentication requests",
    PLAID: "Too many Plaid API requests",
    DATABASE: "Too many database operation requests",
}


@dataclass(frozen=True)
class RateLimitState:
    """Outcome of counting one request against a limiter."""

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int
    count: int

    def headers(self) -> dict[str, str]:
        """Standard ``RateLimit-*`` headers, plus ``Retry-After`` when blocked."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.reset_seconds)
        return headers


class SlidingWindowLimiter:
    """Counts requests per key over a trailing time window."""

    def __init__(
        self, rule: RateLimitRule, clock: Callable[[], float] = time.monotonic
    ):
        self.rule = rule
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        """Forget clients with no request inside the window, at most once per window."""
        window = self.rule.window_seconds
        if now - self._last_sweep < window:
            return
        self._last_sweep = now
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - window
        ]
        for key in stale:
            del self._hits[key]

    def hit(self, key: str) -> RateLimitState:
        """Record a request for ``key`` unless it is over the limit.

        Rejected requests are not recorded, so a blocked client regains
        access as soon as its oldest counted request leaves the window.
        """
        now = self._clock()
        window = self.rule.window_seconds
        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= now - window:
                hits.popleft()

            allowed = len(hits) < self.rule.max_requests
            if allowed:
                hits.append(now)

            count = len(hits)
            reset = max(1, math.ceil(hits[0] + window - now)) if hits else window
            self._sweep(now)
            return RateLimitState(
                allowed=allowed,
                limit=self.rule.max_requests,
                remaining=max(0, self.rule.max_requests - count),
                reset_seconds=reset,
                count=count,
            )


def _describe_window(seconds: int) -> str:
    minutes = max(1, seconds // 60)
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


def client_key(request: Request) -> str:
    """Client IP, honouring the first ``X-Forwarded-For`` hop behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimits:
    """The set of limiters shared by one application instance."""

    def __init__(
        self,
        config: RateLimitConfig,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.enabled = enabled and config.enabled
        self.limiters = {
            GLOBAL: SlidingWindowLimiter(config.global_limit, clock),
            AUTH: SlidingWindowLimiter(config.auth_limit, clock),
            PLAID: SlidingWindowLimiter(config.plaid_limit, clock),
            DATABASE: SlidingWindowLimiter(config.db_limit, clock),
        }

    @classmethod
    def from_settings(cls, settings: ClaritySettings) -> "RateLimits":
        """Limiters for ``settings``; disabled in test mode outside production."""
        skip = settings.server.test_mode and not settings.server.is_production
        if skip:
            logger.info("Rate limiting disabled in test mode")
        return cls(settings.rate_limit, enabled=not skip)

    def check(self, kind: str, key: str, path: str = "") -> RateLimitState:
        """Count a request against limiter ``kind``.

        Raises:
            ApiError: 429 when the client is over the limit
        """
        state = self.limiters[kind].hit(key)
        if not state.allowed:
            raise self.rejection(kind, state, key, path)
        return state

    def rejection(
        self, kind: str, state: RateLimitState, key: str, path: str = ""
    ) -> ApiError:
        """The 429 error for a client over limiter ``kind``."""
        rule = self.limiters[kind].rule
        logger.warning(f"Rate limit exceeded ({kind}) for IP {key} on {path}")
        return ApiError(
            status.HTTP_429_TOO_MANY_REQUESTS,
            _ERROR_LABELS[kind],
            message=(
                f"You have exceeded the {rule.max_requests} requests per "
                f"{_describe_window(rule.window_seconds)} limit."
            ),
            headers=state.headers(),
            extra={"retryAfter": state.reset_seconds},
        )

    def slow_down_delay(self, state: RateLimitState) -> float:
        """Seconds to hold a request once a client passes the slow-down threshold."""
        if state.count <= self.config.slow_down_after:
            return 0.0
        delay_ms = min(self.config.slow_down_delay_ms, self.config.slow_down_max_delay_ms)
        return delay_ms / 1000


def limit(kind: str) -> Callable[[Request, Response], None]:
    """Build a route dependency enforcing limiter ``kind``.

    Args:
        kind: One of ``auth``, ``plaid`` or ``database``

    Returns:
        A FastAPI dependency
    """

    def dependency(request: Request, response: Response) -> None:
        limits: RateLimits = request.app.state.rate_limits
        if not limits.enabled:
            return
        state = limits.check(kind, client_key(request), request.url.path)
        response.headers.update(state.headers())

    dependency.__name__ = f"{kind}_rate_limit"
    return dependency


async def global_rate_limit_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Apply the global limiter and slow-down to every request."""
    limits: RateLimits = request.app.state.rate_limits
    if not limits.enabled:
        return await call_next(request)

    key = client_key(request)
    state = limits.limiters[GLOBAL].hit(key)
    if not state.allowed:
        error = limits.rejection(GLOBAL, state, key, request.url.path)
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_content(),
            headers=error.headers,
        )

    delay = limits.slow_down_delay(state)
    if delay:
        await asyncio.sleep(delay)

    response = await call_next(request)
    for name, value in state.headers().items():
        response.headers.setdefault(name, value)
    return response
