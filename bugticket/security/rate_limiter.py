"""
In-memory fixed-window rate limiter.

Single-process approximation: state lives in a dict on the limiter instance,
is lost on restart and is not shared between instances.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from structlog import get_logger

logger = get_logger()

# Prune stale entries once the map grows past this many callers
MAX_TRACKED_CALLERS = 10_000


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: float = 0.0


class RateLimiter:
    """Bound each caller to ``max_requests`` per ``window_seconds``."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    def hit(self, key: str, now: float | None = None) -> RateLimitDecision:
        """Record a request from ``key`` and decide whether to allow it.

        The window is live while ``now < reset_at``. Denied requests do not
        increment the count, so the count never exceeds ``max_requests``.
        """
        if now is None:
            now = self._clock()

        entry = self._entries.get(key)
        if entry is None or now >= entry.reset_at:
            if len(self._entries) >= MAX_TRACKED_CALLERS:
                self.prune(now)
            self._entries[key] = RateLimitEntry(
                count=1, reset_at=now + self.window_seconds
            )
            return RateLimitDecision(
                allowed=True, remaining=self.max_requests - 1
            )

        if entry.count >= self.max_requests:
            logger.warning(
                "rate_limit_exceeded",
                limiter=self.name,
                caller=key,
                limit=self.max_requests,
            )
            return RateLimitDecision(
                allowed=False, remaining=0, retry_after=entry.reset_at - now
            )

        entry.count += 1
        return RateLimitDecision(
            allowed=True, remaining=self.max_requests - entry.count
        )

    def prune(self, now: float | None = None) -> int:
        """Drop entries whose window ended more than one window ago."""
        if now is None:
            now = self._clock()
        stale = [
            key
            for key, entry in self._entries.items()
            if now > entry.reset_at + self.window_seconds
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("rate_limit_pruned", limiter=self.name, removed=len(stale))
        return len(stale)

    def get_entry(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)
