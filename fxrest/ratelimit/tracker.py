"""Rate limit tracking for the trading API.

Keeps the latest counters the server reported per limiter type (for example
``IPRateLimiter`` or ``UsernameRateLimiter``), fed from ``rate_limit_list``
results and from ``X-RateLimit-*`` response headers.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Iterable, Mapping, Optional

from fxrest.types import RateLimit

logger = logging.getLogger(__name__)

HEADER_LIMITER = "header"
LIMIT_HEADER = "x-ratelimit-limit"
REMAINING_HEADER = "x-ratelimit-remaining"


@dataclass
class RateLimitStatus:
    """Latest counters for one limiter."""

    type: str
    limit: int  # Total requests allowed
    remaining: int  # Requests remaining
    updated_at: float = field(default_factory=time.time)

    @property
    def used(self) -> int:
        """Number of requests used."""
        return self.limit - self.remaining

    @property
    def usage_percent(self) -> float:
        """Usage percentage (0-100)."""
        if self.limit <= 0:
            return 0.0
        return (self.used / self.limit) * 100

    @property
    def status(self) -> str:
        """Status indicator: ok, warning, critical."""
        usage = self.usage_percent
        if usage >= 90:
            return "critical"
        elif usage >= 70:
            return "warning"
        return "ok"


@dataclass
class RateLimitTracker:
    """Thread-safe store of server-reported limiter counters."""

    warn_threshold: float = 0.9
    _limits: dict[str, RateLimitStatus] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)

    def record(self, limit: RateLimit) -> RateLimitStatus:
        """Store counters for one limiter, warning when it crosses the threshold."""
        status = RateLimitStatus(type=limit.type, limit=limit.limit, remaining=limit.remaining)
        with self._lock:
            previous = self._limits.get(limit.type)
            self._limits[limit.type] = status

        crossed = status.usage_percent >= self.warn_threshold * 100
        was_over = previous is not None and previous.usage_percent >= self.warn_threshold * 100
        if crossed and not was_over:
            logger.warning(
                "Rate limiter %s at %.0f%% (%d of %d remaining)",
                status.type,
                status.usage_percent,
                status.remaining,
                status.limit,
            )
        return status

    def record_all(self, limits: Iterable[RateLimit]) -> None:
        for limit in limits:
            self.record(limit)

    def update_from_headers(self, headers: Mapping[str, str], limiter: str = HEADER_LIMITER) -> Optional[RateLimitStatus]:
        """Record ``X-RateLimit-Limit`` / ``X-RateLimit-Remaining`` if both are present.

        Header names are matched case-insensitively. Malformed values are
        ignored.
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        raw_limit = lowered.get(LIMIT_HEADER)
        raw_remaining = lowered.get(REMAINING_HEADER)
        if raw_limit is None or raw_remaining is None:
            return None
        try:
            limit = int(str(raw_limit).strip())
            remaining = int(str(raw_remaining).strip())
        except ValueError:
            logger.debug("Ignoring malformed rate limit headers: %r / %r", raw_limit, raw_remaining)
            return None
        return self.record(RateLimit(type=limiter, limit=limit, remaining=remaining))

    def get(self, limiter: str) -> Optional[RateLimitStatus]:
        with self._lock:
            return self._limits.get(limiter)

    def get_all(self) -> list[RateLimitStatus]:
        """All known limiters, sorted by type."""
        with self._lock:
            limits = list(self._limits.values())
        return sorted(limits, key=lambda x: x.type)

    def should_throttle(self, limiter: Optional[str] = None, threshold: Optional[float] = None) -> bool:
        """Check whether a limiter (or any limiter) is at or above the usage threshold."""
        threshold = self.warn_threshold if threshold is None else threshold
        if limiter is not None:
            info = self.get(limiter)
            return info is not None and info.usage_percent >= threshold * 100
        return any(info.usage_percent >= threshold * 100 for info in self.get_all())

    def clear(self) -> None:
        with self._lock:
            self._limits.clear()
