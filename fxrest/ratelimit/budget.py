"""Shared request budget.

The trading API rate-limits per account and per IP across all in-flight
requests, so every client talking to the same host in one process draws
from one budget: a cap on concurrent requests plus a token bucket.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rate Limiting (Token Bucket)
# ---------------------------------------------------------------------------


class TokenBucket:
    """Token bucket rate limiter.

    Allows burst traffic up to the capacity, then refills at a steady rate.
    """

    def __init__(self, rate_per_minute: int, name: str) -> None:
        """Initialize token bucket.

        Args:
            rate_per_minute: Requests per minute allowed
            name: Label used in log lines (usually the host)
        """
        if rate_per_minute < 1:
            raise ValueError("rate_per_minute must be positive")
        self.capacity = rate_per_minute
        self.tokens = float(rate_per_minute)
        self.rate_per_second = rate_per_minute / 60.0
        self.last_update = time.monotonic()
        self.name = name
        self._bucket_lock = asyncio.Lock()

    async def acquire(self, tokens: int = 1) -> None:
        """Acquire tokens (wait if necessary)."""
        async with self._bucket_lock:
            while True:
                now = time.monotonic()
                elapsed = now - self.last_update

                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_second)
                self.last_update = now

                if self.tokens >= tokens:
                    self.tokens -= tokens
                    logger.debug("Acquired %d token(s) for %s, %.1f remaining", tokens, self.name, self.tokens)
                    return

                wait_time = (tokens - self.tokens) / self.rate_per_second
                logger.debug("Rate limit reached for %s, waiting %.2fs", self.name, wait_time)
                await asyncio.sleep(min(wait_time, 1.0))  # Cap sleep at 1s for responsiveness


# ---------------------------------------------------------------------------
# Request budget
# ---------------------------------------------------------------------------


class RequestBudget:
    """Concurrency cap plus optional token bucket, acquired around each send."""

    _registry: dict[str, "RequestBudget"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, max_in_flight: int = 4, rate_limit_rpm: Optional[int] = 120, name: str = "default") -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.name = name
        self.max_in_flight = max_in_flight
        self.rate_limit_rpm = rate_limit_rpm
        self.in_flight = 0
        self._semaphore = asyncio.Semaphore(max_in_flight)
        self._bucket = TokenBucket(rate_limit_rpm, name) if rate_limit_rpm else None

    @classmethod
    def for_host(cls, base_url: str, *, max_in_flight: int = 4, rate_limit_rpm: Optional[int] = 120) -> "RequestBudget":
        """Get or create the process-wide budget for the host of ``base_url``.

        The first caller's limits win; later callers get the existing budget.
        """
        host = urlsplit(base_url).netloc.lower() or base_url
        with cls._registry_lock:
            budget = cls._registry.get(host)
            if budget is None:
                budget = cls(max_in_flight=max_in_flight, rate_limit_rpm=rate_limit_rpm, name=host)
                cls._registry[host] = budget
            elif (budget.max_in_flight, budget.rate_limit_rpm) != (max_in_flight, rate_limit_rpm):
                logger.info(
                    "Reusing request budget for %s (max_in_flight=%d, rate_limit_rpm=%s)",
                    host,
                    budget.max_in_flight,
                    budget.rate_limit_rpm,
                )
            return budget

    @classmethod
    def reset_registry(cls) -> None:
        with cls._registry_lock:
            cls._registry.clear()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one in-flight slot (and one bucket token) for the body."""
        async with self._semaphore:
            if self._bucket is not None:
                await self._bucket.acquire()
            self.in_flight += 1
            try:
                yield
            finally:
                self.in_flight -= 1
