"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class WireSchema(str, Enum):
    """Response/parameter naming generation spoken by the server.

    One deployment speaks exactly one generation; the client never guesses.
    """

    CAMEL = "camel"  # accountId, maxOrderId, EUR_USD
    SNAKE = "snake"  # account_id, max_order_id, EUR/USD


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for a ``TradingClient``.

    The session token is not part of the config; it comes from the token
    provider so it never ends up in a repr or a log line.
    """

    base_url: str = "https://api-sandbox.oanda.com"
    api_version: str = "v1"
    schema: WireSchema = WireSchema.CAMEL
    timeout_seconds: float = 30.0
    max_in_flight: int = 4
    rate_limit_rpm: int | None = 120  # None disables the token bucket
    token_header: str = "Authorization"
    token_prefix: str = "Bearer"
    user_agent: str = "fxrest/0.1"

    def __post_init__(self) -> None:
        if self.max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        if self.rate_limit_rpm is not None and self.rate_limit_rpm < 1:
            raise ValueError("rate_limit_rpm must be positive or None")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

    @classmethod
    def from_env(cls, prefix: str = "FXREST_") -> "ClientConfig":
        """Build a config from environment variables, falling back to defaults."""
        defaults = cls()
        rpm_raw = os.environ.get(f"{prefix}RATE_LIMIT_RPM")
        if rpm_raw is None:
            rate_limit_rpm = defaults.rate_limit_rpm
        elif rpm_raw.strip().lower() in {"", "0", "none", "off"}:
            rate_limit_rpm = None
        else:
            rate_limit_rpm = int(rpm_raw)

        return cls(
            base_url=os.environ.get(f"{prefix}BASE_URL", defaults.base_url),
            api_version=os.environ.get(f"{prefix}API_VERSION", defaults.api_version),
            schema=WireSchema(os.environ.get(f"{prefix}SCHEMA", defaults.schema.value).lower()),
            timeout_seconds=float(os.environ.get(f"{prefix}TIMEOUT_SECONDS", defaults.timeout_seconds)),
            max_in_flight=int(os.environ.get(f"{prefix}MAX_IN_FLIGHT", defaults.max_in_flight)),
            rate_limit_rpm=rate_limit_rpm,
        )
