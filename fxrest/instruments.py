"""Instrument symbols, direction tokens and candle granularities.

Two symbol encodings circulate: ``EUR/USD`` (older generation, display
names) and ``EUR_USD`` (newer generation). Inside the client every symbol
is canonical: upper-case and underscore-delimited. Encoding back to the
wire form happens only when a request is built.

All helpers raise ``ValueError``; callers translate that into their own
error type.
"""

from __future__ import annotations

import re

from fxrest.config import WireSchema
from fxrest.types import Direction

_SYMBOL_RE = re.compile(r"^[A-Z0-9]+_[A-Z0-9]+$")

GRANULARITIES = frozenset(
    {
        "S5", "S10", "S15", "S30",
        "M1", "M2", "M3", "M4", "M5", "M10", "M15", "M30",
        "H1", "H2", "H3", "H4", "H6", "H8", "H12",
        "D", "W", "M",
    }
)

_DIRECTION_TOKENS = {
    "l": Direction.LONG,
    "long": Direction.LONG,
    "buy": Direction.LONG,
    "s": Direction.SHORT,
    "short": Direction.SHORT,
    "sell": Direction.SHORT,
}


def canonical_instrument(symbol: str) -> str:
    """Return the canonical ``BASE_QUOTE`` form of a symbol.

    Example:
        >>> canonical_instrument("eur/usd")
        'EUR_USD'
        >>> canonical_instrument("SOYBN_USD")
        'SOYBN_USD'
    """
    if not isinstance(symbol, str):
        raise ValueError(f"instrument must be a string, got {type(symbol).__name__}")

    candidate = symbol.strip().upper().replace("/", "_")
    if not _SYMBOL_RE.match(candidate):
        raise ValueError(f"not an instrument symbol: {symbol!r}")
    return candidate


def display_instrument(symbol: str) -> str:
    """Slash-delimited form, e.g. ``EUR/USD``."""
    return canonical_instrument(symbol).replace("_", "/")


def encode_instrument(symbol: str, schema: WireSchema) -> str:
    """Wire form of a symbol for the given schema."""
    if schema is WireSchema.SNAKE:
        return display_instrument(symbol)
    return canonical_instrument(symbol)


def parse_direction(token: object) -> Direction:
    """Accept ``Direction`` or any of L/long/buy, S/short/sell (case-insensitive)."""
    if isinstance(token, Direction):
        return token
    if isinstance(token, str):
        direction = _DIRECTION_TOKENS.get(token.strip().lower())
        if direction is not None:
            return direction
    raise ValueError(f"not a trade direction: {token!r}")


def encode_direction(direction: Direction, schema: WireSchema, *, for_request: bool = False) -> str:
    """Wire token for a direction.

    Requests in the older generation say ``buy``/``sell``; its responses say
    ``L``/``S``. The newer generation uses ``long``/``short`` in both.
    """
    if schema is WireSchema.SNAKE:
        if for_request:
            return "buy" if direction is Direction.LONG else "sell"
        return "L" if direction is Direction.LONG else "S"
    return direction.value


def check_granularity(token: str) -> str:
    if not isinstance(token, str) or token.strip().upper() not in GRANULARITIES:
        raise ValueError(f"unknown granularity: {token!r}")
    return token.strip().upper()
