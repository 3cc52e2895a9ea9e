from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar("T")

PriceType = Literal["BID", "ASK"]


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class EntityKind(str, Enum):
    """Entity kinds that support change polling."""

    ORDER = "order"
    TRADE = "trade"


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a list endpoint.

    ``next_page`` is the server-provided link to the following page, if any.
    An empty ``items`` tuple is a valid page, not a failure.
    """

    items: tuple[T, ...]
    next_page: Optional[str] = None

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Account:
    """Account snapshot.

    List entries only carry the identity fields; status calls fill the rest.
    """

    id: int
    name: Optional[str] = None
    home_currency: Optional[str] = None
    margin_rate: Optional[Decimal] = None
    balance: Optional[Decimal] = None
    nav: Optional[Decimal] = None
    margin_used: Optional[Decimal] = None
    margin_available: Optional[Decimal] = None
    open_orders: Optional[int] = None
    open_trades: Optional[int] = None
    realized_pl: Optional[Decimal] = None
    unrealized_pl: Optional[Decimal] = None


@dataclass(frozen=True)
class Instrument:
    instrument: str  # canonical, e.g. EUR_USD
    display_name: Optional[str] = None
    pip: Optional[Decimal] = None
    precision: Optional[int] = None
    max_trade_units: Optional[int] = None


@dataclass(frozen=True)
class Quote:
    instrument: str
    bid: Decimal
    ask: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class Candle:
    """Mid-price candle."""

    timestamp: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    complete: bool


@dataclass(frozen=True)
class CandleSeries:
    instrument: str
    granularity: Optional[str]
    candles: tuple[Candle, ...]


@dataclass(frozen=True)
class Transaction:
    id: int
    account_id: Optional[int]
    type: str
    timestamp: datetime
    instrument: Optional[str] = None
    amount: Optional[Decimal] = None
    balance: Optional[Decimal] = None
    units: Optional[int] = None
    price: Optional[Decimal] = None
    profit_loss: Optional[Decimal] = None
    completion_code: Optional[int] = None
    transaction_link: Optional[int] = None
    order_link: Optional[int] = None


@dataclass(frozen=True)
class Order:
    """Limit order.

    Zero-valued risk fields are relayed as the server sent them; the server
    uses 0 for "not set" and this layer does not reinterpret it.
    """

    id: int
    account_id: Optional[int]
    instrument: str
    direction: Direction
    units: int
    price: Decimal
    expiry: Optional[datetime] = None
    low_price: Optional[Decimal] = None
    high_price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    trailing_stop: Optional[Decimal] = None
    oca_group_id: Optional[int] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Trade:
    id: int
    account_id: Optional[int]
    instrument: str
    direction: Direction
    units: int
    price: Decimal
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    trailing_stop: Optional[Decimal] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class TradeOpen:
    """Result of opening a market trade (may fill as several trades)."""

    ids: tuple[int, ...]
    instrument: str
    direction: Direction
    units: int
    price: Decimal
    margin_used: Optional[Decimal] = None


@dataclass(frozen=True)
class TradeClose:
    id: int
    direction: Direction
    price: Decimal
    profit: Decimal
    instrument: Optional[str] = None


@dataclass(frozen=True)
class Position:
    """Aggregate of open trades per instrument and direction."""

    instrument: str
    direction: Direction
    units: int
    average_price: Decimal


@dataclass(frozen=True)
class PositionClose:
    ids: tuple[int, ...]
    instrument: str
    total_units: int
    price: Decimal


@dataclass(frozen=True)
class PriceAlert:
    id: int
    instrument: str
    price: Decimal
    price_type: PriceType
    expiry: Optional[datetime] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class RateLimit:
    """Server-side limiter counters (e.g. IPRateLimiter, UsernameRateLimiter)."""

    type: str
    limit: int
    remaining: int


@dataclass(frozen=True)
class ChangeSet:
    """Server-reported order/trade mutations since a watermark.

    ``watermark`` is the value the caller must persist and send on the next
    poll for the same (account, kind).
    """

    account_id: int
    kind: EntityKind
    created: tuple[int, ...]
    updated: tuple[int, ...]
    deleted: tuple[int, ...]
    watermark: int

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.deleted)
