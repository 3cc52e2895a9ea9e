"""Endpoint catalog.

Static table of every operation the client exposes: verb, path template,
required and optional parameters, and the response shape the decoder
expects. Paths are relative to ``/{api_version}``.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fxrest.config import WireSchema
from fxrest.rest.errors import ValidationError


class ParamKind(str, Enum):
    ID = "id"  # positive int
    WATERMARK = "watermark"  # non-negative int
    POSITIVE_INT = "positive_int"
    COUNT = "count"  # 1..MAX_COUNT
    DECIMAL = "decimal"  # exact, non-negative
    INSTRUMENT = "instrument"
    INSTRUMENT_LIST = "instrument_list"
    DIRECTION = "direction"
    GRANULARITY = "granularity"
    TEXT = "text"


class Shape(str, Enum):
    ACCOUNT_LIST = "account_list"
    ACCOUNT = "account"
    INSTRUMENT_LIST = "instrument_list"
    QUOTE_LIST = "quote_list"
    CANDLES = "candles"
    TRANSACTION_LIST = "transaction_list"
    ORDER_LIST = "order_list"
    ORDER = "order"
    ORDER_CHANGES = "order_changes"
    TRADE_LIST = "trade_list"
    TRADE = "trade"
    TRADE_OPEN = "trade_open"
    TRADE_CLOSE = "trade_close"
    TRADE_CHANGES = "trade_changes"
    POSITION_LIST = "position_list"
    POSITION_CLOSE = "position_close"
    PRICE_ALERT_LIST = "price_alert_list"
    RATE_LIMIT_LIST = "rate_limit_list"
    # Success carries no document
    EMPTY = "empty"


MAX_COUNT = 5000


@dataclass(frozen=True)
class Param:
    """One parameter: Python argument name plus its wire name per schema."""

    name: str
    kind: ParamKind
    camel: str
    snake: str

    def wire_name(self, schema: WireSchema) -> str:
        return self.snake if schema is WireSchema.SNAKE else self.camel


@dataclass(frozen=True)
class Endpoint:
    name: str
    method: str
    path: str
    shape: Shape
    required: tuple[Param, ...] = ()
    optional: tuple[Param, ...] = ()

    @property
    def path_params(self) -> frozenset[str]:
        return frozenset(field for _, field, _, _ in string.Formatter().parse(self.path) if field)

    @property
    def sends_body(self) -> bool:
        return self.method in {"POST", "PATCH", "PUT"}

    def param(self, name: str) -> Optional[Param]:
        for p in self.required + self.optional:
            if p.name == name:
                return p
        return None


def _p(name: str, kind: ParamKind, camel: Optional[str] = None, snake: Optional[str] = None) -> Param:
    return Param(name=name, kind=kind, camel=camel or name, snake=snake or name)


# Shared parameter definitions
ACCOUNT_ID = _p("account_id", ParamKind.ID, "accountId")
ORDER_ID = _p("order_id", ParamKind.ID, "orderId")
TRADE_ID = _p("trade_id", ParamKind.ID, "tradeId")
USERNAME = _p("username", ParamKind.TEXT)
INSTRUMENT = _p("instrument", ParamKind.INSTRUMENT, "instrument", "symbol")
INSTRUMENTS = _p("instruments", ParamKind.INSTRUMENT_LIST, "instruments", "symbols")
UNITS = _p("units", ParamKind.POSITIVE_INT)
DIRECTION = _p("direction", ParamKind.DIRECTION, "type", "type")
PRICE = _p("price", ParamKind.DECIMAL)
EXPIRY = _p("expiry", ParamKind.POSITIVE_INT)
LOW_PRICE = _p("low_price", ParamKind.DECIMAL, "lowPrice")
HIGH_PRICE = _p("high_price", ParamKind.DECIMAL, "highPrice")
STOP_LOSS = _p("stop_loss", ParamKind.DECIMAL, "stopLoss")
TAKE_PROFIT = _p("take_profit", ParamKind.DECIMAL, "takeProfit")
TRAILING_STOP = _p("trailing_stop", ParamKind.DECIMAL, "trailingStop")
COUNT = _p("count", ParamKind.COUNT)
GRANULARITY = _p("granularity", ParamKind.GRANULARITY)
MARKUP_GROUP_ID = _p("markup_group_id", ParamKind.POSITIVE_INT, "markupGroupId")
MAX_TRANSACTION_ID = _p("max_transaction_id", ParamKind.ID, "maxTransId", "max_trans_id")
MAX_ORDER_ID = _p("max_order_id", ParamKind.ID, "maxOrderId")
MAX_TRADE_ID = _p("max_trade_id", ParamKind.ID, "maxTradeId")
ORDER_WATERMARK = _p("watermark", ParamKind.WATERMARK, "maxOrderId", "max_order_id")
TRADE_WATERMARK = _p("watermark", ParamKind.WATERMARK, "maxTradeId", "max_trade_id")

RISK_PARAMS = (STOP_LOSS, TAKE_PROFIT, TRAILING_STOP)
EXECUTION_BOUNDS = (LOW_PRICE, HIGH_PRICE)

ENDPOINTS: tuple[Endpoint, ...] = (
    # Accounts
    Endpoint("account_list", "GET", "/users/{username}/accounts", Shape.ACCOUNT_LIST, (USERNAME,)),
    Endpoint("account_status", "GET", "/accounts/{account_id}", Shape.ACCOUNT, (ACCOUNT_ID,)),
    # Rates
    Endpoint("instrument_list", "GET", "/instruments", Shape.INSTRUMENT_LIST),
    Endpoint("quote", "GET", "/quote", Shape.QUOTE_LIST, (INSTRUMENTS,)),
    Endpoint(
        "candles",
        "GET",
        "/history",
        Shape.CANDLES,
        (INSTRUMENT,),
        (GRANULARITY, COUNT, MARKUP_GROUP_ID),
    ),
    # Reports
    Endpoint(
        "transaction_list",
        "GET",
        "/accounts/{account_id}/transactions",
        Shape.TRANSACTION_LIST,
        (ACCOUNT_ID,),
        (MAX_TRANSACTION_ID, COUNT),
    ),
    Endpoint("position_list", "GET", "/accounts/{account_id}/positions", Shape.POSITION_LIST, (ACCOUNT_ID,)),
    Endpoint("price_alert_list", "GET", "/accounts/{account_id}/alerts", Shape.PRICE_ALERT_LIST, (ACCOUNT_ID,)),
    Endpoint("rate_limit_list", "GET", "/rate_limits", Shape.RATE_LIMIT_LIST),
    # Positions
    Endpoint(
        "position_close",
        "DELETE",
        "/accounts/{account_id}/positions/{instrument}",
        Shape.POSITION_CLOSE,
        (ACCOUNT_ID, INSTRUMENT),
        (PRICE,),
    ),
    # Orders
    Endpoint(
        "order_list",
        "GET",
        "/accounts/{account_id}/orders",
        Shape.ORDER_LIST,
        (ACCOUNT_ID,),
        (MAX_ORDER_ID, COUNT),
    ),
    Endpoint(
        "order_create",
        "POST",
        "/accounts/{account_id}/orders",
        Shape.ORDER,
        (ACCOUNT_ID, INSTRUMENT, UNITS, DIRECTION, PRICE, EXPIRY),
        EXECUTION_BOUNDS + RISK_PARAMS,
    ),
    Endpoint(
        "order_change",
        "PATCH",
        "/accounts/{account_id}/orders/{order_id}",
        Shape.EMPTY,
        (ACCOUNT_ID, ORDER_ID, INSTRUMENT, UNITS, DIRECTION, PRICE, EXPIRY),
        EXECUTION_BOUNDS + RISK_PARAMS,
    ),
    Endpoint(
        "order_delete",
        "DELETE",
        "/accounts/{account_id}/orders/{order_id}",
        Shape.ORDER,
        (ACCOUNT_ID, ORDER_ID),
    ),
    Endpoint(
        "order_poll",
        "GET",
        "/accounts/{account_id}/orders/changes",
        Shape.ORDER_CHANGES,
        (ACCOUNT_ID, ORDER_WATERMARK),
    ),
    # Trades
    Endpoint(
        "trade_list",
        "GET",
        "/accounts/{account_id}/trades",
        Shape.TRADE_LIST,
        (ACCOUNT_ID,),
        (MAX_TRADE_ID, COUNT),
    ),
    Endpoint(
        "trade_open",
        "POST",
        "/accounts/{account_id}/trades",
        Shape.TRADE_OPEN,
        (ACCOUNT_ID, INSTRUMENT, UNITS),
        (DIRECTION, PRICE) + EXECUTION_BOUNDS + RISK_PARAMS,
    ),
    Endpoint(
        "trade_change",
        "PATCH",
        "/accounts/{account_id}/trades/{trade_id}",
        Shape.EMPTY,
        (ACCOUNT_ID, TRADE_ID),
        RISK_PARAMS,
    ),
    Endpoint(
        "trade_close",
        "DELETE",
        "/accounts/{account_id}/trades/{trade_id}",
        Shape.TRADE_CLOSE,
        (ACCOUNT_ID, TRADE_ID),
        (PRICE,),
    ),
    Endpoint(
        "trade_poll",
        "GET",
        "/accounts/{account_id}/trades/changes",
        Shape.TRADE_CHANGES,
        (ACCOUNT_ID, TRADE_WATERMARK),
    ),
)

CATALOG: dict[str, Endpoint] = {endpoint.name: endpoint for endpoint in ENDPOINTS}


def lookup(name: str) -> Endpoint:
    """Return the catalog entry for an operation name."""
    try:
        return CATALOG[name]
    except KeyError:
        raise ValidationError(f"unknown operation: {name!r}") from None
