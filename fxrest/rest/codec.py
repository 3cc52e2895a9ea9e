"""Response decoding (and the inverse encoding used for fixtures and fakes).

Each response shape is described by a table of fields: attribute name on the
record, key per wire schema, value kind, and whether it is required. The
same table drives both directions, so a fixture encoded for a schema decodes
back to an equal record.

Money and price values are ``Decimal`` end to end: bodies are parsed with
``parse_float=Decimal`` and numeric strings are converted directly, never
through ``float``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from fxrest.config import WireSchema
from fxrest.instruments import canonical_instrument, encode_direction, encode_instrument, parse_direction
from fxrest.rest.catalog import Shape
from fxrest.rest.errors import ShapeError
from fxrest.types import (
    Account,
    Candle,
    CandleSeries,
    ChangeSet,
    EntityKind,
    Instrument,
    Order,
    Page,
    Position,
    PositionClose,
    PriceAlert,
    Quote,
    RateLimit,
    Trade,
    TradeClose,
    TradeOpen,
    Transaction,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROS = Decimal(1_000_000)
_NULL_SYMBOLS = frozenset({"", "na", "NA", "n/a"})


class FieldKind(str, Enum):
    INT = "int"
    DECIMAL = "decimal"
    TEXT = "text"
    INSTRUMENT = "instrument"
    DIRECTION = "direction"
    TIME = "time"
    BOOL = "bool"
    IDS = "ids"
    PRICE_TYPE = "price_type"


@dataclass(frozen=True)
class FieldSpec:
    attr: str
    kind: FieldKind
    camel: str
    snake: str
    required: bool = False

    def key(self, schema: WireSchema) -> str:
        return self.snake if schema is WireSchema.SNAKE else self.camel


@dataclass(frozen=True)
class RecordSpec:
    name: str
    cls: type
    fields: tuple[FieldSpec, ...]


def _f(attr: str, kind: FieldKind, camel: Optional[str] = None, snake: Optional[str] = None, *, required: bool = False) -> FieldSpec:
    return FieldSpec(attr=attr, kind=kind, camel=camel or attr, snake=snake or attr, required=required)


# ---------------------------------------------------------------------------
# Scalar conversions
# ---------------------------------------------------------------------------


def to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError("expected an integer, got a boolean")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, Decimal) and raw == raw.to_integral_value():
        return int(raw)
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    raise ValueError(f"expected an integer, got {raw!r}")


def to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValueError("expected a number, got a boolean")
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, float):
        # Pre-parsed payloads only; keep the shortest repr rather than the binary expansion
        value = Decimal(repr(raw))
    elif isinstance(raw, str):
        value = Decimal(raw.strip())
    else:
        raise ValueError(f"expected a number, got {type(raw).__name__}")
    if not value.is_finite():
        raise ValueError(f"expected a finite number, got {raw!r}")
    return value


def to_datetime(raw: Any) -> datetime:
    """Epoch seconds (int, Decimal or numeric string) or ISO-8601 to aware UTC."""
    if isinstance(raw, str) and not raw.strip().replace(".", "", 1).isdigit():
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    seconds = to_decimal(raw)
    whole = int(seconds)
    micros = int((seconds - whole) * _MICROS)
    return EPOCH + timedelta(seconds=whole, microseconds=micros)


def from_datetime(value: datetime) -> Union[int, str]:
    delta = value - EPOCH
    whole = delta.days * 86400 + delta.seconds
    if not delta.microseconds:
        return whole
    return format(Decimal(whole) + Decimal(delta.microseconds) / _MICROS, "f")


def to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in {"true", "false"}:
        return raw.strip().lower() == "true"
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    raise ValueError(f"expected a boolean, got {raw!r}")


def to_ids(raw: Any) -> tuple[int, ...]:
    """Sequence of ids; entries may be bare ids or objects carrying ``id``."""
    if isinstance(raw, (str, bytes, Mapping)) or not hasattr(raw, "__iter__"):
        raise ValueError(f"expected a list of ids, got {type(raw).__name__}")
    ids = []
    for entry in raw:
        if isinstance(entry, Mapping):
            if "id" not in entry:
                raise ValueError("list entry has no 'id'")
            entry = entry["id"]
        ids.append(to_int(entry))
    return tuple(ids)


def to_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (int, Decimal)) and not isinstance(raw, bool):
        return str(raw)
    raise ValueError(f"expected a string, got {type(raw).__name__}")


def to_price_type(raw: Any) -> str:
    value = to_text(raw).strip().upper()
    if value not in {"BID", "ASK"}:
        raise ValueError(f"expected BID or ASK, got {raw!r}")
    return value


_DECODE: dict[FieldKind, Callable[[Any], Any]] = {
    FieldKind.INT: to_int,
    FieldKind.DECIMAL: to_decimal,
    FieldKind.TEXT: to_text,
    FieldKind.INSTRUMENT: canonical_instrument,
    FieldKind.DIRECTION: parse_direction,
    FieldKind.TIME: to_datetime,
    FieldKind.BOOL: to_bool,
    FieldKind.IDS: to_ids,
    FieldKind.PRICE_TYPE: to_price_type,
}


def _encode_value(kind: FieldKind, value: Any, schema: WireSchema) -> Any:
    if kind is FieldKind.DECIMAL:
        return format(value, "f")
    if kind is FieldKind.INSTRUMENT:
        return encode_instrument(value, schema)
    if kind is FieldKind.DIRECTION:
        return encode_direction(value, schema)
    if kind is FieldKind.TIME:
        return from_datetime(value)
    if kind is FieldKind.IDS:
        return list(value)
    return value


# ---------------------------------------------------------------------------
# Record tables
# ---------------------------------------------------------------------------

ACCOUNT_ENTRY = RecordSpec(
    "account",
    Account,
    (
        _f("id", FieldKind.INT, required=True),
        _f("name", FieldKind.TEXT),
        _f("home_currency", FieldKind.TEXT, "homecurr", "homecurr"),
        _f("margin_rate", FieldKind.DECIMAL, "marginRate"),
    ),
)

ACCOUNT_STATUS = RecordSpec(
    "account status",
    Account,
    (
        _f("id", FieldKind.INT, "accountId", "account_id", required=True),
        _f("name", FieldKind.TEXT, "accountName", "account_name"),
        _f("home_currency", FieldKind.TEXT, "homecurr", "homecurr"),
        _f("margin_rate", FieldKind.DECIMAL, "marginRate"),
        _f("balance", FieldKind.DECIMAL),
        _f("nav", FieldKind.DECIMAL),
        _f("margin_used", FieldKind.DECIMAL, "marginUsed"),
        _f("margin_available", FieldKind.DECIMAL, "marginAvail", "margin_avail"),
        _f("open_orders", FieldKind.INT, "openOrders"),
        _f("open_trades", FieldKind.INT, "openTrades"),
        _f("realized_pl", FieldKind.DECIMAL, "realizedPl"),
        _f("unrealized_pl", FieldKind.DECIMAL, "unrealizedPl"),
    ),
)

INSTRUMENT = RecordSpec(
    "instrument",
    Instrument,
    (
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("display_name", FieldKind.TEXT, "displayName"),
        _f("pip", FieldKind.DECIMAL, "pip", "piploc"),
        _f("precision", FieldKind.INT),
        _f("max_trade_units", FieldKind.INT, "maxTradeUnits"),
    ),
)

QUOTE = RecordSpec(
    "quote",
    Quote,
    (
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("bid", FieldKind.DECIMAL, required=True),
        _f("ask", FieldKind.DECIMAL, required=True),
        _f("timestamp", FieldKind.TIME, "time", "time", required=True),
    ),
)

CANDLE = RecordSpec(
    "candle",
    Candle,
    (
        _f("timestamp", FieldKind.TIME, "time", "time", required=True),
        _f("open", FieldKind.DECIMAL, "openMid", "open_mid", required=True),
        _f("high", FieldKind.DECIMAL, "highMid", "high_mid", required=True),
        _f("low", FieldKind.DECIMAL, "lowMid", "low_mid", required=True),
        _f("close", FieldKind.DECIMAL, "closeMid", "close_mid", required=True),
        _f("complete", FieldKind.BOOL, required=True),
    ),
)

TRANSACTION = RecordSpec(
    "transaction",
    Transaction,
    (
        _f("id", FieldKind.INT, required=True),
        _f("account_id", FieldKind.INT, "accountId"),
        _f("type", FieldKind.TEXT, required=True),
        _f("timestamp", FieldKind.TIME, "time", "time", required=True),
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol"),
        _f("amount", FieldKind.DECIMAL),
        _f("balance", FieldKind.DECIMAL),
        _f("units", FieldKind.INT),
        _f("price", FieldKind.DECIMAL),
        _f("profit_loss", FieldKind.DECIMAL, "profitLoss"),
        _f("completion_code", FieldKind.INT, "completionCode"),
        _f("transaction_link", FieldKind.INT, "transactionLink"),
        _f("order_link", FieldKind.INT, "orderLink"),
    ),
)

ORDER = RecordSpec(
    "order",
    Order,
    (
        _f("id", FieldKind.INT, required=True),
        _f("account_id", FieldKind.INT, "accountId"),
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("direction", FieldKind.DIRECTION, "direction", "dir", required=True),
        _f("units", FieldKind.INT, required=True),
        _f("price", FieldKind.DECIMAL, required=True),
        _f("expiry", FieldKind.TIME),
        _f("low_price", FieldKind.DECIMAL, "lowLimit", "low_limit"),
        _f("high_price", FieldKind.DECIMAL, "highLimit", "high_limit"),
        _f("stop_loss", FieldKind.DECIMAL, "stopLoss"),
        _f("take_profit", FieldKind.DECIMAL, "takeProfit"),
        _f("trailing_stop", FieldKind.DECIMAL, "trailingStop"),
        _f("oca_group_id", FieldKind.INT, "ocaGroupId"),
        _f("timestamp", FieldKind.TIME, "time", "time"),
    ),
)

TRADE = RecordSpec(
    "trade",
    Trade,
    (
        _f("id", FieldKind.INT, required=True),
        _f("account_id", FieldKind.INT, "accountId"),
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("direction", FieldKind.DIRECTION, "direction", "dir", required=True),
        _f("units", FieldKind.INT, required=True),
        _f("price", FieldKind.DECIMAL, required=True),
        _f("stop_loss", FieldKind.DECIMAL, "stopLoss"),
        _f("take_profit", FieldKind.DECIMAL, "takeProfit"),
        _f("trailing_stop", FieldKind.DECIMAL, "trailingStop"),
        _f("timestamp", FieldKind.TIME, "time", "time"),
    ),
)

TRADE_OPEN = RecordSpec(
    "trade open",
    TradeOpen,
    (
        _f("ids", FieldKind.IDS, required=True),
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("direction", FieldKind.DIRECTION, "direction", "dir", required=True),
        _f("units", FieldKind.INT, required=True),
        _f("price", FieldKind.DECIMAL, required=True),
        _f("margin_used", FieldKind.DECIMAL, "marginUsed"),
    ),
)

TRADE_CLOSE = RecordSpec(
    "trade close",
    TradeClose,
    (
        _f("id", FieldKind.INT, required=True),
        _f("direction", FieldKind.DIRECTION, "direction", "dir", required=True),
        _f("price", FieldKind.DECIMAL, required=True),
        _f("profit", FieldKind.DECIMAL, required=True),
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol"),
    ),
)

POSITION = RecordSpec(
    "position",
    Position,
    (
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("direction", FieldKind.DIRECTION, "direction", "dir", required=True),
        _f("units", FieldKind.INT, required=True),
        _f("average_price", FieldKind.DECIMAL, "avgPrice", "avg_price", required=True),
    ),
)

POSITION_CLOSE = RecordSpec(
    "position close",
    PositionClose,
    (
        _f("ids", FieldKind.IDS, required=True),
        _f("instrument", FieldKind.INSTRUMENT, "symbol", "symbol", required=True),
        _f("total_units", FieldKind.INT, "total_units", "total_units", required=True),
        _f("price", FieldKind.DECIMAL, required=True),
    ),
)

PRICE_ALERT = RecordSpec(
    "price alert",
    PriceAlert,
    (
        _f("id", FieldKind.INT, required=True),
        _f("instrument", FieldKind.INSTRUMENT, "symbol", "symbol", required=True),
        _f("price", FieldKind.DECIMAL, required=True),
        _f("price_type", FieldKind.PRICE_TYPE, "price_type", "price_type", required=True),
        _f("expiry", FieldKind.TIME),
        _f("timestamp", FieldKind.TIME, "time", "time"),
    ),
)

RATE_LIMIT = RecordSpec(
    "rate limit",
    RateLimit,
    (
        _f("type", FieldKind.TEXT, required=True),
        _f("limit", FieldKind.INT, required=True),
        _f("remaining", FieldKind.INT, required=True),
    ),
)


CANDLES_HEADER = RecordSpec(
    "candles",
    dict,
    (
        _f("instrument", FieldKind.INSTRUMENT, "instrument", "symbol", required=True),
        _f("granularity", FieldKind.TEXT),
    ),
)


@dataclass(frozen=True)
class ListSpec:
    record: RecordSpec
    camel: str
    snake: str
    # Other keys some server generations use for the same list
    aliases: tuple[str, ...] = ()

    def key(self, schema: WireSchema) -> str:
        return self.snake if schema is WireSchema.SNAKE else self.camel


LIST_SHAPES: dict[Shape, ListSpec] = {
    Shape.ACCOUNT_LIST: ListSpec(ACCOUNT_ENTRY, "accounts", "account_list"),
    Shape.INSTRUMENT_LIST: ListSpec(INSTRUMENT, "instruments", "symbols"),
    Shape.QUOTE_LIST: ListSpec(QUOTE, "prices", "prices"),
    Shape.TRANSACTION_LIST: ListSpec(TRANSACTION, "transactions", "transactions"),
    Shape.ORDER_LIST: ListSpec(ORDER, "orders", "orders"),
    Shape.TRADE_LIST: ListSpec(TRADE, "trades", "open_trades"),
    Shape.POSITION_LIST: ListSpec(POSITION, "positions", "open_positions"),
    Shape.PRICE_ALERT_LIST: ListSpec(PRICE_ALERT, "alerts", "open_pricealerts", aliases=("alerts",)),
    Shape.RATE_LIMIT_LIST: ListSpec(RATE_LIMIT, "rate_limits", "rate_limits"),
}

RECORD_SHAPES: dict[Shape, RecordSpec] = {
    Shape.ACCOUNT: ACCOUNT_STATUS,
    Shape.ORDER: ORDER,
    Shape.TRADE: TRADE,
    Shape.TRADE_OPEN: TRADE_OPEN,
    Shape.TRADE_CLOSE: TRADE_CLOSE,
    Shape.POSITION_CLOSE: POSITION_CLOSE,
}

# (entity kind, (created, updated, deleted) keys, watermark key per schema)
CHANGE_SHAPES: dict[Shape, tuple[EntityKind, tuple[str, str, str], tuple[str, str]]] = {
    Shape.ORDER_CHANGES: (EntityKind.ORDER, ("created", "updated", "deleted"), ("maxOrderId", "max_order_id")),
    Shape.TRADE_CHANGES: (EntityKind.TRADE, ("opened", "updated", "closed"), ("maxTradeId", "max_trade_id")),
}

_NEXT_PAGE = ("nextPage", "next_page")
_ACCOUNT_ID = ("accountId", "account_id")


def _pick(pair: tuple[str, str], schema: WireSchema) -> str:
    return pair[1] if schema is WireSchema.SNAKE else pair[0]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def parse_document(payload: Union[bytes, str, Mapping[str, Any]]) -> Mapping[str, Any]:
    """Parse a raw body into a top-level mapping, keeping numbers exact."""
    if isinstance(payload, Mapping):
        return payload
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if not isinstance(payload, str):
        raise ShapeError(f"unsupported payload type: {type(payload).__name__}")
    try:
        document = json.loads(payload, parse_float=Decimal)
    except (ValueError, RecursionError) as e:
        raise ShapeError(f"response body is not JSON: {e}") from e
    if not isinstance(document, Mapping):
        raise ShapeError(f"expected a JSON object, got {type(document).__name__}")
    return document


def _decode_empty(payload: Union[bytes, str, Mapping[str, Any]]) -> None:
    """Acknowledgement bodies carry nothing: empty, ``null`` or any JSON object."""
    if isinstance(payload, Mapping):
        return None
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str) and payload.strip() in ("", "null"):
        return None
    parse_document(payload)
    return None


def decode_record(spec: RecordSpec, item: Any, schema: WireSchema, account_id: Optional[int] = None) -> Any:
    if not isinstance(item, Mapping):
        raise ShapeError(f"{spec.name}: expected an object, got {type(item).__name__}")

    values: dict[str, Any] = {}
    for field in spec.fields:
        key = field.key(schema)
        raw = item.get(key)
        if field.kind is FieldKind.INSTRUMENT and not field.required and isinstance(raw, str) and raw in _NULL_SYMBOLS:
            raw = None
        if raw is None:
            if field.attr == "account_id" and account_id is not None:
                values[field.attr] = account_id
                continue
            if field.required:
                raise ShapeError(f"{spec.name}: missing field {key!r}")
            values[field.attr] = None
            continue
        try:
            values[field.attr] = _DECODE[field.kind](raw)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise ShapeError(f"{spec.name}.{key}: {e}") from e
    return spec.cls(**values)


def _sequence(document: Mapping[str, Any], key: str, what: str) -> list[Any]:
    if key not in document:
        raise ShapeError(f"{what}: missing key {key!r} (got {sorted(document)[:8]})")
    items = document[key]
    if not isinstance(items, list):
        raise ShapeError(f"{what}: {key!r} is not a list")
    return items


def _next_page(document: Mapping[str, Any], schema: WireSchema) -> Optional[str]:
    link = document.get(_pick(_NEXT_PAGE, schema))
    return link if isinstance(link, str) and link else None


def _decode_list(shape: Shape, document: Mapping[str, Any], schema: WireSchema, account_id: Optional[int]) -> Page:
    spec = LIST_SHAPES[shape]
    key = spec.key(schema)
    if key not in document:
        key = next((alias for alias in spec.aliases if alias in document), key)
    items = _sequence(document, key, shape.value)
    return Page(
        items=tuple(decode_record(spec.record, item, schema, account_id) for item in items),
        next_page=_next_page(document, schema),
    )


def _decode_candles(document: Mapping[str, Any], schema: WireSchema) -> CandleSeries:
    header = decode_record(CANDLES_HEADER, document, schema)
    items = _sequence(document, "candles", Shape.CANDLES.value)
    return CandleSeries(
        instrument=header["instrument"],
        granularity=header["granularity"],
        candles=tuple(decode_record(CANDLE, item, schema) for item in items),
    )


def _decode_changes(shape: Shape, document: Mapping[str, Any], schema: WireSchema, account_id: Optional[int]) -> ChangeSet:
    kind, set_keys, watermark_keys = CHANGE_SHAPES[shape]
    watermark_key = _pick(watermark_keys, schema)
    if document.get(watermark_key) is None:
        raise ShapeError(f"{shape.value}: missing key {watermark_key!r}")

    raw_account = document.get(_pick(_ACCOUNT_ID, schema))
    try:
        watermark = to_int(document[watermark_key])
        owner = to_int(raw_account) if raw_account is not None else account_id
        created, updated, deleted = (to_ids(document.get(key) or []) for key in set_keys)
    except (ValueError, TypeError) as e:
        raise ShapeError(f"{shape.value}: {e}") from e
    if owner is None:
        raise ShapeError(f"{shape.value}: no account id in payload or request")
    if watermark < 0:
        raise ShapeError(f"{shape.value}: negative {watermark_key}")

    return ChangeSet(
        account_id=owner,
        kind=kind,
        created=created,
        updated=updated,
        deleted=deleted,
        watermark=watermark,
    )


def decode(
    shape: Shape,
    payload: Union[bytes, str, Mapping[str, Any]],
    *,
    schema: WireSchema = WireSchema.CAMEL,
    account_id: Optional[int] = None,
) -> Any:
    """Decode a 2xx payload into the typed result for ``shape``.

    Args:
        shape: Expected response shape (from the catalog)
        payload: Raw body or an already parsed mapping
        schema: Wire generation the server speaks
        account_id: Owning account from the request, used where the payload
            does not repeat it

    Returns:
        ``Page`` for list shapes, ``ChangeSet`` for poll shapes, ``None`` for
        acknowledgement-only shapes, otherwise the record type of the shape

    Raises:
        ShapeError: If the payload does not match the expected shape
    """
    if shape is Shape.EMPTY:
        return _decode_empty(payload)
    document = parse_document(payload)
    if shape in LIST_SHAPES:
        return _decode_list(shape, document, schema, account_id)
    if shape in RECORD_SHAPES:
        return decode_record(RECORD_SHAPES[shape], document, schema, account_id)
    if shape is Shape.CANDLES:
        return _decode_candles(document, schema)
    if shape in CHANGE_SHAPES:
        return _decode_changes(shape, document, schema, account_id)
    raise ShapeError(f"no decoder for shape {shape!r}")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_record(spec: RecordSpec, record: Any, schema: WireSchema) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for field in spec.fields:
        value = getattr(record, field.attr)
        if value is None:
            continue
        out[field.key(schema)] = _encode_value(field.kind, value, schema)
    return out


def encode(shape: Shape, value: Any, *, schema: WireSchema = WireSchema.CAMEL) -> dict[str, Any]:
    """Wire mapping for a decoded value; ``decode(shape, encode(shape, v)) == v``.

    Decimals are written as strings, the way the server sends prices.
    """
    if shape in LIST_SHAPES:
        spec = LIST_SHAPES[shape]
        out: dict[str, Any] = {spec.key(schema): [encode_record(spec.record, item, schema) for item in value.items]}
        if value.next_page:
            out[_pick(_NEXT_PAGE, schema)] = value.next_page
        return out
    if shape is Shape.EMPTY:
        return {}
    if shape in RECORD_SHAPES:
        return encode_record(RECORD_SHAPES[shape], value, schema)
    if shape is Shape.CANDLES:
        out = {
            _pick(("instrument", "symbol"), schema): encode_instrument(value.instrument, schema),
            "candles": [encode_record(CANDLE, candle, schema) for candle in value.candles],
        }
        if value.granularity is not None:
            out["granularity"] = value.granularity
        return out
    if shape in CHANGE_SHAPES:
        _, set_keys, watermark_keys = CHANGE_SHAPES[shape]
        created_key, updated_key, deleted_key = set_keys
        return {
            _pick(_ACCOUNT_ID, schema): value.account_id,
            created_key: list(value.created),
            updated_key: list(value.updated),
            deleted_key: list(value.deleted),
            _pick(watermark_keys, schema): value.watermark,
        }
    raise ValueError(f"no encoder for shape {shape!r}")
