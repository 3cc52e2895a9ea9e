"""Tests for request building and parameter validation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from fxrest.config import ClientConfig, WireSchema
from fxrest.rest.auth import StaticTokenProvider
from fxrest.rest.builder import RequestBuilder, format_decimal
from fxrest.rest.errors import ValidationError
from fxrest.types import Direction

ACCOUNT_ID = 701048


@pytest.fixture
def builder() -> RequestBuilder:
    return RequestBuilder(ClientConfig(), StaticTokenProvider("tok"))


@pytest.fixture
def snake_builder() -> RequestBuilder:
    return RequestBuilder(ClientConfig(schema=WireSchema.SNAKE), StaticTokenProvider("tok"))


def order_args(**overrides):
    args = {
        "account_id": ACCOUNT_ID,
        "instrument": "EUR_USD",
        "units": 1000,
        "direction": Direction.LONG,
        "price": Decimal("1.37652"),
        "expiry": 1386889200,
    }
    args.update(overrides)
    return args


# ---------------------------------------------------------------------------
# Required and optional parameters
# ---------------------------------------------------------------------------


def test_missing_required_parameter(builder):
    """Test that an absent price fails before a request exists."""
    args = order_args()
    del args["price"]
    with pytest.raises(ValidationError) as exc_info:
        builder.build("order_create", args)
    assert exc_info.value.param == "price"


def test_none_required_parameter_counts_as_missing(builder):
    with pytest.raises(ValidationError, match="missing required"):
        builder.build("order_create", order_args(price=None))


def test_unset_optionals_are_omitted(builder):
    """Test that optional parameters left unset produce no key at all."""
    request = builder.build("order_create", order_args(stop_loss=None))

    assert request.body == {
        "instrument": "EUR_USD",
        "units": "1000",
        "type": "long",
        "price": "1.37652",
        "expiry": "1386889200",
    }
    for key in ("stopLoss", "takeProfit", "trailingStop", "lowPrice", "highPrice"):
        assert key not in request.body


def test_zero_optional_is_sent(builder):
    """Zero is a real override, distinct from not specified."""
    request = builder.build("order_create", order_args(stop_loss=0, take_profit=Decimal("0")))
    assert request.body["stopLoss"] == "0"
    assert request.body["takeProfit"] == "0"


def test_unexpected_parameter(builder):
    with pytest.raises(ValidationError, match="unexpected"):
        builder.build("trade_close", {"account_id": ACCOUNT_ID, "trade_id": 1, "units": 5})


# ---------------------------------------------------------------------------
# Value validation
# ---------------------------------------------------------------------------


def test_decimal_prices_are_exact(builder):
    request = builder.build("order_create", order_args(price=Decimal("0.80443")))
    assert request.body["price"] == "0.80443"

    request = builder.build("order_create", order_args(price="1E-5"))
    assert request.body["price"] == "0.00001"

    request = builder.build("order_create", order_args(price=2))
    assert request.body["price"] == "2"


def test_float_prices_are_rejected(builder):
    with pytest.raises(ValidationError, match="floats"):
        builder.build("order_create", order_args(price=0.80443))


@pytest.mark.parametrize("bad", ["-1.5", Decimal("-0.1"), "abc", Decimal("NaN"), "Infinity", True])
def test_invalid_prices_are_rejected(builder, bad):
    with pytest.raises(ValidationError):
        builder.build("order_create", order_args(price=bad))


@pytest.mark.parametrize("bad", [0, -3, True, "701048", 1.0])
def test_ids_must_be_positive_integers(builder, bad):
    with pytest.raises(ValidationError) as exc_info:
        builder.build("account_status", {"account_id": bad})
    assert exc_info.value.param == "account_id"


def test_count_bounds(builder):
    request = builder.build("order_list", {"account_id": ACCOUNT_ID, "count": 5000})
    assert request.params == {"count": "5000"}

    with pytest.raises(ValidationError):
        builder.build("order_list", {"account_id": ACCOUNT_ID, "count": 5001})
    with pytest.raises(ValidationError):
        builder.build("order_list", {"account_id": ACCOUNT_ID, "count": 0})


def test_watermark_zero_is_valid_but_negative_is_not(builder):
    request = builder.build("order_poll", {"account_id": ACCOUNT_ID, "watermark": 0})
    assert request.params == {"maxOrderId": "0"}

    with pytest.raises(ValidationError):
        builder.build("order_poll", {"account_id": ACCOUNT_ID, "watermark": -1})


def test_bad_instrument_and_direction(builder):
    with pytest.raises(ValidationError) as exc_info:
        builder.build("order_create", order_args(instrument="EURUSD"))
    assert exc_info.value.param == "instrument"

    with pytest.raises(ValidationError) as exc_info:
        builder.build("order_create", order_args(direction="up"))
    assert exc_info.value.param == "direction"


def test_bad_granularity(builder):
    with pytest.raises(ValidationError):
        builder.build("candles", {"instrument": "EUR_USD", "granularity": "X9"})


# ---------------------------------------------------------------------------
# Request layout
# ---------------------------------------------------------------------------


def test_trade_close_request(builder):
    """Test the DELETE request for closing a trade without a price."""
    request = builder.build("trade_close", {"account_id": ACCOUNT_ID, "trade_id": 177809335, "price": None})

    assert request.method == "DELETE"
    assert request.path == "/v1/accounts/701048/trades/177809335"
    assert request.params == {}
    assert request.body is None
    assert request.endpoint == "trade_close"


def test_headers_carry_session_token(builder):
    request = builder.build("instrument_list", {})
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.headers["Accept"] == "application/json"


def test_no_token_no_auth_header():
    builder = RequestBuilder(ClientConfig(), StaticTokenProvider(None))
    request = builder.build("instrument_list", {})
    assert "Authorization" not in request.headers


def test_custom_token_header():
    config = ClientConfig(token_header="X-Session-Token", token_prefix="")
    request = RequestBuilder(config, StaticTokenProvider("tok")).build("rate_limit_list", {})
    assert request.headers["X-Session-Token"] == "tok"


def test_api_version_segment():
    builder = RequestBuilder(ClientConfig(api_version="v2"))
    assert builder.build("rate_limit_list", {}).path == "/v2/rate_limits"


def test_instrument_in_path_is_encoded(builder, snake_builder):
    args = {"account_id": ACCOUNT_ID, "instrument": "eur/usd"}
    assert builder.build("position_close", args).path == "/v1/accounts/701048/positions/EUR_USD"
    assert snake_builder.build("position_close", args).path == "/v1/accounts/701048/positions/EUR%2FUSD"


def test_quote_instrument_list(builder, snake_builder):
    args = {"instruments": ["EUR_USD", "usd/jpy"]}
    assert builder.build("quote", args).params == {"instruments": "EUR_USD,USD_JPY"}
    assert snake_builder.build("quote", args).params == {"symbols": "EUR/USD,USD/JPY"}

    with pytest.raises(ValidationError):
        builder.build("quote", {"instruments": []})


def test_snake_schema_wire_names(snake_builder):
    """Test parameter names and tokens of the older wire generation."""
    request = snake_builder.build(
        "trade_open",
        {"account_id": ACCOUNT_ID, "instrument": "EUR_USD", "units": 10, "direction": "short", "stop_loss": "1.2"},
    )
    assert request.method == "POST"
    assert request.body == {"symbol": "EUR/USD", "units": "10", "type": "sell", "stop_loss": "1.2"}

    request = snake_builder.build("trade_poll", {"account_id": ACCOUNT_ID, "watermark": 42})
    assert request.params == {"max_trade_id": "42"}


def test_format_decimal_never_uses_exponent():
    assert format_decimal(Decimal("1E+3")) == "1000"
    assert format_decimal(Decimal("0.000001")) == "0.000001"
