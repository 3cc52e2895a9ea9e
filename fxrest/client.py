"""Client facade.

Every operation validates and builds its request as soon as it is called,
raising ``ValidationError`` right there, and returns an awaitable that
resolves to an ``ApiResult``. Awaiting never raises for transport, API or
shape failures; cancelling the awaiting task cancels the transport call and
yields no result.

Example:
    async with TradingClient(ClientConfig.from_env()) as client:
        result = await client.close_trade(701048, 177809335)
        if result.ok:
            print(result.value.profit)
        else:
            print(result.error.kind, result.error.message)
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Awaitable, Iterable, Optional, Union

from fxrest.config import ClientConfig
from fxrest.ratelimit.budget import RequestBudget
from fxrest.ratelimit.tracker import RateLimitTracker
from fxrest.rest.auth import EnvTokenProvider, TokenProvider
from fxrest.rest.builder import RequestBuilder
from fxrest.rest.catalog import Endpoint, Shape, lookup
from fxrest.rest.codec import decode
from fxrest.rest.errors import ApiResult, ErrorKind, normalize
from fxrest.rest.transport import ApiRequest, HttpxTransport, RawResponse, Transport
from fxrest.sync.poller import poll_changes
from fxrest.types import (
    Account,
    CandleSeries,
    ChangeSet,
    Direction,
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

logger = logging.getLogger(__name__)

Price = Union[Decimal, int, str]


class TradingClient:
    """Asynchronous facade over the trading REST API."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[Transport] = None,
        token_provider: Optional[TokenProvider] = None,
        budget: Optional[RequestBudget] = None,
        tracker: Optional[RateLimitTracker] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.token_provider = token_provider if token_provider is not None else EnvTokenProvider()
        self.builder = RequestBuilder(self.config, self.token_provider)
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport(
            self.config.base_url,
            timeout_seconds=self.config.timeout_seconds,
            user_agent=self.config.user_agent,
        )
        self.budget = budget or RequestBudget.for_host(
            self.config.base_url,
            max_in_flight=self.config.max_in_flight,
            rate_limit_rpm=self.config.rate_limit_rpm,
        )
        self.tracker = tracker or RateLimitTracker()

    # ------------------------------------------------------------------
    # Generic dispatch
    # ------------------------------------------------------------------

    def call(self, operation: str, **args: Any) -> Awaitable[ApiResult[Any]]:
        """Build ``operation`` from ``args`` and return the pending result.

        Raises:
            ValidationError: Before anything is sent, for an unknown operation
                or a missing or malformed argument
        """
        endpoint = lookup(operation)
        request = self.builder.build(endpoint, args)
        return self._dispatch(endpoint, request, args.get("account_id"))

    async def _dispatch(self, endpoint: Endpoint, request: ApiRequest, account_id: Optional[int]) -> ApiResult[Any]:
        logger.debug("Dispatching %s %s", request.method, request.path)
        outcome: Union[RawResponse, BaseException]
        try:
            async with self.budget.slot():
                outcome = await self.transport.send(request)
        except Exception as exc:
            outcome = exc

        if isinstance(outcome, RawResponse):
            self.tracker.update_from_headers(outcome.headers)

        result = normalize(
            outcome,
            lambda response: decode(
                endpoint.shape,
                response.body,
                schema=self.config.schema,
                account_id=account_id,
            ),
        )

        if result.error is not None:
            error = result.error
            log = logger.error if error.kind is ErrorKind.TRANSPORT else logger.warning
            log(
                "%s failed (%s, http=%s, code=%s): %s",
                endpoint.name,
                error.kind.value,
                error.http_status_code,
                error.code,
                error.message,
            )
        elif endpoint.shape is Shape.RATE_LIMIT_LIST:
            self.tracker.record_all(result.value)
        return result

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_accounts(self, username: str) -> Awaitable[ApiResult[Page[Account]]]:
        return self.call("account_list", username=username)

    def get_account(self, account_id: int) -> Awaitable[ApiResult[Account]]:
        return self.call("account_status", account_id=account_id)

    # ------------------------------------------------------------------
    # Rates
    # ------------------------------------------------------------------

    def list_instruments(self) -> Awaitable[ApiResult[Page[Instrument]]]:
        return self.call("instrument_list")

    def get_quotes(self, instruments: Union[str, Iterable[str]]) -> Awaitable[ApiResult[Page[Quote]]]:
        """Current bid/ask for one or more instruments."""
        return self.call("quote", instruments=instruments)

    def get_candles(
        self,
        instrument: str,
        *,
        granularity: Optional[str] = None,
        count: Optional[int] = None,
        markup_group_id: Optional[int] = None,
    ) -> Awaitable[ApiResult[CandleSeries]]:
        """Mid-price candles; the server defaults to 500 S5 candles."""
        return self.call(
            "candles",
            instrument=instrument,
            granularity=granularity,
            count=count,
            markup_group_id=markup_group_id,
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def list_transactions(
        self,
        account_id: int,
        *,
        max_transaction_id: Optional[int] = None,
        count: Optional[int] = None,
    ) -> Awaitable[ApiResult[Page[Transaction]]]:
        return self.call(
            "transaction_list",
            account_id=account_id,
            max_transaction_id=max_transaction_id,
            count=count,
        )

    def list_positions(self, account_id: int) -> Awaitable[ApiResult[Page[Position]]]:
        return self.call("position_list", account_id=account_id)

    def list_price_alerts(self, account_id: int) -> Awaitable[ApiResult[Page[PriceAlert]]]:
        return self.call("price_alert_list", account_id=account_id)

    def list_rate_limits(self) -> Awaitable[ApiResult[Page[RateLimit]]]:
        """Server limiter counters; successful results also feed ``self.tracker``."""
        return self.call("rate_limit_list")

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def close_position(
        self, account_id: int, instrument: str, *, price: Optional[Price] = None
    ) -> Awaitable[ApiResult[PositionClose]]:
        return self.call("position_close", account_id=account_id, instrument=instrument, price=price)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def list_orders(
        self,
        account_id: int,
        *,
        max_order_id: Optional[int] = None,
        count: Optional[int] = None,
    ) -> Awaitable[ApiResult[Page[Order]]]:
        return self.call("order_list", account_id=account_id, max_order_id=max_order_id, count=count)

    def create_order(
        self,
        account_id: int,
        instrument: str,
        units: int,
        direction: Union[Direction, str],
        price: Price,
        expiry: int,
        *,
        low_price: Optional[Price] = None,
        high_price: Optional[Price] = None,
        stop_loss: Optional[Price] = None,
        take_profit: Optional[Price] = None,
        trailing_stop: Optional[Price] = None,
    ) -> Awaitable[ApiResult[Order]]:
        """Place a limit order.

        Args:
            account_id: Owning account
            instrument: Symbol in either form, e.g. ``EUR_USD`` or ``EUR/USD``
            units: Positive number of units
            direction: ``Direction`` or a long/short token
            price: Limit price as ``Decimal``, int or numeric string
            expiry: Seconds from now until the order is cancelled
            low_price: Lower execution bound; ``None`` leaves it out
            high_price: Upper execution bound; ``None`` leaves it out
            stop_loss: ``None`` leaves it out; 0 is sent as 0
            take_profit: ``None`` leaves it out; 0 is sent as 0
            trailing_stop: ``None`` leaves it out; 0 is sent as 0
        """
        return self.call(
            "order_create",
            account_id=account_id,
            instrument=instrument,
            units=units,
            direction=direction,
            price=price,
            expiry=expiry,
            low_price=low_price,
            high_price=high_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            trailing_stop=trailing_stop,
        )

    def change_order(
        self,
        account_id: int,
        order_id: int,
        instrument: str,
        units: int,
        direction: Union[Direction, str],
        price: Price,
        expiry: int,
        *,
        low_price: Optional[Price] = None,
        high_price: Optional[Price] = None,
        stop_loss: Optional[Price] = None,
        take_profit: Optional[Price] = None,
        trailing_stop: Optional[Price] = None,
    ) -> Awaitable[ApiResult[None]]:
        """Replace a pending order. The server acknowledges without a body."""
        return self.call(
            "order_change",
            account_id=account_id,
            order_id=order_id,
            instrument=instrument,
            units=units,
            direction=direction,
            price=price,
            expiry=expiry,
            low_price=low_price,
            high_price=high_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            trailing_stop=trailing_stop,
        )

    def delete_order(self, account_id: int, order_id: int) -> Awaitable[ApiResult[Order]]:
        return self.call("order_delete", account_id=account_id, order_id=order_id)

    def poll_orders(self, account_id: int, watermark: int = 0) -> Awaitable[ApiResult[ChangeSet]]:
        """Order changes since ``watermark`` (0 for the whole history)."""
        return poll_changes(self, account_id, EntityKind.ORDER, watermark)

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def list_trades(
        self,
        account_id: int,
        *,
        max_trade_id: Optional[int] = None,
        count: Optional[int] = None,
    ) -> Awaitable[ApiResult[Page[Trade]]]:
        return self.call("trade_list", account_id=account_id, max_trade_id=max_trade_id, count=count)

    def open_trade(
        self,
        account_id: int,
        instrument: str,
        units: int,
        *,
        direction: Optional[Union[Direction, str]] = None,
        price: Optional[Price] = None,
        low_price: Optional[Price] = None,
        high_price: Optional[Price] = None,
        stop_loss: Optional[Price] = None,
        take_profit: Optional[Price] = None,
        trailing_stop: Optional[Price] = None,
    ) -> Awaitable[ApiResult[TradeOpen]]:
        """Open a market trade; the fill may be split across several trade ids."""
        return self.call(
            "trade_open",
            account_id=account_id,
            instrument=instrument,
            units=units,
            direction=direction,
            price=price,
            low_price=low_price,
            high_price=high_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            trailing_stop=trailing_stop,
        )

    def change_trade(
        self,
        account_id: int,
        trade_id: int,
        *,
        stop_loss: Optional[Price] = None,
        take_profit: Optional[Price] = None,
        trailing_stop: Optional[Price] = None,
    ) -> Awaitable[ApiResult[None]]:
        """Move the risk settings of an open trade; the value is ``None``."""
        return self.call(
            "trade_change",
            account_id=account_id,
            trade_id=trade_id,
            stop_loss=stop_loss,
            take_profit=take_profit,
            trailing_stop=trailing_stop,
        )

    def close_trade(
        self, account_id: int, trade_id: int, *, price: Optional[Price] = None
    ) -> Awaitable[ApiResult[TradeClose]]:
        return self.call("trade_close", account_id=account_id, trade_id=trade_id, price=price)

    def poll_trades(self, account_id: int, watermark: int = 0) -> Awaitable[ApiResult[ChangeSet]]:
        """Trade changes since ``watermark`` (0 for the whole history)."""
        return poll_changes(self, account_id, EntityKind.TRADE, watermark)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self.transport.aclose()

    async def __aenter__(self) -> "TradingClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
