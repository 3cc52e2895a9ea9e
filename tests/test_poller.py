"""Tests for change polling and poll sessions."""

from __future__ import annotations

import logging

import pytest

from fxrest.rest.errors import ErrorKind, TransportError, ValidationError
from fxrest.sync.poller import PollSession, poll_changes
from fxrest.types import EntityKind

ACCOUNT_ID = 701048


def order_changes(created=(), updated=(), deleted=(), watermark=0):
    return {"created": list(created), "updated": list(updated), "deleted": list(deleted), "maxOrderId": watermark}


@pytest.mark.asyncio
async def test_poll_from_zero_is_idempotent(client, mock_transport, make_response):
    """Test that polling twice at watermark 0 with no server changes returns the same result."""
    body = order_changes(created=[175427639, 175427640], updated=[175427639], watermark=175427640)
    mock_transport.send.return_value = make_response(200, body)

    first = await poll_changes(client, ACCOUNT_ID, EntityKind.ORDER, 0)
    second = await poll_changes(client, ACCOUNT_ID, EntityKind.ORDER, 0)

    assert first.ok and second.ok
    assert first.value == second.value
    assert first.value.created == (175427639, 175427640)
    assert first.value.watermark == 175427640

    request = mock_transport.send.call_args.args[0]
    assert request.path == "/v1/accounts/701048/orders/changes"
    assert request.params == {"maxOrderId": "0"}


@pytest.mark.asyncio
async def test_server_watermark_below_supplied_is_clamped(client, mock_transport, make_response, caplog):
    mock_transport.send.return_value = make_response(200, order_changes(watermark=5))

    with caplog.at_level(logging.WARNING, logger="fxrest.sync.poller"):
        result = await poll_changes(client, ACCOUNT_ID, "order", 10)

    assert result.value.watermark == 10
    assert any("below the supplied" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_trade_poll_uses_trade_endpoint(snake_client, mock_transport, make_response):
    body = {"opened": [9], "updated": [], "closed": [4], "max_trade_id": 9}
    mock_transport.send.return_value = make_response(200, body)

    result = await poll_changes(snake_client, ACCOUNT_ID, EntityKind.TRADE, 3)

    assert result.value.kind is EntityKind.TRADE
    assert result.value.created == (9,)
    assert result.value.deleted == (4,)
    request = mock_transport.send.call_args.args[0]
    assert request.path == "/v1/accounts/701048/trades/changes"
    assert request.params == {"max_trade_id": "3"}


def test_invalid_arguments_fail_before_sending(client, mock_transport):
    with pytest.raises(ValidationError):
        poll_changes(client, ACCOUNT_ID, "position", 0)
    with pytest.raises(ValidationError):
        poll_changes(client, ACCOUNT_ID, EntityKind.ORDER, -1)
    with pytest.raises(ValidationError):
        poll_changes(client, 0, EntityKind.ORDER, 0)

    mock_transport.send.assert_not_called()


# ---------------------------------------------------------------------------
# PollSession
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_session_advances_watermark(client, mock_transport, make_response):
    mock_transport.send.side_effect = [
        make_response(200, order_changes(created=[1, 2, 3], watermark=3)),
        make_response(200, order_changes(created=[7], deleted=[2], watermark=7)),
    ]
    session = PollSession(client, ACCOUNT_ID, EntityKind.ORDER)

    await session.poll()
    assert session.watermark == 3
    await session.poll()
    assert session.watermark == 7
    assert session.last_changes.deleted == (2,)

    second_request = mock_transport.send.call_args_list[1].args[0]
    assert second_request.params == {"maxOrderId": "3"}


@pytest.mark.asyncio
async def test_session_watermark_never_decreases(client, mock_transport, make_response):
    """Test monotonicity across a sequence of successful polls."""
    mock_transport.send.side_effect = [
        make_response(200, order_changes(watermark=12)),
        make_response(200, order_changes(watermark=4)),
        make_response(200, order_changes(watermark=12)),
        make_response(200, order_changes(watermark=20)),
    ]
    session = PollSession(client, ACCOUNT_ID, EntityKind.ORDER, watermark=8)

    seen = [session.watermark]
    for _ in range(4):
        result = await session.poll()
        assert result.ok
        seen.append(session.watermark)

    assert seen == sorted(seen)
    assert seen[-1] == 20


@pytest.mark.asyncio
async def test_session_keeps_watermark_on_failure(client, mock_transport, make_response):
    mock_transport.send.side_effect = [
        TransportError("connection refused"),
        make_response(500, '{"code": 1, "message": "Internal error"}'),
    ]
    session = PollSession(client, ACCOUNT_ID, EntityKind.TRADE, watermark=42)

    result = await session.poll()
    assert result.error.kind is ErrorKind.TRANSPORT
    assert session.watermark == 42

    result = await session.poll()
    assert result.error.kind is ErrorKind.API
    assert session.watermark == 42
    assert session.last_changes is None


def test_session_rejects_bad_start(client):
    with pytest.raises(ValidationError):
        PollSession(client, ACCOUNT_ID, EntityKind.ORDER, watermark=-5)
    with pytest.raises(ValidationError):
        PollSession(client, ACCOUNT_ID, "fill")


def test_session_state(client):
    session = PollSession(client, ACCOUNT_ID, "trade", watermark=11)
    assert session.state() == {"account_id": ACCOUNT_ID, "kind": "trade", "watermark": 11}
