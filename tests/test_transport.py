"""Tests for the httpx-backed transport using ``httpx.MockTransport``."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from fxrest.rest.errors import TransportError
from fxrest.rest.transport import ApiRequest, HttpxTransport


def make_transport(handler) -> tuple[HttpxTransport, httpx.AsyncClient]:
    client = httpx.AsyncClient(base_url="https://api.test", transport=httpx.MockTransport(handler))
    return HttpxTransport("https://api.test", client=client), client


@pytest.mark.asyncio
async def test_get_sends_query_params_and_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"orders": []}, headers={"X-RateLimit-Remaining": "99"})

    transport, _ = make_transport(handler)
    response = await transport.send(
        ApiRequest(
            endpoint="order_list",
            method="GET",
            path="/v1/accounts/701048/orders",
            params={"count": "50"},
            headers={"Authorization": "Bearer tok"},
        )
    )

    assert response.ok
    assert response.status_code == 200
    assert response.headers["x-ratelimit-remaining"] == "99"
    assert b'"orders"' in response.body

    sent = seen[0]
    assert sent.method == "GET"
    assert sent.url.path == "/v1/accounts/701048/orders"
    assert sent.url.params["count"] == "50"
    assert sent.headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_post_sends_form_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 1})

    transport, _ = make_transport(handler)
    await transport.send(
        ApiRequest(
            endpoint="trade_open",
            method="POST",
            path="/v1/accounts/701048/trades",
            body={"instrument": "EUR_USD", "units": "10", "stopLoss": "0"},
        )
    )

    sent = seen[0]
    assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(sent.content.decode()) == {"instrument": ["EUR_USD"], "units": ["10"], "stopLoss": ["0"]}
    assert not sent.url.params


@pytest.mark.asyncio
async def test_error_status_is_returned_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"code": 20, "message": "Trade not found"})

    transport, _ = make_transport(handler)
    response = await transport.send(ApiRequest(endpoint="trade_close", method="DELETE", path="/v1/accounts/1/trades/2"))

    assert not response.ok
    assert response.status_code == 404
    assert "Trade not found" in response.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc,fragment",
    [
        (httpx.ConnectTimeout("timed out"), "timed out"),
        (httpx.ConnectError("connection refused"), "network error"),
    ],
)
async def test_network_failures_raise_transport_error(exc, fragment):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    transport, _ = make_transport(handler)
    with pytest.raises(TransportError, match=fragment) as exc_info:
        await transport.send(ApiRequest(endpoint="rate_limit_list", method="GET", path="/v1/rate_limits"))
    assert exc_info.value.cause is exc


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    transport, client = make_transport(lambda request: httpx.Response(200))
    await transport.aclose()
    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_aclose_closes_owned_client():
    transport = HttpxTransport("https://api.test", user_agent="fxrest-tests")
    client = await transport._get_client()
    assert client.headers["User-Agent"] == "fxrest-tests"

    await transport.aclose()
    assert client.is_closed
    assert transport._client is None
