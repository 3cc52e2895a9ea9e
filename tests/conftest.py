"""Shared test fixtures for pytest.

Provides configs, a mocked transport, canned responses and a client wired
to them. Nothing here touches the network.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional, Union
from unittest.mock import AsyncMock

import pytest

from fxrest.client import TradingClient
from fxrest.config import ClientConfig, WireSchema
from fxrest.ratelimit.budget import RequestBudget
from fxrest.rest.auth import StaticTokenProvider
from fxrest.rest.transport import RawResponse


@pytest.fixture(autouse=True)
def clear_budget_registry():
    """Keep per-host budgets from leaking between tests."""
    RequestBudget.reset_registry()
    yield
    RequestBudget.reset_registry()


@pytest.fixture
def config() -> ClientConfig:
    """Camel-case schema, no token bucket so tests never wait."""
    return ClientConfig(base_url="https://api.test", rate_limit_rpm=None)


@pytest.fixture
def snake_config() -> ClientConfig:
    return ClientConfig(base_url="https://api.test", schema=WireSchema.SNAKE, rate_limit_rpm=None)


@pytest.fixture
def make_response() -> Callable[..., RawResponse]:
    """Factory for ``RawResponse`` objects from a dict or raw text body."""

    def _make(
        status_code: int = 200,
        body: Union[Mapping[str, Any], str, bytes] = b"",
        headers: Optional[Mapping[str, str]] = None,
    ) -> RawResponse:
        if isinstance(body, Mapping):
            raw = json.dumps(body).encode()
        elif isinstance(body, str):
            raw = body.encode()
        else:
            raw = body
        return RawResponse(status_code=status_code, body=raw, headers=dict(headers or {}))

    return _make


@pytest.fixture
def mock_transport() -> AsyncMock:
    """Transport double; set ``send.return_value`` or ``send.side_effect``."""
    transport = AsyncMock()
    transport.send = AsyncMock()
    transport.aclose = AsyncMock()
    return transport


@pytest.fixture
def budget() -> RequestBudget:
    return RequestBudget(max_in_flight=4, rate_limit_rpm=None, name="test")


@pytest.fixture
def client(config: ClientConfig, mock_transport: AsyncMock, budget: RequestBudget) -> TradingClient:
    return TradingClient(
        config,
        transport=mock_transport,
        token_provider=StaticTokenProvider("test-token"),
        budget=budget,
    )


@pytest.fixture
def snake_client(snake_config: ClientConfig, mock_transport: AsyncMock, budget: RequestBudget) -> TradingClient:
    return TradingClient(
        snake_config,
        transport=mock_transport,
        token_provider=StaticTokenProvider("test-token"),
        budget=budget,
    )
