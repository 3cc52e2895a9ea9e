"""Asynchronous client core for a forex trading platform REST API.

Submodules:
- rest: endpoint catalog, request builder, response codec, errors, transport
- ratelimit: shared request budget and server-reported limiter counters
- sync: order/trade change polling with caller-owned watermarks
- client: the ``TradingClient`` facade
"""

from fxrest.client import TradingClient
from fxrest.config import ClientConfig, WireSchema
from fxrest.rest.errors import ApiError, ApiResult, ErrorInfo, ErrorKind, ValidationError
from fxrest.sync.poller import PollSession, poll_changes

__all__ = [
    "ApiError",
    "ApiResult",
    "ClientConfig",
    "ErrorInfo",
    "ErrorKind",
    "PollSession",
    "TradingClient",
    "ValidationError",
    "WireSchema",
    "poll_changes",
]
