"""Transport boundary.

The client hands a fully built ``ApiRequest`` to a transport and gets back a
``RawResponse`` (any status code) or a ``TransportError``. Connection
pooling, TLS and socket-level retries belong to the transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

import httpx

from fxrest.rest.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiRequest:
    """Transport-ready request. ``body`` is form-encoded when present."""

    endpoint: str
    method: str
    path: str
    params: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Mapping[str, str]] = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Transport(Protocol):
    """What the client needs from an HTTP stack."""

    async def send(self, request: ApiRequest) -> RawResponse:
        """Send the request; raise ``TransportError`` if no response arrives."""

    async def aclose(self) -> None:
        """Release connections."""


class HttpxTransport:
    """``Transport`` backed by a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.user_agent:
                headers["User-Agent"] = self.user_agent
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout_seconds),
            )
        return self._client

    async def send(self, request: ApiRequest) -> RawResponse:
        client = await self._get_client()
        try:
            resp = await client.request(
                request.method,
                request.path,
                params=dict(request.params) or None,
                data=dict(request.body) if request.body is not None else None,
                headers=dict(request.headers),
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"{request.method} {request.path} timed out: {e}", cause=e) from e
        except httpx.TransportError as e:
            raise TransportError(f"{request.method} {request.path} network error: {e}", cause=e) from e

        logger.debug("%s %s -> %d (%d bytes)", request.method, request.path, resp.status_code, len(resp.content))
        return RawResponse(
            status_code=resp.status_code,
            body=resp.content,
            headers={k.lower(): v for k, v in resp.headers.items()},
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
