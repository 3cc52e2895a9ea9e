"""Error taxonomy and normalisation.

Every failure that happens after a request has been built ends up as one
``ErrorInfo`` inside an ``ApiResult``; only ``ValidationError`` is raised
to the caller, and only before anything touches the network.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Generic, Optional, TypeVar

import httpx

if TYPE_CHECKING:
    from fxrest.rest.transport import RawResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

BODY_EXCERPT_CHARS = 200

# ---------------------------------------------------------------------------
# Error records
# ---------------------------------------------------------------------------


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    API = "api"
    SHAPE = "shape"


@dataclass(frozen=True)
class ErrorInfo:
    """Structured description of a failed call.

    ``code`` is the platform's application error code, which may or may not
    equal the HTTP status. ``http_status_code`` is absent for transport
    failures.
    """

    kind: ErrorKind
    message: str
    code: Optional[int] = None
    http_status_code: Optional[int] = None
    cause: Optional[BaseException] = None
    raw_body: Optional[str] = None

    @property
    def is_transient(self) -> bool:
        """Whether a caller-side retry has a reasonable chance of succeeding."""
        if self.kind is ErrorKind.TRANSPORT:
            return True
        if self.kind is ErrorKind.API and self.http_status_code is not None:
            return self.http_status_code == 429 or 500 <= self.http_status_code < 600
        return False


class ClientError(Exception):
    """Base exception for the client."""


class ValidationError(ClientError):
    """A required argument is missing or an argument is malformed."""

    def __init__(self, message: str, param: Optional[str] = None):
        super().__init__(message)
        self.param = param


class ShapeError(ClientError):
    """A 2xx body does not have the shape the operation expects."""


class TransportError(ClientError):
    """The request never produced an HTTP response (timeout, DNS, refused...)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ApiError(ClientError):
    """Raised by ``ApiResult.unwrap()`` for a failed result."""

    def __init__(self, info: ErrorInfo):
        super().__init__(f"{info.kind.value}: {info.message}")
        self.info = info


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Outcome of one call: a value or an ``ErrorInfo``, never both."""

    value: Optional[T] = None
    error: Optional[ErrorInfo] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("ApiResult cannot carry both a value and an error")

    @classmethod
    def success(cls, value: T) -> "ApiResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorInfo) -> "ApiResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise ApiError(self.error)
        return self.value  # type: ignore[return-value]

    def map(self, func: Callable[[T], U]) -> "ApiResult[U]":
        if self.error is not None:
            return ApiResult(error=self.error)
        return ApiResult(value=func(self.value))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def _excerpt(text: str) -> str:
    return text[:BODY_EXCERPT_CHARS]


def from_transport_failure(exc: BaseException) -> ErrorInfo:
    """Map an exception raised while sending into a TRANSPORT error."""
    if isinstance(exc, TransportError):
        return ErrorInfo(kind=ErrorKind.TRANSPORT, message=str(exc), cause=exc.cause or exc)
    if isinstance(exc, httpx.TimeoutException):
        return ErrorInfo(kind=ErrorKind.TRANSPORT, message=f"request timed out: {exc}", cause=exc)
    if isinstance(exc, (httpx.TransportError, OSError)):
        return ErrorInfo(kind=ErrorKind.TRANSPORT, message=f"network error: {exc}", cause=exc)
    logger.error("Unexpected transport failure: %r", exc)
    return ErrorInfo(kind=ErrorKind.TRANSPORT, message=f"unexpected transport failure: {exc}", cause=exc)


def from_http_response(status_code: int, body: str) -> ErrorInfo:
    """Map a non-2xx response into an API error.

    A decodable ``{"code": ..., "message": ...}`` body is relayed exactly;
    anything else keeps the status and an excerpt of the raw body.
    """
    parsed: Any = None
    if body and body.strip():
        try:
            parsed = json.loads(body, parse_float=Decimal)
        except (ValueError, RecursionError):
            parsed = None

    if isinstance(parsed, dict) and isinstance(parsed.get("message"), str):
        code = parsed.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            code = None
        return ErrorInfo(
            kind=ErrorKind.API,
            message=parsed["message"],
            code=code,
            http_status_code=status_code,
            raw_body=_excerpt(body),
        )

    message = _excerpt(body) if body and body.strip() else f"HTTP {status_code}"
    return ErrorInfo(
        kind=ErrorKind.API,
        message=message,
        http_status_code=status_code,
        raw_body=_excerpt(body) if body else None,
    )


def normalize(outcome: "RawResponse | BaseException", decode: Callable[["RawResponse"], T]) -> ApiResult[T]:
    """Turn a transport outcome into exactly one ``ApiResult``.

    Args:
        outcome: The response, or the exception the transport raised
        decode: Shape-specific decoder applied to 2xx responses; it signals
            a mismatch by raising ``ShapeError``

    Returns:
        ``ApiResult`` with either the decoded value or a single ``ErrorInfo``
    """
    if isinstance(outcome, BaseException):
        return ApiResult.failure(from_transport_failure(outcome))

    if not outcome.ok:
        return ApiResult.failure(from_http_response(outcome.status_code, outcome.text))

    try:
        return ApiResult.success(decode(outcome))
    except ShapeError as exc:
        return ApiResult.failure(
            ErrorInfo(
                kind=ErrorKind.SHAPE,
                message=str(exc),
                http_status_code=outcome.status_code,
                cause=exc,
                raw_body=_excerpt(outcome.text),
            )
        )
