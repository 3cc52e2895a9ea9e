"""REST layer: catalog, request building, decoding and error normalisation."""

from fxrest.rest.builder import RequestBuilder
from fxrest.rest.catalog import CATALOG, Endpoint, Shape, lookup
from fxrest.rest.codec import decode, encode
from fxrest.rest.errors import ApiResult, ErrorInfo, ErrorKind, ShapeError, TransportError, ValidationError, normalize
from fxrest.rest.transport import ApiRequest, HttpxTransport, RawResponse, Transport

__all__ = [
    "ApiRequest",
    "ApiResult",
    "CATALOG",
    "Endpoint",
    "ErrorInfo",
    "ErrorKind",
    "HttpxTransport",
    "RawResponse",
    "RequestBuilder",
    "Shape",
    "ShapeError",
    "Transport",
    "TransportError",
    "ValidationError",
    "decode",
    "encode",
    "lookup",
    "normalize",
]
