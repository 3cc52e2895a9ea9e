"""Request builder.

Turns a catalog entry plus caller arguments into an ``ApiRequest``. Pure:
no I/O, no clock, no shared state. Every value goes out as a string;
optional parameters the caller did not supply are left out entirely,
because 0 is a meaningful price/units value here and must not be confused
with "not specified".
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote

from fxrest.config import ClientConfig, WireSchema
from fxrest.instruments import (
    canonical_instrument,
    check_granularity,
    encode_direction,
    encode_instrument,
    parse_direction,
)
from fxrest.rest.auth import TokenProvider, build_auth_headers
from fxrest.rest.catalog import MAX_COUNT, Endpoint, Param, ParamKind, lookup
from fxrest.rest.errors import ValidationError
from fxrest.rest.transport import ApiRequest

logger = logging.getLogger(__name__)


def format_decimal(value: Decimal) -> str:
    """Plain positional notation, never exponent form.

    Example:
        >>> format_decimal(Decimal("0.80443"))
        '0.80443'
        >>> format_decimal(Decimal("1E-5"))
        '0.00001'
    """
    return format(value, "f")


def _require_int(param: Param, value: Any, *, minimum: int, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{param.name} must be an integer, got {type(value).__name__}", param.name)
    if value < minimum:
        raise ValidationError(f"{param.name} must be >= {minimum}, got {value}", param.name)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{param.name} must be <= {maximum}, got {value}", param.name)
    return value


def to_decimal(param: Param, value: Any) -> Decimal:
    """Coerce a price-like argument to ``Decimal`` without passing through float."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(
            f"{param.name} must be Decimal, int or numeric str (floats lose precision)", param.name
        )
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, str)):
        try:
            number = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise ValidationError(f"{param.name} is not a number: {value!r}", param.name) from None
    else:
        raise ValidationError(f"{param.name} must be Decimal, int or numeric str", param.name)

    if not number.is_finite():
        raise ValidationError(f"{param.name} must be finite", param.name)
    if number < 0:
        raise ValidationError(f"{param.name} must not be negative", param.name)
    return number


def _encode_instrument_list(param: Param, value: Any, schema: WireSchema) -> str:
    if isinstance(value, str):
        symbols = [s for s in value.split(",") if s.strip()]
    else:
        try:
            symbols = list(value)
        except TypeError:
            raise ValidationError(f"{param.name} must be a sequence of symbols", param.name) from None
    if not symbols:
        raise ValidationError(f"{param.name} must not be empty", param.name)
    try:
        return ",".join(encode_instrument(s, schema) for s in symbols)
    except ValueError as e:
        raise ValidationError(f"{param.name}: {e}", param.name) from e


def serialize_param(param: Param, value: Any, schema: WireSchema) -> str:
    """Validate one argument and return its wire string."""
    kind = param.kind
    if kind is ParamKind.ID or kind is ParamKind.POSITIVE_INT:
        return str(_require_int(param, value, minimum=1))
    if kind is ParamKind.WATERMARK:
        return str(_require_int(param, value, minimum=0))
    if kind is ParamKind.COUNT:
        return str(_require_int(param, value, minimum=1, maximum=MAX_COUNT))
    if kind is ParamKind.DECIMAL:
        return format_decimal(to_decimal(param, value))
    if kind is ParamKind.TEXT:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{param.name} must be a non-empty string", param.name)
        return value.strip()

    try:
        if kind is ParamKind.INSTRUMENT:
            return encode_instrument(canonical_instrument(value), schema)
        if kind is ParamKind.DIRECTION:
            return encode_direction(parse_direction(value), schema, for_request=True)
        if kind is ParamKind.GRANULARITY:
            return check_granularity(value)
    except ValueError as e:
        raise ValidationError(f"{param.name}: {e}", param.name) from e

    if kind is ParamKind.INSTRUMENT_LIST:
        return _encode_instrument_list(param, value, schema)
    raise ValidationError(f"unsupported parameter kind for {param.name}: {kind}", param.name)


class RequestBuilder:
    """Builds transport-ready requests for one schema and API version."""

    def __init__(self, config: ClientConfig, token_provider: Optional[TokenProvider] = None) -> None:
        self.config = config
        self.token_provider = token_provider

    def _headers(self) -> dict[str, str]:
        token = self.token_provider.session_token() if self.token_provider is not None else None
        headers = {"Accept": "application/json"}
        headers.update(
            build_auth_headers(token, header=self.config.token_header, prefix=self.config.token_prefix)
        )
        return headers

    def build(self, endpoint: Union[Endpoint, str], args: Mapping[str, Any]) -> ApiRequest:
        """Validate ``args`` against ``endpoint`` and build the request.

        Args:
            endpoint: Catalog entry or operation name
            args: Caller arguments keyed by Python parameter name; ``None``
                means "not supplied"

        Returns:
            ApiRequest ready for a transport

        Raises:
            ValidationError: Unknown operation, unexpected argument, missing
                required argument, or malformed value
        """
        if isinstance(endpoint, str):
            endpoint = lookup(endpoint)
        schema = self.config.schema

        known = {p.name for p in endpoint.required + endpoint.optional}
        unexpected = sorted(set(args) - known)
        if unexpected:
            raise ValidationError(f"{endpoint.name}: unexpected parameter(s): {', '.join(unexpected)}", unexpected[0])

        missing = [p.name for p in endpoint.required if args.get(p.name) is None]
        if missing:
            raise ValidationError(f"{endpoint.name}: missing required parameter(s): {', '.join(missing)}", missing[0])

        path_values: dict[str, str] = {}
        wire: dict[str, str] = {}
        for param in endpoint.required + endpoint.optional:
            value = args.get(param.name)
            if value is None:
                continue
            encoded = serialize_param(param, value, schema)
            if param.name in endpoint.path_params:
                path_values[param.name] = quote(encoded, safe="")
            else:
                wire[param.wire_name(schema)] = encoded

        path = f"/{self.config.api_version}" + endpoint.path.format(**path_values)
        request = ApiRequest(
            endpoint=endpoint.name,
            method=endpoint.method,
            path=path,
            params={} if endpoint.sends_body else wire,
            body=wire if endpoint.sends_body else None,
            headers=self._headers(),
        )
        logger.debug("Built %s %s for %s (%d params)", request.method, request.path, endpoint.name, len(wire))
        return request

