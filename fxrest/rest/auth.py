"""
Session Token Injection
=======================

The client does not log in, refresh or store credentials. It asks a token
provider for the current session token on every request and places it in a
header.

Security:
- Never logs the token
- Tokens are read at request time, so a provider may rotate them freely
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

DEFAULT_TOKEN_ENV = "FXREST_SESSION_TOKEN"


class TokenProvider(Protocol):
    def session_token(self) -> Optional[str]:
        """Current session token, or ``None`` when no session is established."""


@dataclass(frozen=True)
class StaticTokenProvider:
    """Fixed token, e.g. for tests or short-lived scripts."""

    token: Optional[str] = field(default=None, repr=False)

    def session_token(self) -> Optional[str]:
        return self.token


@dataclass(frozen=True)
class EnvTokenProvider:
    """Reads the token from an environment variable on every call."""

    env_var: str = DEFAULT_TOKEN_ENV

    def session_token(self) -> Optional[str]:
        return os.environ.get(self.env_var) or None


def build_auth_headers(token: Optional[str], *, header: str = "Authorization", prefix: str = "Bearer") -> Dict[str, str]:
    """
    Build the session header for a request.

    Args:
        token: Session token (must not be logged); ``None`` yields no header
        header: Header name
        prefix: Scheme placed before the token; empty string for a bare token

    Returns:
        Dict with zero or one header

    Example:
        >>> build_auth_headers("abc")
        {'Authorization': 'Bearer abc'}
        >>> build_auth_headers("abc", header="X-Session-Token", prefix="")
        {'X-Session-Token': 'abc'}
        >>> build_auth_headers(None)
        {}
    """
    if not token:
        return {}
    value = f"{prefix} {token}" if prefix else token
    return {header: value}
