"""ht auth - credentials from --auth / --auth-type or the config file."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Union

from ht.core import resolve_value

AUTH_BASIC = "basic"
AUTH_BEARER = "bearer"
AUTH_TYPES = (AUTH_BASIC, AUTH_BEARER)


@dataclass(frozen=True)
class BearerAuth:
    token: str

    def header_value(self) -> str:
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str = ""

    def header_value(self) -> str:
        credentials = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
        return f"Basic {credentials}"


Auth = Union[BearerAuth, BasicAuth]


def resolve_auth(raw: str | None, auth_type: str | None = None) -> Auth | None:
    """Build an Auth from a raw credential string.

    - no credential: no auth, whatever the type says
    - bearer: the whole string is the token
    - basic (the default): "user:pass", split on the first colon;
      a missing colon means an empty password
    """
    if raw is None:
        return None
    if (auth_type or AUTH_BASIC).lower() == AUTH_BEARER:
        return BearerAuth(raw)
    username, _, password = raw.partition(":")
    return BasicAuth(username, password)


def auth_from_config(auth_config: dict | None, env: dict[str, str]) -> Auth | None:
    """Build an Auth from the config file's auth block.

    Supports:
    - bearer: {type: bearer, token: ...}
    - basic:  {type: basic, username: ..., password: ...}

    Values may reference environment variables as $VAR or ${VAR}.
    Unknown types yield no auth.
    """
    if not auth_config:
        return None

    auth_type = str(auth_config.get("type", "")).lower()

    if auth_type == AUTH_BEARER:
        return BearerAuth(resolve_value(auth_config.get("token", ""), env) or "")

    if auth_type == AUTH_BASIC:
        username = resolve_value(auth_config.get("username", ""), env) or ""
        password = resolve_value(auth_config.get("password", ""), env) or ""
        return BasicAuth(username, password)

    return None
