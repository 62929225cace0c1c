"""OAuth-style grant requests parsed from already-decoded request parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Union

from .errors import InvalidRequest

DEFAULT_SCOPE = "owner"


@dataclass(frozen=True, slots=True)
class PasswordGrant:
    username: str
    password: str = ""
    scope: str = DEFAULT_SCOPE

    def __repr__(self) -> str:
        return f"PasswordGrant(username={self.username!r}, scope={self.scope!r})"


@dataclass(frozen=True, slots=True)
class RefreshTokenGrant:
    refresh_token: str
    scope: str = DEFAULT_SCOPE


@dataclass(frozen=True, slots=True)
class AuthorizationCodeGrant:
    client_id: str | None = None
    client_secret: str | None = None
    code: str | None = None
    redirect_url: str | None = None


@dataclass(frozen=True, slots=True)
class UnrecognizedGrant:
    grant_type: str


Grant = Union[PasswordGrant, RefreshTokenGrant, AuthorizationCodeGrant, UnrecognizedGrant]


def _required(params: Mapping[str, str], name: str) -> str:
    value = params.get(name)
    if value is None or value == "":
        raise InvalidRequest(name)
    return value


def parse_grant(params: Mapping[str, str]) -> Grant:
    """Select the grant variant named by ``grant_type`` and collect its parameters.

    Raises
    ------
    InvalidRequest
        When ``grant_type`` or a parameter required by the selected grant is absent.
    """
    grant_type = _required(params, "grant_type")
    scope = params.get("scope") or DEFAULT_SCOPE

    if grant_type == "password":
        return PasswordGrant(
            username=_required(params, "username"),
            password=params.get("password") or "",
            scope=scope,
        )
    if grant_type == "refresh_token":
        return RefreshTokenGrant(refresh_token=_required(params, "refresh_token"), scope=scope)
    if grant_type == "authorization_code":
        return AuthorizationCodeGrant(
            client_id=params.get("client_id"),
            client_secret=params.get("client_secret"),
            code=params.get("code"),
            redirect_url=params.get("redirect_url"),
        )
    return UnrecognizedGrant(grant_type=grant_type)
