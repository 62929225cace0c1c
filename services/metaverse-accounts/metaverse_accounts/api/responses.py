"""Response bodies for the token endpoints.

The OAuth body and the generic envelope are consumed verbatim by different
clients (interactive login vs. domain-server provisioning) and are kept as
separate models.
"""

from __future__ import annotations

from html import escape
from typing import Literal

from pydantic import BaseModel

from ..domain.account import Account
from ..domain.token import AuthToken


class OAuthTokenResponse(BaseModel):
    """Flat token body returned by ``/oauth/token``."""

    access_token: str
    token_type: Literal["Bearer"] = "Bearer"
    expires_in: int
    refresh_token: str
    scope: str
    created_at: int

    @classmethod
    def from_token(cls, token: AuthToken) -> "OAuthTokenResponse":
        return cls(
            access_token=token.access_token,
            expires_in=token.lifetime_seconds,
            refresh_token=token.refresh_token,
            scope=token.scope,
            created_at=int(token.created_at.timestamp()),
        )


class OAuthErrorResponse(BaseModel):
    """Error body for ``/oauth/token``; never carries token fields."""

    error: str


class DomainTokenData(BaseModel):
    domain_token: str
    token_expiration_seconds: int
    account_name: str


class EnvelopeSuccess(BaseModel):
    status: Literal["success"] = "success"
    data: DomainTokenData

    @classmethod
    def for_domain_token(cls, account: Account, token: AuthToken) -> "EnvelopeSuccess":
        return cls(
            data=DomainTokenData(
                domain_token=token.access_token,
                token_expiration_seconds=token.lifetime_seconds,
                account_name=account.username,
            )
        )


class EnvelopeFailure(BaseModel):
    status: Literal["fail"] = "fail"


def domain_token_page(token: AuthToken) -> str:
    """Human readable page shown to the operator bootstrapping a domain server."""
    return f"<center><h2>Your domain's access token is: {escape(token.access_token)}</h2></center>"
