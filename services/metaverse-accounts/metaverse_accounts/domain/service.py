"""Grant dispatch and domain-token issuance on top of the account registry."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Mapping

from prometheus_client import Counter

from ..registry import AccountRegistry
from ..security.login_throttle import LoginThrottle
from ..security.tokens import fingerprint
from .account import Account
from .errors import (
    AuthenticationFailed,
    RefreshFailed,
    TokenGrantError,
    UnknownAccount,
    UnknownGrant,
    UnsupportedGrant,
)
from .grants import (
    DEFAULT_SCOPE,
    AuthorizationCodeGrant,
    Grant,
    PasswordGrant,
    RefreshTokenGrant,
    UnrecognizedGrant,
    parse_grant,
)
from .token import UNBOUNDED_EXPIRATION, AuthToken

logger = logging.getLogger(__name__)

TOKEN_GRANTS = Counter(
    "token_grants_total",
    "Token grant requests by grant type and outcome.",
    ["grant_type", "outcome"],
)

DOMAIN_SCOPE = "domain"


def _grant_label(grant: Grant | None) -> str:
    if isinstance(grant, PasswordGrant):
        return "password"
    if isinstance(grant, RefreshTokenGrant):
        return "refresh_token"
    if isinstance(grant, AuthorizationCodeGrant):
        return "authorization_code"
    return "unknown"


class GrantDispatcher:
    """Select token behaviour by grant type and mint tokens through accounts."""

    def __init__(
        self,
        registry: AccountRegistry,
        *,
        throttle: LoginThrottle | None = None,
        domain_token_expiration_days: int = 365,
    ) -> None:
        """Store the registry and the optional failed-login throttle."""
        self._registry = registry
        self._throttle = throttle
        self._domain_token_lifetime = timedelta(days=domain_token_expiration_days)

    @property
    def registry(self) -> AccountRegistry:
        return self._registry

    def dispatch(
        self,
        params: Mapping[str, str],
        *,
        caller_token: str | None = None,
        sender: str = "",
    ) -> AuthToken:
        """Parse ``params`` into a grant and execute it.

        Parameters
        ----------
        params:
            Decoded form/query parameters of the token request.
        caller_token:
            Bearer token presented by the caller, used by the refresh grant.
        sender:
            Identifier of the requesting peer, used for session keys and throttling.

        Raises
        ------
        TokenGrantError
            One of its subclasses for every expected failure.
        """
        grant: Grant | None = None
        try:
            grant = parse_grant(params)
            token = self.execute(grant, caller_token=caller_token, sender=sender)
        except TokenGrantError as exc:
            TOKEN_GRANTS.labels(grant_type=_grant_label(grant), outcome=exc.outcome).inc()
            raise
        TOKEN_GRANTS.labels(grant_type=_grant_label(grant), outcome="issued").inc()
        return token

    def execute(self, grant: Grant, *, caller_token: str | None = None, sender: str = "") -> AuthToken:
        if isinstance(grant, PasswordGrant):
            return self._password(grant, sender)
        if isinstance(grant, RefreshTokenGrant):
            return self._refresh(grant, caller_token)
        if isinstance(grant, AuthorizationCodeGrant):
            logger.warning(
                "rejected authorization_code grant client_id=%s sender=%s", grant.client_id, sender
            )
            raise UnsupportedGrant("authorization_code")
        if isinstance(grant, UnrecognizedGrant):
            logger.warning("rejected unknown grant type %r sender=%s", grant.grant_type, sender)
            raise UnknownGrant(grant.grant_type)
        raise TypeError(f"unhandled grant {grant!r}")

    def _password(self, grant: PasswordGrant, sender: str) -> AuthToken:
        throttle_key = f"{sender}:{self._registry.normalize_username(grant.username)}"
        if self._throttle is not None and self._throttle.is_blocked(throttle_key):
            logger.warning("login throttled for user %s sender=%s", grant.username, sender)
            raise AuthenticationFailed("Too many failed login attempts")

        account = self._registry.find_by_username(grant.username)
        if account is None:
            logger.warning("token requested for unknown user %s sender=%s", grant.username, sender)
            raise UnknownAccount()

        if not self._registry.verify_password(account, grant.password):
            if self._throttle is not None:
                self._throttle.record_failure(throttle_key)
            logger.warning("login failed for user %s sender=%s", grant.username, sender)
            raise AuthenticationFailed()

        if self._throttle is not None:
            self._throttle.reset(throttle_key)
        token = account.issue_access_token(grant.scope, f"{sender};{grant.username}")
        logger.debug("login of user %s scope=%s", grant.username, grant.scope)
        return token

    def _refresh(self, grant: RefreshTokenGrant, caller_token: str | None) -> AuthToken:
        account = self._registry.find_by_token(caller_token)
        if account is None:
            logger.warning("refresh attempted without a live session token=%s", fingerprint(caller_token))
            raise UnknownAccount()

        token = account.refresh_access_token(grant.refresh_token)
        if token is None:
            logger.warning("refresh failed for account %s", account.account_id)
            raise RefreshFailed()
        logger.debug("refreshed access token for account %s", account.account_id)
        return token

    def issue_domain_token(
        self, caller_token: str | None, scope: str | None = None
    ) -> tuple[Account, AuthToken]:
        """Mint a long-lived token for the caller's account, e.g. ``scope=domain``.

        Raises ``UnknownAccount`` when the presented token does not resolve.
        """
        account = self._registry.find_by_token(caller_token)
        if account is None:
            raise UnknownAccount()
        token = account.issue_access_token(
            scope or DEFAULT_SCOPE, lifetime=self._domain_token_lifetime
        )
        logger.debug("issued %s token for account %s", token.scope, account.account_id)
        return account, token

    def issue_domain_server_token(self, caller_token: str | None) -> AuthToken | None:
        """Mint a ``domain`` token that never practically expires, or ``None`` for unknown callers."""
        account = self._registry.find_by_token(caller_token)
        if account is None:
            return None
        token = account.issue_access_token(DOMAIN_SCOPE, expires_at=UNBOUNDED_EXPIRATION)
        logger.debug("issued permanent domain token for account %s", account.account_id)
        return token
