from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import Lock

from ..security.tokens import TokenIndex
from .token import AuthToken, utcnow


@dataclass(slots=True, eq=False)
class Account:
    """Aggregate root for a metaverse user identity and the tokens it owns.

    The token list is only touched while holding ``_lock`` so that issuance and
    refresh supersession are observed atomically by concurrent requests.
    Tokens found expired are dropped from the list and released from the
    shared index.
    """

    account_id: str
    username: str
    password_hash: str = field(repr=False)
    created_at: datetime
    index: TokenIndex = field(repr=False)
    token_ttl: timedelta = field(default=timedelta(hours=12), repr=False)
    _tokens: list[AuthToken] = field(default_factory=list, repr=False)
    _lock: Lock = field(default_factory=Lock, repr=False)

    def issue_access_token(
        self,
        scope: str,
        session_key: str | None = None,
        lifetime: timedelta | None = None,
        expires_at: datetime | None = None,
    ) -> AuthToken:
        """Mint a new token pair for ``scope`` and add it to this account.

        ``expires_at`` sets an absolute expiration and takes precedence over
        ``lifetime``; the token is never visible with any other expiration.
        """
        with self._lock:
            now = utcnow()
            self._evict_expired(now)
            token = self._mint(scope, session_key, now, lifetime, expires_at)
            self._tokens.append(token)
        return token

    def refresh_access_token(self, refresh_token: str) -> AuthToken | None:
        """Exchange a live refresh token for a new token carrying the same scope.

        The superseded token is removed in the same critical section that adds
        its replacement. Returns ``None`` without touching the live tokens when
        no live token holds ``refresh_token``.
        """
        with self._lock:
            now = utcnow()
            self._evict_expired(now)
            for index, current in enumerate(self._tokens):
                if current.refresh_token == refresh_token:
                    replacement = self._mint(current.scope, current.session_key, now, None, None)
                    self._tokens[index] = replacement
                    self.index.release(current.access_token, current.refresh_token)
                    return replacement
        return None

    def find_live_token(self, access_token: str) -> AuthToken | None:
        if not access_token:
            return None
        with self._lock:
            self._evict_expired(utcnow())
            for token in self._tokens:
                if token.access_token == access_token:
                    return token
        return None

    def extend_token(self, access_token: str, expires_at: datetime) -> AuthToken | None:
        """Extend the expiration of one of this account's live tokens."""
        with self._lock:
            self._evict_expired(utcnow())
            for token in self._tokens:
                if token.access_token == access_token:
                    token.extend(expires_at)
                    return token
        return None

    def live_tokens(self) -> list[AuthToken]:
        with self._lock:
            self._evict_expired(utcnow())
            return list(self._tokens)

    def _evict_expired(self, now: datetime) -> None:
        expired = [token for token in self._tokens if not token.is_live(now)]
        for token in expired:
            self._tokens.remove(token)
            self.index.release(token.access_token, token.refresh_token)

    def _mint(
        self,
        scope: str,
        session_key: str | None,
        now: datetime,
        lifetime: timedelta | None,
        expires_at: datetime | None,
    ) -> AuthToken:
        access, refresh = self.index.mint_pair(self)
        return AuthToken(
            access_token=access,
            refresh_token=refresh,
            scope=scope,
            created_at=now,
            expires_at=expires_at or now + (lifetime or self.token_ttl),
            session_key=session_key,
        )
