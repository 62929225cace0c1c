"""Utilities for minting opaque bearer and refresh tokens."""

from __future__ import annotations

import hashlib
import secrets
from threading import Lock
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.account import Account


class TokenIndex:
    """Thread-safe index of the token values currently held by accounts.

    Access and refresh values live in separate namespaces. A freshly minted
    value is unique among the values still held; values are released when
    their token is superseded or found expired, so the index only grows with
    the number of outstanding tokens.
    """

    def __init__(self, nbytes: int = 32) -> None:
        """Initialise the entropy size and the owner/refresh lookup tables."""
        self._nbytes = nbytes
        self._owners: dict[str, Account] = {}
        self._refresh: set[str] = set()
        self._lock = Lock()

    def mint_pair(self, owner: Account) -> tuple[str, str]:
        """Reserve and return a fresh ``(access_token, refresh_token)`` pair for ``owner``."""
        with self._lock:
            access = self._unique(self._owners)
            refresh = self._unique(self._refresh)
            self._owners[access] = owner
            self._refresh.add(refresh)
            return access, refresh

    def release(self, access_token: str, refresh_token: str) -> None:
        with self._lock:
            self._owners.pop(access_token, None)
            self._refresh.discard(refresh_token)

    def owner_of(self, access_token: str) -> Account | None:
        with self._lock:
            return self._owners.get(access_token)

    def __len__(self) -> int:
        with self._lock:
            return len(self._owners)

    @property
    def refresh_count(self) -> int:
        with self._lock:
            return len(self._refresh)

    def _unique(self, held) -> str:
        token = secrets.token_urlsafe(self._nbytes)
        while token in held:
            token = secrets.token_urlsafe(self._nbytes)
        return token


def fingerprint(token: str | None) -> str:
    """Return a short SHA-256 prefix safe to include in log lines."""
    if not token:
        return "-"
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]
