"""In-process registry of accounts keyed by username and by live access token."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from threading import Lock

from .domain.account import Account
from .domain.errors import AccountExistsError
from .domain.token import utcnow
from .security.passwords import PasswordVerifier
from .security.tokens import TokenIndex

logger = logging.getLogger(__name__)


class AccountRegistry:
    """Single source of truth mapping usernames and bearer tokens to accounts.

    Lookups never raise for a missing match; they return ``None``. Token
    issuance and rotation go through :class:`Account` methods, which keep the
    shared :class:`TokenIndex` in step with their token lists.
    """

    def __init__(
        self,
        verifier: PasswordVerifier,
        *,
        token_ttl_seconds: int,
        case_sensitive_usernames: bool = False,
        token_index: TokenIndex | None = None,
    ) -> None:
        """Store the credential verifier, token policy, and username case policy."""
        self._verifier = verifier
        self._token_ttl = timedelta(seconds=token_ttl_seconds)
        self._case_sensitive = case_sensitive_usernames
        self._index = token_index or TokenIndex()
        self._accounts: dict[str, Account] = {}
        self._lock = Lock()

    @property
    def token_index(self) -> TokenIndex:
        return self._index

    def normalize_username(self, username: str) -> str:
        """Return the lookup key for ``username`` under this registry's case policy."""
        return username if self._case_sensitive else username.lower()

    def create_account(self, username: str, password: str) -> Account:
        """Register a new account, hashing ``password`` with the configured verifier."""
        password_hash = self._verifier.hash(password)
        key = self.normalize_username(username)
        with self._lock:
            if key in self._accounts:
                raise AccountExistsError(f"username already registered: {username}")
            account = Account(
                account_id=str(uuid.uuid4()),
                username=username,
                password_hash=password_hash,
                created_at=utcnow(),
                index=self._index,
                token_ttl=self._token_ttl,
            )
            self._accounts[key] = account
        logger.info("registered account %s", account.account_id)
        return account

    def find_by_username(self, username: str | None) -> Account | None:
        if not username:
            return None
        with self._lock:
            return self._accounts.get(self.normalize_username(username))

    def find_by_token(self, access_token: str | None) -> Account | None:
        """Return the account holding a live token whose access value matches."""
        if not access_token:
            return None
        account = self._index.owner_of(access_token)
        if account is None or account.find_live_token(access_token) is None:
            return None
        return account

    def verify_password(self, account: Account, password: str) -> bool:
        return self._verifier.verify(password, account.password_hash)

    def accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
