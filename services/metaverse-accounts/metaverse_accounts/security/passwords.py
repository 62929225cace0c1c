"""Password hashing and verification backed by bcrypt."""

from __future__ import annotations

from typing import Protocol

import bcrypt

# bcrypt only considers the first 72 bytes of the secret
_BCRYPT_MAX_BYTES = 72


class PasswordVerifier(Protocol):
    """Opaque credential capability consumed by the account registry."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


class BcryptPasswordHasher:
    """Salted bcrypt hashes stored as UTF-8 strings."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        secret = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Return ``True`` when ``password`` matches the stored hash.

        Malformed or empty hashes never verify.
        """
        if not password or not password_hash:
            return False
        secret = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(secret, password_hash.encode("utf-8"))
        except ValueError:
            return False
