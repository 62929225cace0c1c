from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Expiration used for permanent domain/account associations
UNBOUNDED_EXPIRATION = datetime(2999, 12, 31, tzinfo=timezone.utc)


@dataclass(slots=True, eq=False)
class AuthToken:
    """One issued bearer/refresh credential pair owned by an account."""

    access_token: str
    refresh_token: str
    scope: str
    created_at: datetime
    expires_at: datetime
    session_key: str | None = None

    def is_live(self, now: datetime | None = None) -> bool:
        """Return ``True`` while the token has not reached its expiration."""
        return (now or utcnow()) < self.expires_at

    def extend(self, expires_at: datetime) -> None:
        """Push the expiration out to ``expires_at``; tokens are never shortened."""
        if expires_at < self.expires_at:
            raise ValueError("token expiration can only be extended")
        self.expires_at = expires_at

    @property
    def lifetime_seconds(self) -> int:
        return int((self.expires_at - self.created_at).total_seconds())
