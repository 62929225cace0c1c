from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    app_name: str = os.getenv("APP_NAME", "metaverse-accounts")
    version: str = "0.1.0"
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", "9400"))
    token_ttl_seconds: int = int(os.getenv("TOKEN_TTL_SECONDS", str(12 * 60 * 60)))
    domain_token_expiration_days: int = int(os.getenv("DOMAIN_TOKEN_EXPIRATION_DAYS", "365"))
    usernames_case_sensitive: bool = _env_flag("USERNAMES_CASE_SENSITIVE")
    domain_token_login_page: str = os.getenv(
        "DOMAIN_TOKEN_LOGIN_PAGE", "/static/domainTokenLogin.html"
    )
    login_throttle_max_failures: int = int(os.getenv("LOGIN_THROTTLE_MAX_FAILURES", "5"))
    login_throttle_window_seconds: int = int(os.getenv("LOGIN_THROTTLE_WINDOW_SECONDS", "300"))
    login_throttle_backend: str = os.getenv("LOGIN_THROTTLE_BACKEND", "memory").lower()
    redis_url: str = os.getenv("REDIS_URL", "")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
