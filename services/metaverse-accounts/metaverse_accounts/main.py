"""FastAPI application wiring for the metaverse account token service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .api.routes import router as token_router
from .config import Settings, get_settings
from .domain.service import GrantDispatcher
from .registry import AccountRegistry
from .security.login_throttle import LoginThrottle, SlidingWindowLoginThrottle
from .security.passwords import BcryptPasswordHasher
from .security.redis_login_throttle import RedisLoginThrottle

logger = logging.getLogger(__name__)

settings = get_settings()


def build_login_throttle(settings: Settings) -> LoginThrottle:
    """Instantiate the configured failed-login throttle, preferring Redis when available."""
    if settings.login_throttle_backend == "redis" and settings.redis_url:
        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
        except (redis.RedisError, ValueError) as exc:
            logger.warning("redis login throttle unavailable, falling back to in-memory: %s", exc)
        else:
            logger.info("login throttle configured for redis backend at %s", settings.redis_url)
            return RedisLoginThrottle(
                client,
                max_failures=settings.login_throttle_max_failures,
                window_seconds=settings.login_throttle_window_seconds,
            )

    logger.info("login throttle using in-memory backend")
    return SlidingWindowLoginThrottle(
        max_failures=settings.login_throttle_max_failures,
        window_seconds=settings.login_throttle_window_seconds,
    )


def build_dispatcher(settings: Settings) -> GrantDispatcher:
    registry = AccountRegistry(
        BcryptPasswordHasher(),
        token_ttl_seconds=settings.token_ttl_seconds,
        case_sensitive_usernames=settings.usernames_case_sensitive,
    )
    return GrantDispatcher(
        registry,
        throttle=build_login_throttle(settings),
        domain_token_expiration_days=settings.domain_token_expiration_days,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise the account registry and grant dispatcher for the app lifecycle."""
    dispatcher = build_dispatcher(settings)
    app.state.grant_dispatcher = dispatcher
    app.state.account_registry = dispatcher.registry
    yield


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=".*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


app.include_router(token_router)


@app.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
