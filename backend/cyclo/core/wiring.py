"""Build the auth service and its adapters from application config."""

from __future__ import annotations

import logging

from flask import Flask

from cyclo.core.extensions import get_redis
from cyclo.infra.jwt.pyjwt_token_provider import JWTTokenProvider
from cyclo.infra.redis.redis_revocation_store import RedisRevocationStore
from cyclo.services import AuthLinksConfig, AuthService
from cyclo.services._shared.ports import (
    EmailDispatcher,
    InMemoryRevocationStore,
    LoggingEmailDispatcher,
    RevocationStore,
)

log = logging.getLogger(__name__)

AUTH_SERVICE_KEY = "auth_service"


def build_revocation_store(app: Flask) -> RevocationStore:
    """Return the store named by ``REVOCATION_BACKEND``.

    :raises RuntimeError: On an unknown backend, or ``redis`` without ``REDIS_URL``.
    """
    backend = str(app.config.get("REVOCATION_BACKEND", "memory")).strip().lower()
    if backend == "memory":
        return InMemoryRevocationStore()
    if backend == "redis":
        return RedisRevocationStore(get_redis())
    raise RuntimeError(f"Unknown REVOCATION_BACKEND: {backend!r}")


def build_email_dispatcher(app: Flask) -> EmailDispatcher:
    """Return the logging dispatcher, using ``MAIL_FROM`` as sender when set."""
    sender = app.config.get("MAIL_FROM")
    if sender:
        return LoggingEmailDispatcher(sender=sender)
    return LoggingEmailDispatcher()


def build_auth_service(app: Flask) -> AuthService:
    return AuthService(
        token_provider=JWTTokenProvider.from_config(app.config),
        revocation_store=build_revocation_store(app),
        email_dispatcher=build_email_dispatcher(app),
        links=AuthLinksConfig(frontend_url=app.config.get("FRONTEND_URL", "")),
    )


def init_app(app: Flask) -> None:
    """Attach a ready :class:`AuthService` to ``app.extensions``."""
    app.extensions[AUTH_SERVICE_KEY] = build_auth_service(app)
    log.info(
        "auth service ready (revocation backend: %s)",
        app.config.get("REVOCATION_BACKEND", "memory"),
    )
