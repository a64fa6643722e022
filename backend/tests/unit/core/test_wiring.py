"""Tests for building the auth service from configuration."""

from __future__ import annotations

from types import SimpleNamespace

import fakeredis
import pytest

from cyclo.core import extensions
from cyclo.core.wiring import AUTH_SERVICE_KEY, build_email_dispatcher, build_revocation_store
from cyclo.infra.redis.redis_revocation_store import RedisRevocationStore
from cyclo.services import AuthService
from cyclo.services._shared.ports import InMemoryRevocationStore
from cyclo.services._shared.ports.email_dispatcher import DEFAULT_SENDER


def _app_with(**config):
    return SimpleNamespace(config=config)


def test_app_exposes_auth_service(app):
    assert isinstance(app.extensions[AUTH_SERVICE_KEY], AuthService)


def test_memory_backend():
    assert isinstance(
        build_revocation_store(_app_with(REVOCATION_BACKEND="memory")), InMemoryRevocationStore
    )


def test_redis_backend_uses_shared_client(monkeypatch):
    monkeypatch.setattr(extensions, "redis_client", fakeredis.FakeRedis())

    store = build_revocation_store(_app_with(REVOCATION_BACKEND="Redis"))

    assert isinstance(store, RedisRevocationStore)


def test_redis_backend_without_client(monkeypatch):
    monkeypatch.setattr(extensions, "redis_client", None)

    with pytest.raises(RuntimeError, match="Redis client is not initialized"):
        build_revocation_store(_app_with(REVOCATION_BACKEND="redis"))


def test_unknown_backend():
    with pytest.raises(RuntimeError, match="Unknown REVOCATION_BACKEND"):
        build_revocation_store(_app_with(REVOCATION_BACKEND="memcached"))


def test_email_dispatcher_uses_configured_sender():
    dispatcher = build_email_dispatcher(_app_with(MAIL_FROM="rides@cyclo.test"))

    assert dispatcher.sender == "rides@cyclo.test"


@pytest.mark.parametrize("mail_from", [None, ""])
def test_email_dispatcher_falls_back_to_default_sender(mail_from):
    dispatcher = build_email_dispatcher(_app_with(MAIL_FROM=mail_from))

    assert dispatcher.sender == DEFAULT_SENDER


def test_app_without_mail_from_keeps_default_sender(app):
    assert app.config["MAIL_FROM"] is None
    assert app.extensions[AUTH_SERVICE_KEY].email.sender == DEFAULT_SENDER
