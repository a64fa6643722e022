"""Tests for environment-driven configuration and secret resolution."""

from __future__ import annotations

import importlib.util

import pytest

from cyclo.core.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    resolve_token_secrets,
    resolve_token_ttls,
    validate_token_secrets,
)
from cyclo.factory import create_app


@pytest.mark.parametrize(
    ("env", "expected"),
    [
        ("testing", TestingConfig),
        ("PRODUCTION", ProductionConfig),
        ("development", DevelopmentConfig),
        ("staging", DevelopmentConfig),
    ],
)
def test_get_config_from_app_env(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)

    assert get_config() is expected


def test_secrets_fall_back_to_shared_key():
    config = {"JWT_SECRET_KEY": "shared", "JWT_ACCESS_SECRET": "access-only"}

    secrets = resolve_token_secrets(config)

    assert secrets["access"] == "access-only"
    assert secrets["refresh"] == secrets["password_reset"] == "shared"


def test_missing_secret_raises():
    with pytest.raises(RuntimeError, match="refresh"):
        resolve_token_secrets({"JWT_ACCESS_SECRET": "a"})


def test_token_lifetimes_defaults():
    ttls = resolve_token_ttls(
        {k: getattr(TestingConfig, k) for k in dir(TestingConfig) if k.isupper()}
    )

    assert ttls == {
        "access": 900,
        "refresh": 604800,
        "email_verification": 86400,
        "password_reset": 3600,
    }


def test_shared_secrets_are_rejected():
    with pytest.raises(RuntimeError, match="its own secret"):
        validate_token_secrets({"JWT_SECRET_KEY": "same"})


def test_production_app_refuses_shared_secrets():
    class SharedSecretConfig(ProductionConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        JWT_SECRET_KEY = "same"
        JWT_ACCESS_SECRET = None
        JWT_REFRESH_SECRET = None
        JWT_EMAIL_SECRET = None
        JWT_PASSWORD_RESET_SECRET = None
        REDIS_URL = None

    with pytest.raises(RuntimeError, match="its own secret"):
        create_app(SharedSecretConfig)


def _fresh_config_module():
    """Execute ``cyclo.core.config`` again without replacing the cached module."""
    spec = importlib.util.find_spec("cyclo.core.config")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_settings_read_env_vars_of_the_same_name(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.setenv("JWT_SECRET_KEY", "shared-from-env")
    monkeypatch.setenv("MAIL_FROM", "rides@cyclo.test")

    config = _fresh_config_module()

    assert config.BaseConfig.JWT_SECRET_KEY == "shared-from-env"
    assert config.BaseConfig.MAIL_FROM == "rides@cyclo.test"


def test_mail_from_unset_by_default(monkeypatch):
    monkeypatch.delenv("MAIL_FROM", raising=False)

    assert _fresh_config_module().BaseConfig.MAIL_FROM is None
