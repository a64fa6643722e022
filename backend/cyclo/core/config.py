"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Token types whose secrets must stay distinct in production
TOKEN_SECRET_SETTINGS: Final[Mapping[str, str]] = {
    "access": "JWT_ACCESS_SECRET",
    "refresh": "JWT_REFRESH_SECRET",
    "email_verification": "JWT_EMAIL_SECRET",
    "password_reset": "JWT_PASSWORD_RESET_SECRET",
}

TOKEN_TTL_SETTINGS: Final[Mapping[str, str]] = {
    "access": "JWT_ACCESS_TTL_SECONDS",
    "refresh": "JWT_REFRESH_TTL_SECONDS",
    "email_verification": "JWT_EMAIL_TTL_SECONDS",
    "password_reset": "JWT_PASSWORD_RESET_TTL_SECONDS",
}


load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on errors."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Fallback signing key for any token type without its own secret.
    JWT_ACCESS_SECRET, JWT_REFRESH_SECRET, JWT_EMAIL_SECRET, JWT_PASSWORD_RESET_SECRET: str | None
        Per-type HMAC secrets. Distinct values prevent a token of one type
        from being replayed as another.
    JWT_*_TTL_SECONDS: int
        Lifetimes for access (15 min), refresh (7 days), email verification
        (24 h) and password reset (1 h) tokens.
    JWT_ISSUER, JWT_AUDIENCE: str
        ``iss``/``aud`` claims embedded in and required from every token.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method string (``scrypt`` by default).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REVOCATION_BACKEND: str
        ``"memory"`` (process-local) or ``"redis"`` (shared, needs ``REDIS_URL``).
    FRONTEND_URL: str
        Base URL used to build the deep links sent by email.
    MAIL_FROM: str | None
        Sender address for outbound email (``noreply@cyclo.app`` when unset).
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
    JWT_EMAIL_SECRET = os.getenv("JWT_EMAIL_SECRET")
    JWT_PASSWORD_RESET_SECRET = os.getenv("JWT_PASSWORD_RESET_SECRET")

    # Token lifetimes
    JWT_ACCESS_TTL_SECONDS = env_int("JWT_ACCESS_TTL_SECONDS", 15 * 60)
    JWT_REFRESH_TTL_SECONDS = env_int("JWT_REFRESH_TTL_SECONDS", 7 * 24 * 60 * 60)
    JWT_EMAIL_TTL_SECONDS = env_int("JWT_EMAIL_TTL_SECONDS", 24 * 60 * 60)
    JWT_PASSWORD_RESET_TTL_SECONDS = env_int("JWT_PASSWORD_RESET_TTL_SECONDS", 60 * 60)
    JWT_ISSUER = os.getenv("JWT_ISSUER", "cyclo-backend")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "cyclo-frontend")

    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Revocation registry
    REVOCATION_BACKEND = os.getenv("REVOCATION_BACKEND", "memory")
    REDIS_URL = os.getenv("REDIS_URL")

    # Email links
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
    MAIL_FROM = os.getenv("MAIL_FROM")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses a cheap PBKDF2 work factor so the suite stays fast.
    - Gives every token type its own secret, like production.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    JWT_ACCESS_SECRET = "test-access-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"
    JWT_EMAIL_SECRET = "test-email-secret"
    JWT_PASSWORD_RESET_SECRET = "test-password-reset-secret"
    REVOCATION_BACKEND = "memory"
    FRONTEND_URL = "https://app.cyclo.test"
    USE_PROXYFIX = False
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    :func:`validate_token_secrets` is enforced at startup for this class.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REQUIRE_DISTINCT_TOKEN_SECRETS = True


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def resolve_token_secrets(config: Mapping[str, object]) -> dict[str, str]:
    """Return the effective signing secret per token type.

    Types without a dedicated secret fall back to ``JWT_SECRET_KEY``.

    :param config: Flask config (or any mapping with the same keys).
    :returns: ``{token_type: secret}``.
    :raises RuntimeError: When neither a dedicated nor a fallback secret exists.
    """
    fallback = config.get("JWT_SECRET_KEY")
    secrets: dict[str, str] = {}
    for token_type, key in TOKEN_SECRET_SETTINGS.items():
        value = config.get(key) or fallback
        if not value:
            raise RuntimeError(f"JWT secret not found for token type: {token_type}")
        secrets[token_type] = str(value)
    return secrets


def resolve_token_ttls(config: Mapping[str, object]) -> dict[str, int]:
    """Return the configured lifetime (seconds) per token type."""
    return {
        token_type: int(config.get(key) or 0) for token_type, key in TOKEN_TTL_SETTINGS.items()
    }


def validate_token_secrets(config: Mapping[str, object]) -> None:
    """Fail fast when two token types would share a signing secret.

    :raises RuntimeError: If any secret is reused across token types.
    """
    secrets = resolve_token_secrets(config)
    if len(set(secrets.values())) != len(secrets):
        raise RuntimeError(
            "Each token type needs its own secret: set JWT_ACCESS_SECRET, "
            "JWT_REFRESH_SECRET, JWT_EMAIL_SECRET and JWT_PASSWORD_RESET_SECRET."
        )
