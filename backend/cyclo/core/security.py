"""Password hashing helpers built on Werkzeug."""

from __future__ import annotations

import secrets

from flask import current_app, has_app_context
from werkzeug.security import check_password_hash, generate_password_hash

DEFAULT_HASH_METHOD = "scrypt"

# Hash compared against when no account exists, so a missing account costs
# the same work as a wrong password.
_DUMMY_HASHES: dict[str, str] = {}


def _hash_method() -> str:
    if has_app_context():
        return str(current_app.config.get("PASSWORD_HASH_METHOD") or DEFAULT_HASH_METHOD)
    return DEFAULT_HASH_METHOD


def hash_password(raw: str) -> str:
    """Return a salted, slow hash of ``raw`` using the configured method."""
    return generate_password_hash(raw, method=_hash_method())


def verify_password(password_hash: str | None, raw: str) -> bool:
    """Compare ``raw`` with ``password_hash``; an empty hash never matches."""
    if not password_hash:
        return False
    return bool(check_password_hash(password_hash, raw))


def burn_password_check(raw: str) -> None:
    """Spend one hash comparison without an account to compare against."""
    method = _hash_method()
    dummy = _DUMMY_HASHES.get(method)
    if dummy is None:
        dummy = _DUMMY_HASHES[method] = generate_password_hash(
            secrets.token_hex(8), method=method
        )
    check_password_hash(dummy, raw)
