"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: they never import Flask or
HTTP helpers. Each carries a stable machine-readable ``code`` that
:meth:`BaseService.run_operation` copies into the failure
:class:`~cyclo.services._shared.dto.ServiceResult`; the HTTP status is picked
later from that code by :func:`cyclo.core.errors.status_for_code`.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        Constraint name (e.g. ``uq_users_username``) or, for SQLite which
        only reports columns, the ``table.column`` pair.

    Returns
    -------
    bool
        True if the IntegrityError message mentions the given name.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    :param message: Human-readable message safe to show to clients.
    :param code: Machine-readable error code.
    :param details: Optional structured details (e.g. per-field messages).
    """

    default_code = "SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ValidationFailedError(ServiceError):
    """Raised when input is rejected before storage is touched."""

    default_code = "VALIDATION_ERROR"

    def __init__(self, details: dict[str, Any], message: str = "Validation failed") -> None:
        super().__init__(message, details=details)


class ConflictError(ServiceError):
    """Raised for duplicate email or username."""

    default_code = "USER_EXISTS"


class AuthenticationError(ServiceError):
    """Raised when credentials do not match."""

    default_code = "INVALID_CREDENTIALS"


class InvalidCurrentPasswordError(ServiceError):
    """Raised when a signed-in user confirms a password change with the wrong password."""

    default_code = "INVALID_CURRENT_PASSWORD"


class ForbiddenError(ServiceError):
    """Raised when the account exists but may not authenticate (banned)."""

    default_code = "USER_BANNED"


class NotFoundError(ServiceError):
    default_code = "USER_NOT_FOUND"


class AlreadyVerifiedError(ServiceError):
    default_code = "ALREADY_VERIFIED"


# --------------------------------------------------------------------------- #
# Token errors
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """Base for every token failure; callers may catch this alone."""

    default_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid token", *, code: str | None = None) -> None:
        super().__init__(message, code=code)


class TokenInvalidError(TokenError):
    """Token is malformed or its signature does not verify."""


class TokenTypeMismatchError(TokenError):
    """Token was issued for a different purpose than the one presented for."""

    def __init__(self, expected: str, actual: str | None) -> None:
        super().__init__(f"Expected a {expected} token, got {actual or 'unknown'}")
        self.expected = expected
        self.actual = actual


class TokenExpiredError(TokenError):
    default_code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class TokenRevokedError(TokenError):
    default_code = "TOKEN_BLACKLISTED"

    def __init__(self, message: str = "Token has been revoked") -> None:
        super().__init__(message)
