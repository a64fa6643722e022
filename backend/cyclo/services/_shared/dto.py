# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ErrorCode:
    """Stable error codes returned in failure results."""

    USER_EXISTS = "USER_EXISTS"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_CURRENT_PASSWORD = "INVALID_CURRENT_PASSWORD"
    USER_BANNED = "USER_BANNED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_BLACKLISTED = "TOKEN_BLACKLISTED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    @staticmethod
    def failed(operation: str) -> str:
        """Return the catch-all code for ``operation`` (``login`` -> ``LOGIN_FAILED``)."""
        return f"{operation.upper()}_FAILED"


@dataclass(frozen=True, slots=True)
class ServiceErrorInfo:
    """
    Error half of a failure result.

    :param code: Machine-readable code (see :class:`ErrorCode`).
    :type code: str
    :param message: Human-readable message; never carries internal detail.
    :type message: str
    :param details: Optional structured details (validation messages).
    :type details: dict[str, Any] | None
    """

    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


@dataclass(frozen=True, slots=True)
class ServiceResult:
    """
    Uniform outcome of a public service operation.

    :param success: ``True`` when the operation completed.
    :type success: bool
    :param data: Payload on success.
    :type data: Any
    :param error: Error info on failure.
    :type error: ServiceErrorInfo | None
    """

    success: bool
    data: Any = None
    error: ServiceErrorInfo | None = None

    @classmethod
    def ok(cls, data: Any = None) -> ServiceResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls, code: str, message: str, details: dict[str, Any] | None = None
    ) -> ServiceResult:
        return cls(success=False, error=ServiceErrorInfo(code, message, details))

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out
