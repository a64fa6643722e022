# cyclo/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: User email (normalized on validation).
    :type email: str
    :param password: Raw password; must pass the strength rules.
    :type password: str
    :param display_name: Name the handle is derived from.
    :type display_name: str
    :param first_name: Optional given name.
    :type first_name: str | None
    :param last_name: Optional family name.
    :type last_name: str | None
    """

    email: str
    password: str
    display_name: str
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class ForgotPasswordIn:
    email: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    """
    :param token: Reset token from the emailed link.
    :param password: New raw password.
    """

    token: str
    password: str


@dataclass(frozen=True, slots=True)
class VerifyEmailIn:
    token: str


@dataclass(frozen=True, slots=True)
class ResendVerificationIn:
    email: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param token: Encoded JWT (access or refresh) to revoke.
    :type token: str
    """

    token: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Input DTO for changing the password of a signed-in user.

    :param current_password: Password the account has now.
    :type current_password: str
    :param new_password: Replacement; must pass the strength rules.
    :type new_password: str
    """

    current_password: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ValidateTokenIn:
    token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthOut:
    """
    Output of register and login.

    :param user: Public profile (see ``UserProfileSchema``).
    :type user: dict[str, Any]
    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    :param expires_in: Access token lifetime in seconds.
    :type expires_in: int
    :param verification_email_sent: Only set by registration.
    :type verification_email_sent: bool | None
    """

    user: dict[str, Any]
    access_token: str
    refresh_token: str
    expires_in: int
    verification_email_sent: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "user": self.user,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
        }
        if self.verification_email_sent is not None:
            out["verification_email_sent"] = self.verification_email_sent
        return out


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    access_token: str
    expires_in: int

    def to_dict(self) -> dict[str, Any]:
        return {"access_token": self.access_token, "expires_in": self.expires_in}


@dataclass(frozen=True, slots=True)
class MessageOut:
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True, slots=True)
class TokenValidationOut:
    """
    Output of token validation.

    :param user: Public profile of the token's user.
    :type user: dict[str, Any]
    :param expires_at: When the access token stops being accepted.
    :type expires_at: datetime
    """

    user: dict[str, Any]
    expires_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"valid": True, "user": self.user, "expires_at": self.expires_at.isoformat()}


@dataclass(frozen=True, slots=True)
class CleanupOut:
    """
    Counts from one cleanup run.

    :param verification_tokens_cleared: Accounts whose verification fields were nulled.
    :param reset_tokens_cleared: Accounts whose reset fields were nulled.
    :param revocations_swept: Expired revocation entries dropped.
    """

    verification_tokens_cleared: int
    reset_tokens_cleared: int
    revocations_swept: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "verification_tokens_cleared": self.verification_tokens_cleared,
            "reset_tokens_cleared": self.reset_tokens_cleared,
            "revocations_swept": self.revocations_swept,
        }


# ------------------------ Config DTO --------------------------- #


@dataclass(frozen=True, slots=True)
class AuthLinksConfig:
    """
    Frontend routes embedded in emails.

    :param frontend_url: Base URL of the web client, without trailing slash.
    :type frontend_url: str
    """

    frontend_url: str = "http://localhost:5173"
    verify_path: str = "/verify-email"
    reset_path: str = "/reset-password"
    welcome_path: str = "/"
    login_path: str = "/login"

    def _base(self) -> str:
        return self.frontend_url.rstrip("/")

    def verify_link(self, token: str) -> str:
        return f"{self._base()}{self.verify_path}?token={token}"

    def reset_link(self, token: str) -> str:
        return f"{self._base()}{self.reset_path}?token={token}"

    def welcome_link(self) -> str:
        return f"{self._base()}{self.welcome_path}"

    def login_link(self) -> str:
        return f"{self._base()}{self.login_path}"
