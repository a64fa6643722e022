"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    ResendVerificationSchema,
    ResetPasswordSchema,
    UserProfileSchema,
    ValidateTokenSchema,
    VerifyEmailSchema,
    validate_password_strength,
)

__all__ = [
    "ChangePasswordSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshSchema",
    "RegisterSchema",
    "ResendVerificationSchema",
    "ResetPasswordSchema",
    "UserProfileSchema",
    "ValidateTokenSchema",
    "VerifyEmailSchema",
    "validate_password_strength",
]
