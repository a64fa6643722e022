"""Service layer public API.

Re-exports
----------
- Base primitives (from ``cyclo.services._shared.base``)
    * :class:`BaseService`

- Result envelope (from ``cyclo.services._shared.dto``)
    * :class:`ServiceResult`
    * :class:`ErrorCode`

- Auth service (from ``cyclo.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`RegisterIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`ForgotPasswordIn`, :class:`ResetPasswordIn`,
      :class:`VerifyEmailIn`, :class:`ResendVerificationIn`,
      :class:`LogoutIn`, :class:`ChangePasswordIn`, :class:`ValidateTokenIn`,
      :class:`AuthLinksConfig`
"""

from __future__ import annotations

from ._shared.base import BaseService
from ._shared.dto import ErrorCode, ServiceResult
from .auth.dto import (
    AuthLinksConfig,
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    ResendVerificationIn,
    ResetPasswordIn,
    ValidateTokenIn,
    VerifyEmailIn,
)
from .auth.service import AuthService

__all__ = [
    "BaseService",
    "ServiceResult",
    "ErrorCode",
    "AuthService",
    "AuthLinksConfig",
    "RegisterIn",
    "LoginIn",
    "RefreshIn",
    "ForgotPasswordIn",
    "ResetPasswordIn",
    "VerifyEmailIn",
    "ResendVerificationIn",
    "LogoutIn",
    "ChangePasswordIn",
    "ValidateTokenIn",
]
