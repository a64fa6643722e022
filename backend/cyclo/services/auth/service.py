# cyclo/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import asdict, is_dataclass
from datetime import datetime, timedelta
from typing import Any, TypeVar

from marshmallow import Schema, ValidationError
from sqlalchemy.exc import IntegrityError

from cyclo.core.security import burn_password_check
from cyclo.models import Account, User
from cyclo.schemas.auth import (
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
)
from cyclo.services._shared.base import BaseService, Clock, as_utc
from cyclo.services._shared.dto import ErrorCode, ServiceResult
from cyclo.services._shared.errors import (
    AlreadyVerifiedError,
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InvalidCurrentPasswordError,
    NotFoundError,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    TokenRevokedError,
    ValidationFailedError,
    violates,
)
from cyclo.services._shared.ports import (
    EmailDispatcher,
    RevocationEntry,
    RevocationStore,
    TokenPayload,
    TokenProvider,
    TokenType,
)
from cyclo.services.auth.dto import (
    AccessTokenOut,
    AuthLinksConfig,
    AuthOut,
    ChangePasswordIn,
    CleanupOut,
    ForgotPasswordIn,
    LoginIn,
    LogoutIn,
    MessageOut,
    RefreshIn,
    RegisterIn,
    ResendVerificationIn,
    ResetPasswordIn,
    TokenValidationOut,
    ValidateTokenIn,
    VerifyEmailIn,
)
from cyclo.services.auth.usernames import UsernamePair, generate_username
from cyclo.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

logger = logging.getLogger(__name__)

DTO = TypeVar("DTO")

MAX_USERNAME_ATTEMPTS = 5

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent"
)
RESEND_VERIFICATION_MESSAGE = (
    "If an account with that email exists and is unverified, a verification email has been sent"
)
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

_register_schema = RegisterSchema()
_login_schema = LoginSchema()
_refresh_schema = RefreshSchema()
_forgot_schema = ForgotPasswordSchema()
_reset_schema = ResetPasswordSchema()
_verify_schema = VerifyEmailSchema()
_resend_schema = ResendVerificationSchema()
_logout_schema = LogoutSchema()
_change_password_schema = ChangePasswordSchema()
_validate_token_schema = ValidateTokenSchema()
_profile_schema = UserProfileSchema()


class AuthService(BaseService):
    """
    Credential lifecycle service.

    Covers registration, login, access-token refresh, logout (revocation),
    forgot/reset and authenticated password change, email verification,
    access-token validation and cleanup of expired one-time tokens. Every
    public operation returns a
    :class:`~cyclo.services._shared.dto.ServiceResult` and never raises.

    Password-reset and email-verification tokens are issued by the token
    provider under their own type, stored on the account, and matched by
    exact value; clearing them on use makes them single-use.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        revocation_store: RevocationStore,
        email_dispatcher: EmailDispatcher,
        links: AuthLinksConfig | None = None,
        clock: Clock | None = None,
        username_generator: Callable[..., UsernamePair] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for issuing/verifying JWTs.
        :param revocation_store: Registry consulted on refresh and authentication.
        :param email_dispatcher: Outbound transactional email port.
        :param links: Frontend URLs embedded in emails.
        :param clock: Current-time source; share it with the token provider.
        :param username_generator: ``(display_name, email=...) -> UsernamePair``.
        """
        super().__init__(clock=clock)
        self.tokens = token_provider
        self.revocations = revocation_store
        self.email = email_dispatcher
        self.links = links or AuthLinksConfig()
        self.generate_username = username_generator or generate_username

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn | Mapping[str, Any]) -> ServiceResult:
        """
        Create a user and its account, email a verification link, and sign in.

        Success data: ``{user, access_token, refresh_token, expires_in,
        verification_email_sent}``.
        """
        return self.run_operation(
            "registration", lambda: self._register(dto), failure_message="Failed to register user"
        )

    def _register(self, raw: RegisterIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_register_schema, RegisterIn, raw)
        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_email(data.email):
                    raise ConflictError("User with this email already exists")

                pair = self._unique_username(uow, data.display_name, data.email)
                user = uow.users.add(
                    User(
                        email=data.email,
                        username=pair.username,
                        display_username=pair.display_username,
                        first_name=data.first_name,
                        last_name=data.last_name,
                    )
                )
                account = Account(user=user)
                account.password = data.password
                uow.accounts.add(account)

                verification_token = self.tokens.issue(
                    user.id, user.email, TokenType.EMAIL_VERIFICATION
                )
                uow.accounts.set_verification_token(
                    account,
                    verification_token,
                    self._expiry_for(TokenType.EMAIL_VERIFICATION),
                )
                user_id, email, greeting = user.id, user.email, user.greeting_name
                profile = self._profile(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent registration
            if violates(exc, "email"):
                raise ConflictError("User with this email already exists") from exc
            raise ConflictError(
                "Username is already taken", code=ErrorCode.USERNAME_TAKEN
            ) from exc

        logger.info("user registered", extra={"user_id": user_id})
        sent = self._dispatch(
            "verification",
            self.email.send_verification_email,
            email,
            greeting,
            self.links.verify_link(verification_token),
        )
        return AuthOut(
            user=profile,
            access_token=self.tokens.issue(user_id, email, TokenType.ACCESS),
            refresh_token=self.tokens.issue(user_id, email, TokenType.REFRESH),
            expires_in=self.tokens.expires_in(TokenType.ACCESS),
            verification_email_sent=sent,
        ).to_dict()

    def _unique_username(
        self, uow: SQLAlchemyUnitOfWork, display_name: str, email: str
    ) -> UsernamePair:
        for _ in range(MAX_USERNAME_ATTEMPTS):
            pair = self.generate_username(display_name, email=email)
            if not uow.users.exists_by_username(pair.display_username):
                return pair
        raise ConflictError("Username is already taken", code=ErrorCode.USERNAME_TAKEN)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn | Mapping[str, Any]) -> ServiceResult:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email and wrong password produce the same error and cost the
        same hashing work. A banned account is reported with its ban reason.
        """
        return self.run_operation(
            "login", lambda: self._login(dto), failure_message="Failed to login user"
        )

    def _login(self, raw: LoginIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_login_schema, LoginIn, raw)
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(data.email)
            account = user.account if user is not None else None
            if user is None or account is None:
                burn_password_check(data.password)
                raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
            if user.is_banned:
                raise ForbiddenError(user.ban_reason or "Account has been banned")
            if not account.verify_password(data.password):
                raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

            uow.users.touch_last_login(user, self.clock())
            user_id, email = user.id, user.email
            profile = self._profile(user)

        return AuthOut(
            user=profile,
            access_token=self.tokens.issue(user_id, email, TokenType.ACCESS),
            refresh_token=self.tokens.issue(user_id, email, TokenType.REFRESH),
            expires_in=self.tokens.expires_in(TokenType.ACCESS),
        ).to_dict()

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn | Mapping[str, Any]) -> ServiceResult:
        """
        Exchange a valid refresh token for a new access token.

        The refresh token itself is not rotated; it stays usable until it
        expires or is revoked through :meth:`logout`.
        """
        return self.run_operation(
            "token_refresh", lambda: self._refresh(dto), failure_message="Failed to refresh token"
        )

    def _refresh(self, raw: RefreshIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_refresh_schema, RefreshIn, raw)
        try:
            payload = self.tokens.verify(data.refresh_token, TokenType.REFRESH)
        except TokenError as exc:
            raise TokenInvalidError("Invalid refresh token") from exc

        if self.revocations.is_revoked(data.refresh_token):
            raise TokenRevokedError()

        with self.ro_uow() as uow:
            user = uow.users.get(payload.user_id)
            if user is None or user.is_banned:
                raise NotFoundError("User not found or banned")
            user_id, email = user.id, user.email

        return AccessTokenOut(
            access_token=self.tokens.issue(user_id, email, TokenType.ACCESS),
            expires_in=self.tokens.expires_in(TokenType.ACCESS),
        ).to_dict()

    # ------------------------------------------------------------------ #
    # Passwords
    # ------------------------------------------------------------------ #

    def forgot_password(self, dto: ForgotPasswordIn | Mapping[str, Any]) -> ServiceResult:
        """Start a password reset. The response never reveals whether the email exists."""
        return self.run_operation(
            "forgot_password",
            lambda: self._forgot_password(dto),
            failure_message="Failed to process password reset request",
        )

    def _forgot_password(self, raw: ForgotPasswordIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_forgot_schema, ForgotPasswordIn, raw)
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(data.email)
            if user is None or user.account is None:
                return MessageOut(FORGOT_PASSWORD_MESSAGE).to_dict()

            reset_token = self.tokens.issue(user.id, user.email, TokenType.PASSWORD_RESET)
            uow.accounts.set_reset_token(
                user.account, reset_token, self._expiry_for(TokenType.PASSWORD_RESET)
            )
            email, greeting = user.email, user.greeting_name

        self._dispatch(
            "password_reset",
            self.email.send_password_reset_email,
            email,
            greeting,
            self.links.reset_link(reset_token),
        )
        return MessageOut(FORGOT_PASSWORD_MESSAGE).to_dict()

    def reset_password(self, dto: ResetPasswordIn | Mapping[str, Any]) -> ServiceResult:
        """Consume a reset token and set a new password."""
        return self.run_operation(
            "reset_password",
            lambda: self._reset_password(dto),
            failure_message="Failed to reset password",
        )

    def _reset_password(self, raw: ResetPasswordIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_reset_schema, ResetPasswordIn, raw)
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_reset_token(data.token)
            if account is None:
                raise TokenInvalidError("Invalid or expired reset token")
            if self._is_past(account.password_reset_expires):
                raise TokenExpiredError("Reset token has expired")

            uow.accounts.set_password(account, data.password)
            uow.accounts.clear_reset_token(account)
            email, greeting = account.user.email, account.user.greeting_name

        self._dispatch(
            "password_changed",
            self.email.send_password_changed_email,
            email,
            greeting,
            self.links.login_link(),
        )
        return MessageOut("Password has been reset successfully").to_dict()

    def change_password(
        self, user_id: int, dto: ChangePasswordIn | Mapping[str, Any]
    ) -> ServiceResult:
        """
        Replace the password of a signed-in user after confirming the current one.

        A pending reset token is discarded along with the old password. Tokens
        already issued stay valid until they expire or are revoked.
        """
        return self.run_operation(
            "change_password",
            lambda: self._change_password(user_id, dto),
            failure_message="Failed to change password",
        )

    def _change_password(
        self, user_id: int, raw: ChangePasswordIn | Mapping[str, Any]
    ) -> dict[str, Any]:
        data = self._load(_change_password_schema, ChangePasswordIn, raw)
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User not found")
            if user.is_banned:
                raise ForbiddenError(user.ban_reason or "Account has been banned")
            account = uow.accounts.get_by_user_id(user.id)
            if account is None or not account.verify_password(data.current_password):
                raise InvalidCurrentPasswordError("Current password is incorrect")

            uow.accounts.set_password(account, data.new_password)
            uow.accounts.clear_reset_token(account)
            email, greeting = user.email, user.greeting_name

        logger.info("password changed", extra={"user_id": user_id})
        self._dispatch(
            "password_changed",
            self.email.send_password_changed_email,
            email,
            greeting,
            self.links.login_link(),
        )
        return MessageOut("Password changed successfully").to_dict()

    # ------------------------------------------------------------------ #
    # Email verification
    # ------------------------------------------------------------------ #

    def verify_email(self, dto: VerifyEmailIn | Mapping[str, Any]) -> ServiceResult:
        """Consume a verification token and mark the address verified."""
        return self.run_operation(
            "email_verification",
            lambda: self._verify_email(dto),
            failure_message="Failed to verify email",
        )

    def _verify_email(self, raw: VerifyEmailIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_verify_schema, VerifyEmailIn, raw)
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_verification_token(data.token)
            if account is None:
                raise TokenInvalidError("Invalid or expired verification token")
            if self._is_past(account.email_verification_expires):
                raise TokenExpiredError("Verification token has expired")

            user = account.user
            uow.users.mark_email_verified(user)
            uow.accounts.clear_verification_token(account)
            email, greeting = user.email, user.greeting_name

        self._dispatch(
            "welcome",
            self.email.send_welcome_email,
            email,
            greeting,
            self.links.welcome_link(),
        )
        return MessageOut("Email verified successfully").to_dict()

    def resend_verification(
        self, dto: ResendVerificationIn | Mapping[str, Any]
    ) -> ServiceResult:
        """
        Issue a new verification token, replacing any pending one.

        Unknown emails get the same success message as known ones.
        """
        return self.run_operation(
            "resend_verification",
            lambda: self._resend_verification(dto),
            failure_message="Failed to resend verification email",
        )

    def _resend_verification(
        self, raw: ResendVerificationIn | Mapping[str, Any]
    ) -> dict[str, Any]:
        data = self._load(_resend_schema, ResendVerificationIn, raw)
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(data.email)
            if user is None or user.account is None:
                return MessageOut(RESEND_VERIFICATION_MESSAGE).to_dict()
            if user.is_email_verified:
                raise AlreadyVerifiedError("Email is already verified")

            token = self.tokens.issue(user.id, user.email, TokenType.EMAIL_VERIFICATION)
            uow.accounts.set_verification_token(
                user.account, token, self._expiry_for(TokenType.EMAIL_VERIFICATION)
            )
            email, greeting = user.email, user.greeting_name

        self._dispatch(
            "verification",
            self.email.send_verification_email,
            email,
            greeting,
            self.links.verify_link(token),
        )
        return MessageOut(RESEND_VERIFICATION_MESSAGE).to_dict()

    # ------------------------------------------------------------------ #
    # Logout / revocation
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn | Mapping[str, Any]) -> ServiceResult:
        """
        Revoke the presented token.

        Succeeds for repeated calls and for tokens that cannot be decoded.
        """
        return self.run_operation(
            "logout", lambda: self._logout(dto), failure_message="Failed to logout"
        )

    def _logout(self, raw: LogoutIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_logout_schema, LogoutIn, raw)
        self.revoke_token(data.token)
        return MessageOut("Logged out successfully").to_dict()

    def revoke_token(self, token: str) -> bool:
        """
        Record ``token`` as revoked until its natural expiry.

        :param token: Any token issued by this service.
        :type token: str
        :returns: ``True`` when an entry was recorded; ``False`` when the token
            could not be decoded or had already expired.
        :rtype: bool
        """
        try:
            expires_at = self.tokens.get_expires_at(token)
        except TokenError:
            logger.info("revocation skipped: token could not be decoded")
            return False
        if expires_at <= self.clock():
            return False
        self.revocations.revoke(token, expires_at=expires_at)
        return True

    def authenticate(self, token: str) -> ServiceResult:
        """
        Authorize a request bearing ``token``.

        Success data is the verified :class:`TokenPayload` of an unrevoked
        access token.
        """
        return self.run_operation(
            "authenticate",
            lambda: self._authenticate(token),
            failure_message="Failed to authenticate request",
        )

    def _authenticate(self, token: str) -> TokenPayload:
        payload = self.tokens.verify(token, TokenType.ACCESS)
        if self.revocations.is_revoked(token):
            raise TokenRevokedError()
        return payload

    def validate_token(self, dto: ValidateTokenIn | Mapping[str, Any]) -> ServiceResult:
        """
        Check an access token the way :meth:`authenticate` does and describe it.

        Success data: ``{valid, user, expires_at}``.
        """
        return self.run_operation(
            "validate_token",
            lambda: self._validate_token(dto),
            failure_message="Failed to validate token",
        )

    def _validate_token(self, raw: ValidateTokenIn | Mapping[str, Any]) -> dict[str, Any]:
        data = self._load(_validate_token_schema, ValidateTokenIn, raw)
        payload = self._authenticate(data.token)
        return TokenValidationOut(
            user=self._get_profile(payload.user_id),
            expires_at=payload.expires_at,
        ).to_dict()

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_profile(self, user_id: int) -> ServiceResult:
        return self.run_operation(
            "get_profile",
            lambda: self._get_profile(user_id),
            failure_message="Failed to get user profile",
        )

    def _get_profile(self, user_id: int) -> dict[str, Any]:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User not found")
            return self._profile(user)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def cleanup_expired_tokens(self) -> ServiceResult:
        """
        Null expired verification and reset fields, and sweep the revocation
        registry.

        The two credential sweeps are independent: an account with only an
        expired reset token loses that token even if its verification token
        is still valid, and vice versa.
        """
        return self.run_operation(
            "cleanup_tokens",
            self._cleanup_expired_tokens,
            failure_message="Failed to clean up expired tokens",
        )

    def _cleanup_expired_tokens(self) -> dict[str, Any]:
        now = self.clock()
        with self.rw_uow() as uow:
            verification = uow.accounts.clear_expired_verification_tokens(now)
            reset = uow.accounts.clear_expired_reset_tokens(now)
        swept = self.revocations.sweep_expired(now)
        logger.info(
            "expired tokens cleaned: %d verification, %d reset, %d revocations",
            verification,
            reset,
            swept,
            extra={"operation": "cleanup_tokens", "count": verification + reset + swept},
        )
        return CleanupOut(verification, reset, swept).to_dict()

    def sweep_revocations(self) -> int:
        """Drop revocation entries past their expiry; return how many went."""
        swept = self.revocations.sweep_expired(self.clock())
        logger.info("revocations swept", extra={"operation": "sweep", "count": swept})
        return swept

    def revocation_entries(self) -> list[RevocationEntry]:
        """Return recorded revocations, oldest first, including unswept expired ones."""
        return self.revocations.entries()

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    @staticmethod
    def _load(schema: Schema, dto_cls: type[DTO], raw: Any) -> DTO:
        """Validate ``raw`` (DTO or mapping) and rebuild a normalized DTO."""
        if is_dataclass(raw) and not isinstance(raw, type):
            data: Any = asdict(raw)
        elif isinstance(raw, Mapping):
            data = dict(raw)
        else:
            raise ValidationFailedError({"_schema": ["Invalid input type."]})
        try:
            loaded = schema.load(data)
        except ValidationError as exc:
            raise ValidationFailedError(exc.normalized_messages()) from exc
        return dto_cls(**loaded)

    def _expiry_for(self, token_type: str) -> datetime:
        return self.clock() + timedelta(seconds=self.tokens.expires_in(token_type))

    def _is_past(self, deadline: datetime | None) -> bool:
        return deadline is None or self.clock() > as_utc(deadline)

    @staticmethod
    def _profile(user: User) -> dict[str, Any]:
        return _profile_schema.dump(user)

    @staticmethod
    def _dispatch(kind: str, send: Callable[[str, str, str], None], *args: str) -> bool:
        """Send one email; a failure is logged and reported, never raised."""
        try:
            send(*args)
        except Exception:
            logger.warning("%s email could not be sent", kind, exc_info=True)
            return False
        return True
