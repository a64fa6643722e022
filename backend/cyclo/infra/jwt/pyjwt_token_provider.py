# cyclo/infra/jwt/pyjwt_token_provider.py
from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from cyclo.core.config import resolve_token_secrets, resolve_token_ttls
from cyclo.services._shared.errors import (
    TokenExpiredError,
    TokenInvalidError,
    TokenTypeMismatchError,
)
from cyclo.services._shared.ports import TokenPayload, TokenProvider, TokenType

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "type", "iat", "exp", "jti"]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    HS256 adapter over PyJWT with one secret and one lifetime per token type.

    ``verify`` checks, in this order: the declared ``type`` claim (read
    without verification), the signature under the expected type's secret,
    then ``exp`` against a single clock read. PyJWT's own ``exp``/``iat``
    checks are disabled so the injected clock is the only time source.

    :param secrets: Token type -> signing secret.
    :param lifetimes: Token type -> lifetime in seconds.
    :param issuer: ``iss`` claim written and required.
    :param audience: ``aud`` claim written and required.
    :param clock: Returns the current aware UTC datetime.
    """

    secrets: Mapping[str, str]
    lifetimes: Mapping[str, int]
    issuer: str = "cyclo-backend"
    audience: str = "cyclo-frontend"
    clock: Callable[[], datetime] = field(default=_utcnow)

    def __post_init__(self) -> None:
        missing = [t for t in TokenType.ALL if not self.secrets.get(t)]
        if missing:
            raise ValueError(f"Missing signing secret for token types: {missing}")

    @classmethod
    def from_config(
        cls, config: Mapping[str, Any], *, clock: Callable[[], datetime] | None = None
    ) -> JWTTokenProvider:
        """Build a provider from a Flask config mapping."""
        return cls(
            secrets=resolve_token_secrets(config),
            lifetimes=resolve_token_ttls(config),
            issuer=str(config.get("JWT_ISSUER") or "cyclo-backend"),
            audience=str(config.get("JWT_AUDIENCE") or "cyclo-frontend"),
            clock=clock or _utcnow,
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _secret_for(self, token_type: str) -> str:
        try:
            return self.secrets[token_type]
        except KeyError:
            raise TokenInvalidError(f"Unknown token type: {token_type}") from None

    @staticmethod
    def _unverified_claims(token: str) -> dict[str, Any]:
        if not isinstance(token, str) or not token:
            raise TokenInvalidError("Token is empty")
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError("Malformed token") from exc

    def _decode_signed(self, token: str, token_type: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret_for(token_type),
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_exp": False, "verify_iat": False, "require": REQUIRED_CLAIMS},
            )
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError("Token signature or claims are invalid") from exc

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def issue(self, user_id: int, email: str, token_type: str) -> str:
        """
        Sign a new token for ``user_id`` scoped to ``token_type``.

        :raises ValueError: If ``token_type`` is unknown.
        """
        if token_type not in TokenType.ALL:
            raise ValueError(f"Unknown token type: {token_type}")
        now = self.clock()
        claims = {
            "sub": str(user_id),
            "email": email,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.expires_in(token_type))).timestamp()),
            "jti": uuid.uuid4().hex,
            "iss": self.issuer,
            "aud": self.audience,
        }
        return jwt.encode(claims, self.secrets[token_type], algorithm=ALGORITHM)

    def verify(self, token: str, expected_type: str) -> TokenPayload:
        """
        Verify ``token`` as an ``expected_type`` token.

        :raises TokenInvalidError: Garbage input or bad signature/claims.
        :raises TokenTypeMismatchError: Token was issued for another type.
        :raises TokenExpiredError: ``exp`` is not after the current time.
        """
        declared = self._unverified_claims(token).get("type")
        if declared != expected_type:
            raise TokenTypeMismatchError(expected_type, declared)

        claims = self._decode_signed(token, expected_type)
        now = self.clock().timestamp()
        if int(claims["exp"]) <= now:
            raise TokenExpiredError()
        try:
            return TokenPayload.from_claims(claims)
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalidError("Token claims are malformed") from exc

    def get_expires_at(self, token: str) -> datetime:
        """
        Return ``exp`` of a correctly signed token, expired or not.

        :raises TokenInvalidError: If the token cannot be verified.
        """
        declared = self._unverified_claims(token).get("type")
        claims = self._decode_signed(token, str(declared))
        return datetime.fromtimestamp(int(claims["exp"]), tz=UTC)

    def expires_in(self, token_type: str) -> int:
        try:
            return int(self.lifetimes[token_type])
        except KeyError:
            raise ValueError(f"Unknown token type: {token_type}") from None
