from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol


class TokenType:
    """Purposes a token can be issued for. Each has its own secret and lifetime."""

    ACCESS = "access"
    REFRESH = "refresh"
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"

    ALL = (ACCESS, REFRESH, EMAIL_VERIFICATION, PASSWORD_RESET)


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """
    Verified claims of an issued token.

    :param user_id: Subject user id (``sub`` claim).
    :type user_id: int
    :param email: Email the token was issued to.
    :type email: str
    :param type: Token purpose, one of :attr:`TokenType.ALL`.
    :type type: str
    :param jti: Unique token id.
    :type jti: str
    :param issued_at: ``iat`` as an aware UTC datetime.
    :type issued_at: datetime
    :param expires_at: ``exp`` as an aware UTC datetime.
    :type expires_at: datetime
    """

    user_id: int
    email: str
    type: str
    jti: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> TokenPayload:
        return cls(
            user_id=int(claims["sub"]),
            email=str(claims.get("email", "")),
            type=str(claims["type"]),
            jti=str(claims.get("jti", "")),
            issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
        )


class TokenProvider(Protocol):
    """
    Port for issuing and verifying purpose-scoped signed tokens.

    ``verify`` raises :class:`~cyclo.services._shared.errors.TokenInvalidError`,
    :class:`~cyclo.services._shared.errors.TokenTypeMismatchError` or
    :class:`~cyclo.services._shared.errors.TokenExpiredError`.
    """

    def issue(self, user_id: int, email: str, token_type: str) -> str: ...

    def verify(self, token: str, expected_type: str) -> TokenPayload: ...

    def get_expires_at(self, token: str) -> datetime: ...

    def expires_in(self, token_type: str) -> int: ...
