"""Account model: the credential record owned by the auth service."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cyclo.core.extensions import db
from cyclo.core.security import hash_password, verify_password

from .base import PKMixin, ReprMixin

if TYPE_CHECKING:
    from .user import User


class Account(PKMixin, ReprMixin, db.Model):
    """
    Credential record, one per user.

    Fields
    ------
    password_hash : str
        Salted slow hash (write via ``password``).
    email_verification_token / email_verification_expires :
        Pending verification link value and its deadline; both ``None`` once
        the address is verified or the token was swept.
    password_reset_token / password_reset_expires :
        Pending reset link value and its deadline; cleared after a reset.
    """

    __tablename__ = "accounts"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verification_token: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    email_verification_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    password_reset_token: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped[User] = relationship("User", back_populates="account")

    __table_args__ = (
        Index("ix_accounts_email_verification_token", "email_verification_token"),
        Index("ix_accounts_password_reset_token", "password_reset_token"),
        Index("ix_accounts_email_verification_expires", "email_verification_expires"),
        Index("ix_accounts_password_reset_expires", "password_reset_expires"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = hash_password(raw)

    def verify_password(self, raw: str) -> bool:
        return verify_password(self.password_hash, raw)

    # -------------------- One-time tokens --------------------
    def set_verification_token(self, token: str, expires_at: datetime) -> None:
        self.email_verification_token = token
        self.email_verification_expires = expires_at

    def clear_verification_token(self) -> None:
        self.email_verification_token = None
        self.email_verification_expires = None

    def set_reset_token(self, token: str, expires_at: datetime) -> None:
        self.password_reset_token = token
        self.password_reset_expires = expires_at

    def clear_reset_token(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None
