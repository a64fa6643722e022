"""Account repository: credential record lookups and token bookkeeping."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select, update
from sqlalchemy.orm import joinedload

from cyclo.models.account import Account
from cyclo.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Persistence-only repository for :class:`Account`.

    Token lookups match the stored value exactly; expiry is the caller's
    decision so the service can tell "unknown" apart from "expired".
    """

    model = Account

    def _filterable_fields(self):
        return {"user_id": Account.user_id}

    def _updatable_fields(self):
        return {
            "password_hash",
            "email_verification_token",
            "email_verification_expires",
            "password_reset_token",
            "password_reset_expires",
        }

    def _default_eagerload(self, stmt):
        return stmt.options(joinedload(Account.user))

    # ---------------------------- Lookups ----------------------------

    def get_by_user_id(self, user_id: int) -> Account | None:
        return self.find_one(user_id=user_id)

    def get_by_reset_token(self, token: str) -> Account | None:
        stmt = self._default_eagerload(
            select(Account).where(Account.password_reset_token == token)
        )
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def get_by_verification_token(self, token: str) -> Account | None:
        stmt = self._default_eagerload(
            select(Account).where(Account.email_verification_token == token)
        )
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Token writes ----------------------------

    def set_password(self, account: Account, raw_password: str) -> Account:
        account.password = raw_password  # setter hashes
        self.flush()
        return account

    def set_verification_token(self, account: Account, token: str, expires_at: datetime) -> Account:
        account.set_verification_token(token, expires_at)
        self.flush()
        return account

    def clear_verification_token(self, account: Account) -> Account:
        account.clear_verification_token()
        self.flush()
        return account

    def set_reset_token(self, account: Account, token: str, expires_at: datetime) -> Account:
        account.set_reset_token(token, expires_at)
        self.flush()
        return account

    def clear_reset_token(self, account: Account) -> Account:
        account.clear_reset_token()
        self.flush()
        return account

    # ---------------------------- Bulk cleanup ----------------------------

    def clear_expired_verification_tokens(self, now: datetime) -> int:
        """Null verification fields whose deadline passed. Returns rows touched."""
        stmt = (
            update(Account)
            .where(
                Account.email_verification_expires.is_not(None),
                Account.email_verification_expires < now,
            )
            .values(email_verification_token=None, email_verification_expires=None)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def clear_expired_reset_tokens(self, now: datetime) -> int:
        """Null reset fields whose deadline passed. Returns rows touched."""
        stmt = (
            update(Account)
            .where(
                Account.password_reset_expires.is_not(None),
                Account.password_reset_expires < now,
            )
            .values(password_reset_token=None, password_reset_expires=None)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
