"""User repository: identity lookups and profile writes."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from cyclo.models.user import User
from cyclo.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Lookups eagerly join the credential record because every auth flow that
    loads a user also needs its account.
    """

    model = User

    def _filterable_fields(self):
        return {
            "email": User.email,
            "username": User.username,
            "display_username": User.display_username,
        }

    def _updatable_fields(self):
        return {
            "first_name",
            "last_name",
            "bio",
            "avatar",
            "website",
            "location",
            "is_email_verified",
            "is_banned",
            "ban_reason",
            "last_login_at",
        }

    def _default_eagerload(self, stmt):
        return stmt.options(joinedload(User.account))

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = self._default_eagerload(select(User).where(User.email == email.lower().strip()))
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` if ``username`` is taken in either casing column."""
        lowered = username.lower()
        stmt = select(User.id).where(
            (User.username == lowered) | (User.display_username == username)
        )
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Writes ----------------------------

    def mark_email_verified(self, user: User) -> User:
        return self.update(user, is_email_verified=True)

    def touch_last_login(self, user: User, when: datetime) -> User:
        return self.update(user, last_login_at=when)
