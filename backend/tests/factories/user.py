"""Factories for :class:`~cyclo.models.user.User`."""

from __future__ import annotations

import factory

from cyclo.models.user import User, UserRole
from tests.factories import BaseFactory


class UserFactory(BaseFactory):
    """Persist a user together with its credential record.

    Pass ``account=None`` for a user without an account, or
    ``account__raw_password=...`` to choose the password.
    """

    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"rider{n}")
    display_username = factory.Sequence(lambda n: f"Rider{n}")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = UserRole.USER
    is_email_verified = False
    is_banned = False

    account = factory.RelatedFactory(
        "tests.factories.account.AccountFactory", factory_related_name="user"
    )

    class Params:
        verified = factory.Trait(is_email_verified=True)
        banned = factory.Trait(is_banned=True, ban_reason="Spamming the feed")
