"""Unit tests for UserRepository."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from cyclo.repositories.user import UserRepository
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session=session)

    def test_get_by_email_is_case_insensitive(self, repo):
        u = UserFactory(email="alice@example.com")

        fetched = repo.get_by_email("  ALICE@example.com ")

        assert fetched is not None
        assert fetched.id == u.id
        assert fetched.account is not None

    def test_exists_by_email(self, repo):
        UserFactory(email="bob@example.com")

        assert repo.exists_by_email("Bob@Example.com")
        assert not repo.exists_by_email("nonexistent@example.com")

    def test_exists_by_username_checks_both_columns(self, repo):
        UserFactory(username="fastrider", display_username="FastRider")

        assert repo.exists_by_username("FastRider")
        assert repo.exists_by_username("FASTRIDER")
        assert not repo.exists_by_username("SlowRider")

    def test_find_one_ignores_unknown_filters(self, repo):
        u = UserFactory(username="carol")

        assert repo.find_one(username="carol", password_hash="x").id == u.id

    def test_mark_email_verified(self, repo, session):
        u = UserFactory()

        repo.mark_email_verified(u)
        session.commit()

        assert repo.get(u.id).is_email_verified is True

    def test_touch_last_login(self, repo, session):
        u = UserFactory()
        when = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)

        repo.touch_last_login(u, when)
        session.commit()
        session.expire_all()

        assert repo.get(u.id).last_login_at.replace(tzinfo=UTC) == when

    def test_update_rejects_non_whitelisted_fields(self, repo):
        u = UserFactory()

        with pytest.raises(ValueError, match="non-updatable"):
            repo.update(u, email="hijack@example.com")
