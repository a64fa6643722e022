import pytest

from cyclo.models import User
from cyclo.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from cyclo.uow import SQLAlchemyUnitOfWork as RWuow
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, db):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(User(email="ro@example.com", username="ro", display_username="Ro"))
            uow.session.flush()

    def test_allows_reads(self, db):
        UserFactory(email="reader@example.com")

        with ROuow() as uow:
            assert uow.users.get_by_email("reader@example.com") is not None

    def test_disallows_commit(self, db):
        """
        RO UoW must reject commit().
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_always_rolls_back_changes(self, db):
        """
        Any attempted modifications must not persist after RO UoW exits.
        """
        user = UserFactory(email="keep@example.com")
        user_id = user.id

        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            u = uow.session.get(User, user_id)
            u.email = "mutated-in-ro@example.com"
            uow.session.flush()

        with RWuow() as uow:
            assert uow.session.get(User, user_id).email == "keep@example.com"

    def test_guard_is_removed_on_exit(self, db):
        with ROuow():
            pass

        with RWuow() as uow:
            uow.users.add(User(email="w@example.com", username="w", display_username="W"))

        assert db.session.query(User).count() == 1
