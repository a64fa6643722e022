"""Pytest fixtures for an isolated database and a clock-controlled AuthService.

Every test gets fresh tables in an in-memory SQLite database. Services commit
through their units of work, so tables are recreated instead of wrapping the
test in a SAVEPOINT.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime

import pytest

from cyclo.core.config import TestingConfig
from cyclo.core.extensions import db as _db
from cyclo.core.wiring import AUTH_SERVICE_KEY
from cyclo.factory import create_app
from cyclo.infra.jwt.pyjwt_token_provider import JWTTokenProvider
from cyclo.services import AuthLinksConfig, AuthService
from cyclo.services._shared.ports import InMemoryRevocationStore, RecordingEmailDispatcher
from tests.helpers.utils import FrozenClock

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture()
def db(app):
    """Create all tables inside an application context, drop them afterwards.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        try:
            yield _db
        finally:
            _db.session.remove()
            _db.drop_all()


@pytest.fixture()
def session(db):
    """Return the scoped session the units of work also use."""
    return db.session


@pytest.fixture()
def clock() -> FrozenClock:
    """A manually advanced clock shared by the service and the token codec."""
    return FrozenClock(FIXED_NOW)


@pytest.fixture()
def token_provider(app, clock) -> JWTTokenProvider:
    return JWTTokenProvider.from_config(app.config, clock=clock)


@pytest.fixture()
def revocations(clock) -> InMemoryRevocationStore:
    return InMemoryRevocationStore(clock=clock)


@pytest.fixture()
def mailer() -> RecordingEmailDispatcher:
    return RecordingEmailDispatcher()


@pytest.fixture()
def service(app, db, token_provider, revocations, mailer, clock) -> AuthService:
    """Build an AuthService wired to in-memory doubles and the frozen clock."""
    return AuthService(
        token_provider=token_provider,
        revocation_store=revocations,
        email_dispatcher=mailer,
        links=AuthLinksConfig(frontend_url=app.config["FRONTEND_URL"]),
        clock=clock,
    )


@pytest.fixture()
def client(app, service):
    """Flask test client whose routes use the test :func:`service` fixture."""
    original = app.extensions[AUTH_SERVICE_KEY]
    app.extensions[AUTH_SERVICE_KEY] = service
    try:
        yield app.test_client()
    finally:
        app.extensions[AUTH_SERVICE_KEY] = original


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the SQLAlchemy session -----------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test touches the database."""
    from tests.factories import SQLAlchemySession

    if "db" not in request.fixturenames:
        yield
        return
    SQLAlchemySession.set(request.getfixturevalue("session"))
    try:
        yield
    finally:
        SQLAlchemySession.set(None)
