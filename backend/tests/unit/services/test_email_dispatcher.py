"""Unit tests for the email dispatcher adapters."""

from __future__ import annotations

import logging

import pytest

from cyclo.repositories import AccountRepository
from cyclo.services import AuthService
from cyclo.services._shared.ports import LoggingEmailDispatcher
from cyclo.services._shared.ports.email_dispatcher import DEFAULT_SENDER, redact_link
from tests.factories.user import UserFactory
from tests.helpers.utils import STRONG_PASSWORD

DISPATCH_LOGGER = "cyclo.services._shared.ports.email_dispatcher"


@pytest.mark.parametrize(
    ("link", "expected"),
    [
        (
            "https://app.cyclo.test/reset-password?token=abc.def.ghi",
            "https://app.cyclo.test/reset-password?token=***",
        ),
        (
            "https://app.cyclo.test/verify-email?ref=mail&token=abc",
            "https://app.cyclo.test/verify-email?ref=mail&token=***",
        ),
        ("https://app.cyclo.test/login", "https://app.cyclo.test/login"),
    ],
)
def test_redact_link(link, expected):
    assert redact_link(link) == expected


def test_default_sender():
    assert LoggingEmailDispatcher().sender == DEFAULT_SENDER


def test_logged_message_keeps_kind_and_recipient(caplog):
    dispatcher = LoggingEmailDispatcher(sender="ops@cyclo.test")

    with caplog.at_level(logging.INFO, logger=DISPATCH_LOGGER):
        dispatcher.send_verification_email(
            "bob@example.com", "Bob", "https://app.cyclo.test/verify-email?token=live-token"
        )

    assert "email verification queued from ops@cyclo.test to bob@example.com" in caplog.text
    assert "live-token" not in caplog.text


class TestLoggingDispatcherWithService:
    @pytest.fixture()
    def logging_service(self, app, db, token_provider, revocations, clock):
        return AuthService(
            token_provider=token_provider,
            revocation_store=revocations,
            email_dispatcher=LoggingEmailDispatcher(),
            clock=clock,
        )

    def test_reset_token_never_reaches_the_log(self, logging_service, session, caplog):
        user = UserFactory(email="bob@example.com")

        with caplog.at_level(logging.DEBUG):
            assert logging_service.forgot_password({"email": "bob@example.com"}).success

        session.expire_all()
        token = AccountRepository(session=session).get_by_user_id(user.id).password_reset_token
        assert token
        assert "password_reset queued" in caplog.text
        assert token not in caplog.text

    def test_verification_token_never_reaches_the_log(self, logging_service, session, caplog):
        with caplog.at_level(logging.DEBUG):
            result = logging_service.register(
                {
                    "email": "carol@example.com",
                    "password": STRONG_PASSWORD,
                    "display_name": "Carol",
                }
            )
        assert result.success

        session.expire_all()
        account = AccountRepository(session=session).get_by_user_id(result.data["user"]["id"])
        assert account.email_verification_token
        assert account.email_verification_token not in caplog.text
