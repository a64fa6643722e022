from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "noreply@cyclo.app"
SECRET_QUERY_KEYS = frozenset({"token"})


def redact_link(link: str) -> str:
    """Return ``link`` with one-time token query values masked."""
    parts = urlsplit(link)
    if not parts.query:
        return link
    query = [
        (key, "***" if key in SECRET_QUERY_KEYS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))


class EmailDispatchError(RuntimeError):
    """Raised by dispatchers that fail to hand a message off."""


class EmailDispatcher(Protocol):
    """
    Port for transactional email. Delivery itself is out of scope; adapters
    hand the message to whatever transport the deployment provides.
    """

    def send_verification_email(self, recipient: str, display_name: str, link: str) -> None: ...
    def send_password_reset_email(self, recipient: str, display_name: str, link: str) -> None: ...
    def send_welcome_email(self, recipient: str, display_name: str, link: str) -> None: ...
    def send_password_changed_email(self, recipient: str, display_name: str, link: str) -> None: ...


@dataclass(frozen=True, slots=True)
class SentEmail:
    kind: str
    recipient: str
    display_name: str
    link: str


class LoggingEmailDispatcher(EmailDispatcher):
    """
    Default adapter: logs each message instead of sending it.

    Links are logged through :func:`redact_link`; a live one-time token never
    reaches the log.
    """

    def __init__(self, sender: str = DEFAULT_SENDER) -> None:
        self.sender = sender

    def _log(self, kind: str, recipient: str, display_name: str, link: str) -> None:
        logger.info(
            "email %s queued from %s to %s (%s): %s",
            kind,
            self.sender,
            recipient,
            display_name,
            redact_link(link),
        )

    def send_verification_email(self, recipient: str, display_name: str, link: str) -> None:
        self._log("verification", recipient, display_name, link)

    def send_password_reset_email(self, recipient: str, display_name: str, link: str) -> None:
        self._log("password_reset", recipient, display_name, link)

    def send_welcome_email(self, recipient: str, display_name: str, link: str) -> None:
        self._log("welcome", recipient, display_name, link)

    def send_password_changed_email(self, recipient: str, display_name: str, link: str) -> None:
        self._log("password_changed", recipient, display_name, link)


class RecordingEmailDispatcher(EmailDispatcher):
    """
    Test adapter that keeps every message in :attr:`sent`.

    :param fail: When ``True``, every send raises :class:`EmailDispatchError`
        after nothing is recorded.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[SentEmail] = []

    def _record(self, kind: str, recipient: str, display_name: str, link: str) -> None:
        if self.fail:
            raise EmailDispatchError(f"Could not send {kind} email to {recipient}")
        self.sent.append(SentEmail(kind, recipient, display_name, link))

    def of_kind(self, kind: str) -> list[SentEmail]:
        return [m for m in self.sent if m.kind == kind]

    def send_verification_email(self, recipient: str, display_name: str, link: str) -> None:
        self._record("verification", recipient, display_name, link)

    def send_password_reset_email(self, recipient: str, display_name: str, link: str) -> None:
        self._record("password_reset", recipient, display_name, link)

    def send_welcome_email(self, recipient: str, display_name: str, link: str) -> None:
        self._record("welcome", recipient, display_name, link)

    def send_password_changed_email(self, recipient: str, display_name: str, link: str) -> None:
        self._record("password_changed", recipient, display_name, link)
