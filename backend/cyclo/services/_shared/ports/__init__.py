"""
cyclo.services._shared.ports
============================

Collection of *ports* (hexagonal interfaces) the auth service depends on.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`: issuing and verifying purpose-scoped
    signed tokens, plus :class:`~.TokenType` and :class:`~.TokenPayload`.

- :mod:`revocation_store`:
    Defines :class:`~.RevocationStore` and the process-local
    :class:`~.InMemoryRevocationStore`.

- :mod:`email_dispatcher`:
    Defines :class:`~.EmailDispatcher` with the logging and recording adapters.

Concrete infrastructure adapters (PyJWT, Redis) live under ``cyclo.infra``.
"""

from __future__ import annotations

from .email_dispatcher import (
    EmailDispatcher,
    EmailDispatchError,
    LoggingEmailDispatcher,
    RecordingEmailDispatcher,
    SentEmail,
)
from .revocation_store import (
    InMemoryRevocationStore,
    RevocationEntry,
    RevocationStore,
    token_digest,
)
from .token_provider import TokenPayload, TokenProvider, TokenType

__all__ = [
    "TokenProvider",
    "TokenPayload",
    "TokenType",
    "RevocationStore",
    "RevocationEntry",
    "InMemoryRevocationStore",
    "token_digest",
    "EmailDispatcher",
    "EmailDispatchError",
    "LoggingEmailDispatcher",
    "RecordingEmailDispatcher",
    "SentEmail",
]
