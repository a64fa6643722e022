from __future__ import annotations

import hashlib
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


def token_digest(token: str) -> str:
    """Return the hex SHA-256 digest registries key revoked tokens by."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class RevocationEntry:
    """
    One revoked token.

    :param digest: SHA-256 digest of the revoked token (see :func:`token_digest`).
    :type digest: str
    :param expires_at: When the token would have expired on its own.
    :type expires_at: datetime
    :param created_at: When it was revoked.
    :type created_at: datetime
    """

    digest: str
    expires_at: datetime
    created_at: datetime


class RevocationStore(Protocol):
    """
    Registry of tokens revoked before their natural expiry.

    Methods are expected to be idempotent. Dropping entries whose
    ``expires_at`` has passed never changes any answer that matters, because
    the codec already rejects expired tokens. Registries hold digests only;
    a listing can be shown to operators without handing out live tokens.
    """

    def revoke(self, token: str, *, expires_at: datetime) -> None: ...
    def is_revoked(self, token: str) -> bool: ...
    def sweep_expired(self, now: datetime | None = None) -> int: ...
    def entries(self) -> list[RevocationEntry]: ...
    def clear(self) -> None: ...


class InMemoryRevocationStore(RevocationStore):
    """
    Process-local revocation registry.

    A dict keyed by token digest under a :class:`threading.Lock`. Suitable
    for a single process and for tests; entries are lost on restart.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._entries: dict[str, RevocationEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def revoke(self, token: str, *, expires_at: datetime) -> None:
        digest = token_digest(token)
        with self._lock:
            if digest in self._entries:
                return
            self._entries[digest] = RevocationEntry(
                digest=digest, expires_at=expires_at, created_at=self._clock()
            )

    def is_revoked(self, token: str) -> bool:
        digest = token_digest(token)
        with self._lock:
            return digest in self._entries

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Drop entries past their expiry; return how many were removed."""
        cutoff = now or self._clock()
        with self._lock:
            stale = [d for d, e in self._entries.items() if e.expires_at <= cutoff]
            for digest in stale:
                del self._entries[digest]
        return len(stale)

    def entries(self) -> list[RevocationEntry]:
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: e.created_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
