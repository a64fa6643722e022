from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from cyclo.services._shared.ports import RevocationEntry, RevocationStore, token_digest


class RedisRevocationStore(RevocationStore):
    """
    Shared revocation registry for multi-instance deployments.

    One key per token, named after its SHA-256 digest, with a TTL equal to
    the token's remaining lifetime so Redis evicts entries once the codec
    would reject the token anyway. Neither keys nor values hold the raw
    token.
    """

    def __init__(
        self,
        r: redis.Redis,
        *,
        prefix: str = "revoked",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.r = r
        self.prefix = prefix
        self._clock = clock or (lambda: datetime.now(UTC))

    def _k(self, digest: str) -> str:
        return f"{self.prefix}:{digest}"

    def revoke(self, token: str, *, expires_at: datetime) -> None:
        now = self._clock()
        ttl = int(expires_at.timestamp() - now.timestamp())
        if ttl <= 0:
            return
        digest = token_digest(token)
        record = json.dumps(
            {
                "digest": digest,
                "expires_at": expires_at.isoformat(),
                "created_at": now.isoformat(),
            }
        )
        # NX keeps the first revocation time; idempotent
        self.r.set(self._k(digest), record, ex=max(1, ttl), nx=True)

    def is_revoked(self, token: str) -> bool:
        return cast(int, self.r.exists(self._k(token_digest(token)))) == 1

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Redis expires keys itself; only entries that outlived their deadline go."""
        cutoff = now or self._clock()
        removed = 0
        for entry in self.entries():
            if entry.expires_at <= cutoff:
                removed += int(self.r.delete(self._k(entry.digest)))
        return removed

    def entries(self) -> list[RevocationEntry]:
        out: list[RevocationEntry] = []
        for key in self.r.scan_iter(match=f"{self.prefix}:*"):
            raw = self.r.get(key)
            if raw is None:
                continue
            data = json.loads(raw)
            out.append(
                RevocationEntry(
                    digest=data["digest"],
                    expires_at=datetime.fromisoformat(data["expires_at"]),
                    created_at=datetime.fromisoformat(data["created_at"]),
                )
            )
        return sorted(out, key=lambda e: e.created_at)

    def clear(self) -> None:
        keys = list(self.r.scan_iter(match=f"{self.prefix}:*"))
        if keys:
            self.r.delete(*keys)
