"""Unit tests for InMemoryRevocationStore."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest
from freezegun import freeze_time

from cyclo.services._shared.ports import InMemoryRevocationStore, token_digest
from tests.helpers.utils import FrozenClock

START = datetime(2026, 5, 1, 10, 0, tzinfo=UTC)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture()
def store(clock) -> InMemoryRevocationStore:
    return InMemoryRevocationStore(clock=clock)


def test_revoke_then_is_revoked(store):
    assert not store.is_revoked("tok-1")

    store.revoke("tok-1", expires_at=START + timedelta(minutes=15))

    assert store.is_revoked("tok-1")
    assert not store.is_revoked("tok-2")


def test_revoke_is_idempotent_and_keeps_first_entry(store, clock):
    store.revoke("tok-1", expires_at=START + timedelta(minutes=15))
    clock.advance(minutes=5)
    store.revoke("tok-1", expires_at=START + timedelta(hours=2))

    assert len(store) == 1
    (entry,) = store.entries()
    assert entry.created_at == START
    assert entry.expires_at == START + timedelta(minutes=15)


def test_sweep_drops_only_expired_entries(store):
    store.revoke("short", expires_at=START + timedelta(minutes=15))
    store.revoke("long", expires_at=START + timedelta(days=7))

    removed = store.sweep_expired(START + timedelta(minutes=15))

    assert removed == 1
    assert not store.is_revoked("short")
    assert store.is_revoked("long")


def test_sweep_defaults_to_store_clock(store, clock):
    store.revoke("tok", expires_at=START + timedelta(minutes=1))
    clock.advance(minutes=2)

    assert store.sweep_expired() == 1
    assert len(store) == 0


def test_default_clock_is_wall_time():
    store = InMemoryRevocationStore()
    with freeze_time("2026-05-01 10:00:00"):
        store.revoke("tok", expires_at=START + timedelta(seconds=30))
        assert store.sweep_expired() == 0
    with freeze_time("2026-05-01 10:01:00"):
        assert store.sweep_expired() == 1


def test_clear(store):
    store.revoke("a", expires_at=START + timedelta(minutes=1))
    store.revoke("b", expires_at=START + timedelta(minutes=1))

    store.clear()

    assert store.entries() == []


def test_concurrent_revocations_are_all_recorded(store):
    expires = START + timedelta(hours=1)

    def worker(offset: int) -> None:
        for i in range(50):
            store.revoke(f"tok-{offset}-{i}", expires_at=expires)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 400


def test_entries_expose_digests_in_revocation_order(store, clock):
    store.revoke("second-live-token", expires_at=START + timedelta(hours=1))
    clock.advance(seconds=-30)
    store.revoke("first-live-token", expires_at=START + timedelta(hours=1))

    digests = [e.digest for e in store.entries()]

    assert digests == [token_digest("first-live-token"), token_digest("second-live-token")]
    assert "first-live-token" not in digests
