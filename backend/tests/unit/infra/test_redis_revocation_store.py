# tests/unit/infra/test_redis_revocation_store.py
"""
Unit tests for RedisRevocationStore using fakeredis.

These tests exercise the main flows:
- revoke + is_revoked
- idempotent revoke (NX)
- TTL tied to the token's remaining lifetime
- sweep_expired / entries / clear

They use fakeredis.FakeRedis so they run entirely in-memory.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from cyclo.infra.redis.redis_revocation_store import RedisRevocationStore
from tests.helpers.utils import FrozenClock

START = datetime(2026, 5, 1, 10, 0, tzinfo=UTC)


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def store(fake_redis, clock):
    """Provide a RedisRevocationStore backed by FakeRedis."""
    return RedisRevocationStore(r=fake_redis, clock=clock)


def _key(token: str) -> str:
    return "revoked:" + hashlib.sha256(token.encode()).hexdigest()


def test_revoke_and_lookup(store):
    store.revoke("jwt-a", expires_at=START + timedelta(minutes=15))

    assert store.is_revoked("jwt-a")
    assert not store.is_revoked("jwt-b")


def test_raw_token_is_not_used_as_key(store, fake_redis):
    store.revoke("jwt-a", expires_at=START + timedelta(minutes=15))

    keys = [k.decode() for k in fake_redis.keys("*")]
    assert keys == [_key("jwt-a")]


def test_ttl_matches_remaining_lifetime(store, fake_redis):
    store.revoke("jwt-a", expires_at=START + timedelta(minutes=15))

    ttl = fake_redis.ttl(_key("jwt-a"))
    assert 0 < ttl <= 15 * 60


def test_already_expired_token_is_not_stored(store, fake_redis):
    store.revoke("jwt-old", expires_at=START - timedelta(seconds=1))

    assert not store.is_revoked("jwt-old")
    assert fake_redis.dbsize() == 0


def test_second_revoke_keeps_first_record(store, clock):
    store.revoke("jwt-a", expires_at=START + timedelta(minutes=15))
    clock.advance(minutes=1)
    store.revoke("jwt-a", expires_at=START + timedelta(minutes=15))

    (entry,) = store.entries()
    assert entry.digest == hashlib.sha256(b"jwt-a").hexdigest()
    assert entry.created_at == START


def test_sweep_removes_outlived_entries(store, clock):
    store.revoke("short", expires_at=START + timedelta(minutes=1))
    store.revoke("long", expires_at=START + timedelta(hours=1))

    removed = store.sweep_expired(START + timedelta(minutes=5))

    assert removed == 1
    assert not store.is_revoked("short")
    assert store.is_revoked("long")


def test_clear_only_touches_own_prefix(store, fake_redis):
    fake_redis.set("other:key", "1")
    store.revoke("jwt-a", expires_at=START + timedelta(minutes=15))

    store.clear()

    assert store.entries() == []
    assert fake_redis.get("other:key") == b"1"


def test_stored_record_holds_digest_not_token(store, fake_redis):
    token = "eyJhbGciOiJIUzI1NiJ9.secret-payload.signature"
    store.revoke(token, expires_at=START + timedelta(minutes=15))

    raw = fake_redis.get(_key(token))
    assert token.encode() not in raw
    assert hashlib.sha256(token.encode()).hexdigest().encode() in raw
