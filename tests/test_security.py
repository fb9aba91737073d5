"""Mini README: Tests for password hashing and the session registry."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ledgerdesk.security import PasswordHasher, SessionRegistry


def test_hash_is_salted_and_verifies() -> None:
    hasher = PasswordHasher(cost=16)

    first = hasher.hash("correct horse")
    second = hasher.hash("correct horse")

    assert first != second
    assert first.startswith("scrypt$16$")
    assert hasher.verify("correct horse", first)
    assert hasher.verify("correct horse", second)
    assert not hasher.verify("wrong horse", first)


def test_verify_rejects_malformed_hashes() -> None:
    hasher = PasswordHasher(cost=16)

    assert not hasher.verify("pw", "not-a-hash")
    assert not hasher.verify("pw", "sha256$16$00$00")


def test_hash_records_its_own_cost() -> None:
    stored = PasswordHasher(cost=16).hash("pw")

    assert PasswordHasher(cost=32).verify("pw", stored)


def test_sessions_expire_after_ttl() -> None:
    now = [datetime(2024, 1, 1, tzinfo=timezone.utc)]
    registry = SessionRegistry(ttl=timedelta(minutes=10), clock=lambda: now[0])

    session = registry.issue(7)
    assert registry.resolve(session.token) == session

    now[0] += timedelta(minutes=10)
    assert registry.resolve(session.token) is None
    assert registry.revoke(session.token) is False


def test_revoked_session_no_longer_resolves() -> None:
    registry = SessionRegistry()
    session = registry.issue(1)

    assert registry.revoke(session.token) is True
    assert registry.resolve(session.token) is None
    assert registry.resolve("unknown") is None


def test_issuing_sweeps_expired_sessions() -> None:
    now = [datetime(2024, 1, 1, tzinfo=timezone.utc)]
    registry = SessionRegistry(ttl=timedelta(minutes=1), clock=lambda: now[0])
    for user_id in range(50):
        registry.issue(user_id)
    assert len(registry) == 50

    now[0] += timedelta(minutes=2)
    fresh = registry.issue(99)

    assert len(registry) == 1
    assert registry.resolve(fresh.token) == fresh
