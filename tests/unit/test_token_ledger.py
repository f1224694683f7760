"""Tests for the refresh token ledger."""

import asyncio
from datetime import datetime, timedelta, timezone

from services.token_ledger import as_utc


def _future(days=30):
    return datetime.now(timezone.utc) + timedelta(days=days)


def test_record_and_lookup(ledger, test_user):
    expires_at = _future()

    asyncio.run(ledger.record("tok-1", test_user.id, expires_at, device_info="pytest", ip_address="10.0.0.1"))
    row = asyncio.run(ledger.lookup("tok-1"))

    assert row is not None
    assert row.user_id == test_user.id
    assert row.revoked is False
    assert row.device_info == "pytest"
    assert row.ip_address == "10.0.0.1"
    assert abs(as_utc(row.expires_at) - expires_at) < timedelta(seconds=1)


def test_lookup_unknown_token(ledger):
    assert asyncio.run(ledger.lookup("missing")) is None


def test_consume_succeeds_once(ledger, test_user):
    asyncio.run(ledger.record("tok-1", test_user.id, _future()))

    assert asyncio.run(ledger.consume("tok-1")) is True
    assert asyncio.run(ledger.consume("tok-1")) is False
    assert asyncio.run(ledger.lookup("tok-1")).revoked is True


def test_concurrent_consume_has_single_winner(ledger, test_user):
    asyncio.run(ledger.record("tok-1", test_user.id, _future()))

    async def race():
        return await asyncio.gather(ledger.consume("tok-1"), ledger.consume("tok-1"))

    results = asyncio.run(race())

    assert sorted(results) == [False, True]


def test_revoke_unknown_token_is_noop(ledger):
    asyncio.run(ledger.revoke("never-issued"))

    assert asyncio.run(ledger.lookup("never-issued")) is None


def test_revoke_all_only_touches_one_user(ledger, credentials, test_user):
    other = asyncio.run(credentials.create("bob@example.com"))
    for token in ("a-1", "a-2"):
        asyncio.run(ledger.record(token, test_user.id, _future()))
    asyncio.run(ledger.record("b-1", other.id, _future()))

    count = asyncio.run(ledger.revoke_all(test_user.id))

    assert count == 2
    assert asyncio.run(ledger.lookup("a-1")).revoked is True
    assert asyncio.run(ledger.lookup("a-2")).revoked is True
    assert asyncio.run(ledger.lookup("b-1")).revoked is False
    # Already revoked rows are not counted again.
    assert asyncio.run(ledger.revoke_all(test_user.id)) == 0


def test_sweep_removes_only_expired_or_revoked(ledger, test_user):
    now = datetime.now(timezone.utc)
    asyncio.run(ledger.record("live", test_user.id, now + timedelta(days=1)))
    asyncio.run(ledger.record("expired", test_user.id, now - timedelta(seconds=1)))
    asyncio.run(ledger.record("revoked", test_user.id, now + timedelta(days=1)))
    asyncio.run(ledger.revoke("revoked"))

    removed = asyncio.run(ledger.sweep(now=now))

    assert removed == 2
    assert asyncio.run(ledger.lookup("live")) is not None
    assert asyncio.run(ledger.lookup("expired")) is None
    assert asyncio.run(ledger.lookup("revoked")) is None


def test_list_active_excludes_revoked_and_expired(ledger, test_user):
    now = datetime.now(timezone.utc)
    asyncio.run(ledger.record("live-1", test_user.id, now + timedelta(days=1), device_info="laptop"))
    asyncio.run(ledger.record("live-2", test_user.id, now + timedelta(days=2), device_info="phone"))
    asyncio.run(ledger.record("expired", test_user.id, now - timedelta(minutes=1)))
    asyncio.run(ledger.record("revoked", test_user.id, now + timedelta(days=1)))
    asyncio.run(ledger.revoke("revoked"))

    rows = asyncio.run(ledger.list_active(test_user.id, now=now))

    assert sorted(row.token for row in rows) == ["live-1", "live-2"]
    # Newest first.
    assert rows[0].token == "live-2"


def test_deleting_user_cascades_to_tokens(ledger, credentials, test_user):
    asyncio.run(ledger.record("tok-1", test_user.id, _future()))

    assert asyncio.run(credentials.delete(test_user.id)) is True

    assert asyncio.run(ledger.lookup("tok-1")) is None
