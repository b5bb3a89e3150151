"""Tests for the daily question quota."""

import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.saintshelp.db.inmemory import InMemoryQuotaCounter
from backend.saintshelp.errors import QuotaExceededError
from backend.saintshelp.quota import (
    QUOTA_KEY_TTL_SECONDS,
    QuotaGate,
    RedisQuotaCounter,
    make_quota_key,
)

USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
DAY = date(2026, 5, 1)


def test_make_quota_key() -> None:
    assert make_quota_key(USER_ID, DAY) == f"quota:{USER_ID}:2026-05-01"


@pytest.mark.asyncio
async def test_allows_exactly_limit_questions_per_day() -> None:
    gate = QuotaGate(InMemoryQuotaCounter(), daily_limit=3)

    results = [await gate.try_consume(USER_ID, DAY) for _ in range(4)]

    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_new_day_resets_allowance() -> None:
    gate = QuotaGate(InMemoryQuotaCounter(), daily_limit=1)

    assert await gate.try_consume(USER_ID, DAY)
    assert not await gate.try_consume(USER_ID, DAY)
    assert await gate.try_consume(USER_ID, date(2026, 5, 2))


@pytest.mark.asyncio
async def test_users_are_counted_separately() -> None:
    gate = QuotaGate(InMemoryQuotaCounter(), daily_limit=1)
    other = uuid.UUID("00000000-0000-0000-0000-000000000003")

    assert await gate.try_consume(USER_ID, DAY)
    assert await gate.try_consume(other, DAY)


@pytest.mark.asyncio
async def test_refused_request_does_not_consume() -> None:
    counter = InMemoryQuotaCounter()
    gate = QuotaGate(counter, daily_limit=2)

    for _ in range(5):
        await gate.try_consume(USER_ID, DAY)

    assert counter.count(USER_ID, DAY) == 2


@pytest.mark.asyncio
async def test_consume_or_raise() -> None:
    gate = QuotaGate(InMemoryQuotaCounter(), daily_limit=1)

    await gate.consume_or_raise(USER_ID, DAY)
    with pytest.raises(QuotaExceededError) as exc_info:
        await gate.consume_or_raise(USER_ID, DAY)

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Daily limit reached"


@pytest.mark.asyncio
async def test_counter_failure_propagates() -> None:
    counter = MagicMock()
    counter.increment = AsyncMock(side_effect=ConnectionError("down"))
    gate = QuotaGate(counter, daily_limit=5)

    with pytest.raises(ConnectionError):
        await gate.try_consume(USER_ID, DAY)


@pytest.mark.asyncio
async def test_redis_counter_sets_expiry_on_first_increment() -> None:
    client = MagicMock()
    client.incr = AsyncMock(return_value=1)
    client.expire = AsyncMock()

    allowed = await RedisQuotaCounter(client).increment(USER_ID, DAY, 5)

    assert allowed
    key = make_quota_key(USER_ID, DAY)
    client.incr.assert_awaited_once_with(key)
    client.expire.assert_awaited_once_with(key, QUOTA_KEY_TTL_SECONDS)


@pytest.mark.asyncio
async def test_redis_counter_refuses_over_limit() -> None:
    client = MagicMock()
    client.incr = AsyncMock(return_value=6)
    client.expire = AsyncMock()

    allowed = await RedisQuotaCounter(client).increment(USER_ID, DAY, 5)

    assert not allowed
    client.expire.assert_not_called()
