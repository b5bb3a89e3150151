"""Daily question quota."""

import logging
import uuid
from datetime import UTC, date, datetime

import redis.asyncio as redis

from backend.saintshelp.db.repositories import QuotaCounter
from backend.saintshelp.errors import QuotaExceededError

logger = logging.getLogger(__name__)

# Keys outlive their day so a late request near midnight still finds its counter
QUOTA_KEY_TTL_SECONDS = 2 * 24 * 60 * 60


def today() -> date:
    """Current calendar day in UTC."""
    return datetime.now(UTC).date()


def make_quota_key(user_id: uuid.UUID, day: date) -> str:
    """Create quota key from user and day.

    Args:
        user_id: User ID
        day: Calendar day

    Returns:
        Quota key, e.g. ``quota:<user>:2024-05-01``
    """
    return f"quota:{user_id}:{day.isoformat()}"


class RedisQuotaCounter:
    """Redis-based quota counter using INCR + EXPIRE pattern."""

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = QUOTA_KEY_TTL_SECONDS) -> None:
        """Initialize quota counter.

        Args:
            redis_client: Async Redis client
            ttl_seconds: Key expiry (default two days)
        """
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds

    async def increment(self, user_id: uuid.UUID, day: date, limit: int) -> bool:
        """Atomically increment the day's counter and compare with the limit.

        Args:
            user_id: User ID
            day: Calendar day
            limit: Maximum questions per day

        Returns:
            True if allowed, False if over quota
        """
        key = make_quota_key(user_id, day)

        count = await self._redis.incr(key)

        # Set expiry on first request
        if count == 1:
            await self._redis.expire(key, self._ttl_seconds)

        return count <= limit


class QuotaGate:
    """Checks and consumes a user's daily question allowance.

    Counter failures propagate unchanged; a request whose quota cannot be
    checked does not proceed.
    """

    def __init__(self, counter: QuotaCounter, daily_limit: int) -> None:
        self._counter = counter
        self._daily_limit = daily_limit

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    async def try_consume(
        self, user_id: uuid.UUID, day: date | None = None, limit: int | None = None
    ) -> bool:
        """Consume one question from the user's allowance for ``day``.

        Args:
            user_id: User ID
            day: Calendar day (defaults to today, UTC)
            limit: Daily limit (defaults to the configured limit)

        Returns:
            True if the question is allowed
        """
        if day is None:
            day = today()
        if limit is None:
            limit = self._daily_limit

        return await self._counter.increment(user_id, day, limit)

    async def consume_or_raise(self, user_id: uuid.UUID, day: date | None = None) -> None:
        """Consume one question or raise QuotaExceededError."""
        allowed = await self.try_consume(user_id, day)
        if not allowed:
            logger.info(f"Daily quota exhausted for user {user_id}")
            raise QuotaExceededError("Daily limit reached")
