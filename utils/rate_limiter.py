"""
Recipedium Rate Limiter
Sliding-window attempt counting in Redis, with an in-process store when
Redis is unset or unreachable
"""

import time
import uuid
from collections import deque
from typing import Deque, Dict, Optional
import redis.asyncio as redis
from redis.exceptions import RedisError
import structlog

from core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()

KEY_PREFIX = "rate_limit"
REDIS_RETRY_SECONDS = 300
MEMORY_SWEEP_SECONDS = 300
MEMORY_IDLE_SECONDS = 3600


class RateLimiter:
    """
    Counts attempts per key inside a trailing window

    Only allowed attempts are recorded, so a blocked caller regains access
    as soon as its oldest allowed attempt leaves the window.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_url = redis_url
        self.redis_client: Optional[redis.Redis] = None
        self._redis_retry_at = 0.0
        self._windows: Dict[str, Deque[float]] = {}
        self._last_sweep = time.monotonic()

    async def _redis(self) -> Optional[redis.Redis]:
        """Connected client, or None while the memory store is in use"""
        if self.redis_client is not None or not self.redis_url:
            return self.redis_client
        if time.monotonic() < self._redis_retry_at:
            return None

        client = redis.Redis.from_url(self.redis_url, decode_responses=True, health_check_interval=30)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.warning("Redis unavailable, rate limiting in memory", error=str(e))
            await client.aclose()
            self._redis_retry_at = time.monotonic() + REDIS_RETRY_SECONDS
            return None

        self.redis_client = client
        return client

    async def check_rate_limit(self, key: str, max_attempts: int, window_minutes: int) -> bool:
        """
        Record an attempt under key if it fits in the window

        Args:
            key: Bucket and caller, e.g. "login:203.0.113.7"
            max_attempts: Attempts allowed per window
            window_minutes: Window length

        Returns:
            True if the attempt is allowed. Internal failures allow it too.
        """
        full_key = f"{KEY_PREFIX}:{key}"
        window = window_minutes * 60
        try:
            client = await self._redis()
            if client is not None:
                return await self._check_redis(client, full_key, max_attempts, window)
            return self._check_memory(full_key, max_attempts, window)
        except Exception as e:
            logger.error("Rate limiting error, allowing request", key=full_key, error=str(e))
            return True

    async def _check_redis(self, client: redis.Redis, full_key: str, max_attempts: int, window: int) -> bool:
        now = time.time()
        member = f"{now}:{uuid.uuid4().hex[:8]}"

        async with client.pipeline() as pipe:
            pipe.zremrangebyscore(full_key, 0, now - window)
            pipe.zcard(full_key)
            pipe.zadd(full_key, {member: now})
            pipe.expire(full_key, window + 60)
            _, count, _, _ = await pipe.execute()

        if count >= max_attempts:
            await client.zrem(full_key, member)
            return False
        return True

    def _check_memory(self, full_key: str, max_attempts: int, window: int) -> bool:
        self._sweep()
        now = time.monotonic()
        attempts = self._windows.setdefault(full_key, deque())
        while attempts and attempts[0] <= now - window:
            attempts.popleft()

        if len(attempts) >= max_attempts:
            return False
        attempts.append(now)
        return True

    def _sweep(self) -> None:
        """Forget keys with no attempt in the last hour"""
        now = time.monotonic()
        if now - self._last_sweep < MEMORY_SWEEP_SECONDS:
            return
        idle = [key for key, attempts in self._windows.items() if not attempts or attempts[-1] < now - MEMORY_IDLE_SECONDS]
        for key in idle:
            del self._windows[key]
        self._last_sweep = now

    async def close(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()
            self.redis_client = None


rate_limiter = RateLimiter(settings.REDIS_URL)
