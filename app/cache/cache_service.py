"""Async Redis access for ephemeral state (viewer presence).

Redis is optional at runtime: every call logs failures and degrades to a
miss, so an unreachable cache never fails a request or a socket message.
"""
from typing import Optional, Any
import logging

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, url: Optional[str] = None):
        self.redis_url = url or settings.REDIS_URL
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self):
        if self.redis:
            return
        try:
            self.redis = aioredis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            logger.info("Redis client configured for %s", self.redis_url)
        except (RedisError, ValueError) as e:
            logger.error("Failed to configure Redis client: %s", e)

    async def _client(self) -> Optional[aioredis.Redis]:
        if not self.redis:
            await self.connect()
        return self.redis

    async def get(self, key: str) -> Optional[str]:
        client = await self._client()
        if not client:
            return None
        try:
            return await client.get(key)
        except RedisError as e:
            logger.error("Redis get error for key %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600):
        client = await self._client()
        if not client:
            return
        try:
            await client.set(key, value, ex=ttl)
        except RedisError as e:
            logger.error("Redis set error for key %s: %s", key, e)

    async def delete(self, key: str):
        client = await self._client()
        if not client:
            return
        try:
            await client.delete(key)
        except RedisError as e:
            logger.error("Redis delete error for key %s: %s", key, e)

    async def ping(self) -> bool:
        client = await self._client()
        if not client:
            return False
        try:
            return bool(await client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self):
        if self.redis:
            await self.redis.aclose()
            self.redis = None


redis_cache = RedisCache()
