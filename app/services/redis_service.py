from typing import Any

import redis.asyncio as redis
from loguru import logger

from app.core.config import settings


class RedisService:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client: redis.Redis | None = client
        if client is None and not settings.REDIS_URL:
            logger.warning("REDIS_URL is not set. Redis operations will fail until configured.")

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            logger.info("Creating Redis client for RedisService")
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    async def set(self, key: str, value: Any) -> bool:
        """Store a value in Redis.

        Args:
            key: The key to store the value under
            value: The value to store (will be converted to string)

        Returns:
            True if successful, False otherwise
        """
        try:
            client = await self.get_client()
            result = await client.set(key, str(value))
            return bool(result)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to set key '{key}' in Redis: {exc}")
            return False

    async def get(self, key: str) -> str | None:
        """Get a value from Redis by key.

        Returns:
            The value as a string, or None if key doesn't exist or error occurred
        """
        try:
            client = await self.get_client()
            return await client.get(key)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to get key '{key}' from Redis: {exc}")
            return None

    async def push_capped(self, key: str, values: list[str], max_length: int) -> bool:
        """Append values to a list, keeping only the newest `max_length` entries."""
        if not values:
            return True
        try:
            client = await self.get_client()
            await client.rpush(key, *values)
            await client.ltrim(key, -max_length, -1)
            return True
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to append to list '{key}' in Redis: {exc}")
            return False

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.aclose()
                logger.info("RedisService client closed")
            except Exception as exc:
                logger.warning(f"Failed to close RedisService client: {exc}")
            finally:
                self._client = None


redis_service = RedisService()
