"""
Redis caching layer for Catalog Service.
"""

import asyncio
import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import DependencyError, ServiceStartupError

_CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class AssetCache:
    """JSON snapshot cache backed by Redis."""

    dependency = "cache"

    def __init__(
        self,
        host: str = "redis",
        port: int = 6379,
        password: Optional[str] = None,
        timeout: float = 5.0,
        client: Optional[redis.Redis] = None,
    ):
        self.host = host
        self.port = port
        self.password = password or None
        self.timeout = timeout
        self.logger = get_logger("catalog.cache.redis")
        self.redis: Optional[redis.Redis] = client

    @classmethod
    def from_config(cls, config) -> "AssetCache":
        return cls(
            host=config.redis_host,
            port=config.redis_port,
            password=config.redis_password,
            timeout=config.redis_timeout,
        )

    async def start(self):
        """Connect to Redis and verify the connection."""
        try:
            if self.redis is None:
                self.redis = redis.Redis(
                    host=self.host,
                    port=self.port,
                    password=self.password,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=self.timeout,
                    socket_timeout=self.timeout,
                    health_check_interval=30
                )

            await self.redis.ping()

            self.logger.info("Redis cache started", host=self.host, port=self.port)

        except _CACHE_ERRORS as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise ServiceStartupError(self.dependency, str(e)) from e

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise DependencyError(self.dependency, "Cache is not connected")
        return self.redis

    async def get_json(self, key: str) -> Optional[Any]:
        """Return the decoded value under ``key`` or None when absent or expired."""
        try:
            raw = await self._client().get(key)
        except _CACHE_ERRORS as e:
            raise DependencyError(self.dependency, "Cache read failed", {"key": key}) from e

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except ValueError as e:
            raise DependencyError(self.dependency, "Cache entry is not valid JSON", {"key": key}) from e

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` as JSON under ``key`` with an expiration."""
        payload = json.dumps(value)
        try:
            await self._client().setex(key, ttl_seconds, payload)
        except _CACHE_ERRORS as e:
            raise DependencyError(self.dependency, "Cache write failed", {"key": key}) from e

        self.logger.debug("Cached snapshot", cache_key=key, ttl=ttl_seconds)

    async def delete(self, key: str) -> bool:
        """Delete ``key``. Returns True when an entry was removed."""
        try:
            removed = await self._client().delete(key)
        except _CACHE_ERRORS as e:
            raise DependencyError(self.dependency, "Cache delete failed", {"key": key}) from e

        return bool(removed)

    async def ping(self) -> bool:
        """Check Redis health."""
        try:
            return bool(await self._client().ping())
        except (DependencyError, *_CACHE_ERRORS):
            return False
