"""Redis-backed key/value cache used as the transcription job registry store."""

import logging
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from services.exceptions import CacheError

logger = logging.getLogger(__name__)

# Receives the current value (None when the key is missing) and returns the
# value to store, or None to delete the key.
ValueMutator = Callable[[str | None], str | None]


class Cache(Protocol):
    """Cache contract used by the transcription jobs.

    ``get`` returns ``None`` for a missing key; every other failure raises
    ``CacheError``.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def update(
        self, key: str, mutate: ValueMutator, ttl_seconds: int
    ) -> str | None: ...

    async def close(self) -> None: ...


class RedisCache:
    """Async Redis cache with optimistic compare-and-swap updates."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        client: redis.Redis | None = None,
        max_update_retries: int = 5,
    ):
        """
        Initialize the cache.

        Args:
            redis_url: Redis connection URL
            client: Pre-built client (mostly for tests); created lazily otherwise
            max_update_retries: Attempts before an update gives up on contention
        """
        self.redis_url = redis_url
        self.max_update_retries = max_update_retries
        self.redis_client = client
        self._owns_client = client is None

    def _get_redis_client(self) -> redis.Redis:
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            logger.info(f"Connected to Redis at {self.redis_url}")
        return self.redis_client

    async def get(self, key: str) -> str | None:
        try:
            return await self._get_redis_client().get(key)
        except RedisError as e:
            raise CacheError(f"error reading {key}: {e}") from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._get_redis_client().set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise CacheError(f"error writing {key}: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            return await self._get_redis_client().exists(key) > 0
        except RedisError as e:
            raise CacheError(f"error checking {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._get_redis_client().delete(key)
        except RedisError as e:
            raise CacheError(f"error deleting {key}: {e}") from e

    async def update(
        self, key: str, mutate: ValueMutator, ttl_seconds: int
    ) -> str | None:
        """
        Atomically read-modify-write a key using WATCH/MULTI.

        The write is retried when another client changes the key between the
        read and the commit.

        Returns:
            The value written, or None if the key was deleted

        Raises:
            CacheError: On Redis failure or when retries are exhausted
        """
        client = self._get_redis_client()

        for attempt in range(1, self.max_update_retries + 1):
            try:
                async with client.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    current = await pipe.get(key)
                    new_value = mutate(current)

                    pipe.multi()
                    if new_value is None:
                        pipe.delete(key)
                    else:
                        pipe.set(key, new_value, ex=ttl_seconds)
                    await pipe.execute()
                    return new_value
            except WatchError:
                logger.debug(
                    f"Concurrent write on {key}, retrying update "
                    f"({attempt}/{self.max_update_retries})"
                )
                continue
            except RedisError as e:
                raise CacheError(f"error updating {key}: {e}") from e

        raise CacheError(
            f"error updating {key}: gave up after {self.max_update_retries} "
            "concurrent modifications"
        )

    async def close(self) -> None:
        """Close the Redis connection if this cache created it."""
        if self.redis_client is not None and self._owns_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.debug("Redis connection closed")
