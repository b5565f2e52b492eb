"""
Redis-backed flag store for Feature Guard.
"""

from typing import Any, Iterable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from .base import (
    FlagStore, ENABLED_FIELD, DEFAULT_PREFIX, DEFAULT_USER_BATCH_SIZE,
    encode_enabled, decode_enabled, chunked, normalize_users, lookup_enabled, MISSING,
)
from ..flags.models import FlagRecord


class RedisFlagStore(FlagStore):
    """Redis flag store.

    Each flag is a hash holding the enabled marker plus a set of allowed
    user IDs. Writes are not transactional: the marker is written first,
    then the allow-list is deleted and re-added in batches, so a concurrent
    reader may see the new marker next to the old or an empty allow-list.
    """

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = DEFAULT_PREFIX,
        user_batch_size: int = DEFAULT_USER_BATCH_SIZE
    ):
        super().__init__(prefix=prefix, user_batch_size=user_batch_size)
        self.redis = client
        self.logger = get_logger("feature_guard.store.redis")

    @classmethod
    def from_url(
        cls,
        redis_url: str,
        prefix: str = DEFAULT_PREFIX,
        user_batch_size: int = DEFAULT_USER_BATCH_SIZE,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        **client_kwargs: Any
    ) -> "RedisFlagStore":
        """Create a store with its own connection pool."""
        client = redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=socket_connect_timeout,
            socket_timeout=socket_timeout,
            **client_kwargs
        )
        return cls(client, prefix=prefix, user_batch_size=user_batch_size)

    async def close(self):
        """Close the underlying connection pool."""
        await self.redis.aclose()
        self.logger.info("Redis flag store closed")

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self.redis.ping()
            return True
        except RedisError as e:
            self.logger.warning("Redis health check failed", error=str(e))
            return False

    async def set_flag(self, name: str, enabled: bool, allowed_users: Optional[Iterable[str]] = None) -> None:
        """Write the enabled marker and replace the allow-list."""
        info_key = self.info_key(name)
        users_key = self.users_key(name)
        # Duplicates collapse in the set anyway; dropping them early keeps batches small
        users = normalize_users(allowed_users)

        await self.redis.hset(info_key, mapping={ENABLED_FIELD: encode_enabled(enabled)})
        await self.redis.delete(users_key)

        for batch in chunked(users, self.user_batch_size):
            await self.redis.sadd(users_key, *batch)

        self.logger.info(
            "Feature flag written",
            flag=name,
            enabled=enabled,
            user_count=len(users),
            batches=-(-len(users) // self.user_batch_size)
        )

    async def get_record(self, name: str) -> Optional[FlagRecord]:
        """Return the record, or None when no enabled marker is stored."""
        info = await self.redis.hgetall(self.info_key(name))
        if lookup_enabled(info) is MISSING:
            return None

        users = await self.redis.smembers(self.users_key(name))
        return self._record_from_info(name, info, users)

    async def is_user_allowed(self, name: str, user_id: Optional[str]) -> bool:
        """Decide membership without loading the full allow-list."""
        info = await self.redis.hgetall(self.info_key(name))
        marker = lookup_enabled(info)
        if marker is MISSING or not decode_enabled(marker):
            return False

        users_key = self.users_key(name)
        if await self.redis.scard(users_key) == 0:
            return True
        if user_id is None:
            return False

        return bool(await self.redis.sismember(users_key, user_id))
