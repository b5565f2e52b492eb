"""
In-memory flag store.

Mirrors the Redis layout (an info mapping and a user set per key) so that
partial or corrupted records can be seeded directly.
"""

from typing import Any, Dict, Iterable, Optional, Set

from shared.logging import get_logger
from .base import FlagStore, ENABLED_FIELD, DEFAULT_PREFIX, DEFAULT_USER_BATCH_SIZE, encode_enabled, chunked, normalize_users
from ..flags.models import FlagRecord


class InMemoryFlagStore(FlagStore):
    """Dict-backed flag store for tests and single-process use."""

    def __init__(self, prefix: str = DEFAULT_PREFIX, user_batch_size: int = DEFAULT_USER_BATCH_SIZE):
        super().__init__(prefix=prefix, user_batch_size=user_batch_size)
        self.hashes: Dict[str, Dict[str, Any]] = {}
        self.sets: Dict[str, Set[str]] = {}
        self.logger = get_logger("feature_guard.store.memory")

    async def set_flag(self, name: str, enabled: bool, allowed_users: Optional[Iterable[str]] = None) -> None:
        users = normalize_users(allowed_users)
        users_key = self.users_key(name)

        self.hashes.setdefault(self.info_key(name), {})[ENABLED_FIELD] = encode_enabled(enabled)
        self.sets.pop(users_key, None)
        for batch in chunked(users, self.user_batch_size):
            self.sets.setdefault(users_key, set()).update(batch)

        self.logger.debug("Feature flag written", flag=name, enabled=enabled, user_count=len(users))

    async def get_record(self, name: str) -> Optional[FlagRecord]:
        info = self.hashes.get(self.info_key(name), {})
        return self._record_from_info(name, info, self.sets.get(self.users_key(name), ()))

