"""
Flag store package.

Provides the FlagStore contract the guard depends on and two backends:
a Redis store using the persisted layout

    <prefix>:<flag>:info   hash, field "enabled" -> "true" | "false"
    <prefix>:<flag>:users  set of user identifiers

and an in-memory store with the same semantics for tests and local runs.
"""

from .base import FlagStore, ENABLED_FIELD, DEFAULT_PREFIX, DEFAULT_USER_BATCH_SIZE
from .redis_store import RedisFlagStore
from .memory_store import InMemoryFlagStore

__all__ = [
    "FlagStore",
    "RedisFlagStore",
    "InMemoryFlagStore",
    "ENABLED_FIELD",
    "DEFAULT_PREFIX",
    "DEFAULT_USER_BATCH_SIZE",
]
