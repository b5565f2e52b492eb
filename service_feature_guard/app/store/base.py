"""
Flag store contract.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional

from shared.errors import ConfigurationError
from ..flags.models import FlagRecord, SetFeatureFlagRequest

ENABLED_FIELD = "enabled"
DEFAULT_PREFIX = "feature-guard"
DEFAULT_USER_BATCH_SIZE = 1000


def encode_enabled(enabled: bool) -> str:
    return "true" if enabled else "false"


def decode_enabled(value: Any) -> bool:
    """Only the canonical "true" marker enables a flag."""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return value == "true"


MISSING = object()


def lookup_enabled(info: Mapping[Any, Any]) -> Any:
    """Return the stored enabled marker, or MISSING when the hash lacks one."""
    if not info:
        return MISSING
    if ENABLED_FIELD in info:
        return info[ENABLED_FIELD]
    return info.get(ENABLED_FIELD.encode(), MISSING)


def normalize_users(allowed_users: Optional[Iterable[str]]) -> List[str]:
    """De-duplicated allow-list in input order; a lone string is one user ID."""
    if allowed_users is None:
        return []
    if isinstance(allowed_users, (str, bytes)):
        allowed_users = (allowed_users,)
    return list(dict.fromkeys(allowed_users))


def chunked(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class FlagStore(ABC):
    """Persists flag records and answers membership questions.

    Backend failures are never caught here; they reach the caller as raised.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, user_batch_size: int = DEFAULT_USER_BATCH_SIZE):
        if not prefix:
            raise ConfigurationError("prefix must be a non-empty string", {"prefix": prefix})
        if user_batch_size <= 0:
            raise ConfigurationError(
                "user_batch_size must be positive",
                {"user_batch_size": user_batch_size}
            )
        self.prefix = prefix
        self.user_batch_size = user_batch_size

    def info_key(self, name: str) -> str:
        return f"{self.prefix}:{name}:info"

    def users_key(self, name: str) -> str:
        return f"{self.prefix}:{name}:users"

    @abstractmethod
    async def set_flag(self, name: str, enabled: bool, allowed_users: Optional[Iterable[str]] = None) -> None:
        """Write the enabled marker and replace the allow-list."""

    @abstractmethod
    async def get_record(self, name: str) -> Optional[FlagRecord]:
        """Return the record, or None when no enabled marker is stored."""

    async def is_user_allowed(self, name: str, user_id: Optional[str]) -> bool:
        """Decide membership for one user.

        Unknown and disabled flags deny; an empty allow-list admits everyone;
        otherwise the user must be listed.
        """
        record = await self.get_record(name)
        if record is None:
            return False
        return record.allows(user_id)

    async def set_feature_flag(self, request: SetFeatureFlagRequest) -> None:
        await self.set_flag(request.flag, request.enabled, request.user_ids)

    @staticmethod
    def _record_from_info(name: str, info: Mapping[Any, Any], users: Iterable[Any]) -> Optional[FlagRecord]:
        marker = lookup_enabled(info)
        if marker is MISSING:
            return None
        return FlagRecord(
            name=name,
            enabled=decode_enabled(marker),
            allowed_users=frozenset(_to_str(user) for user in users),
        )


def _to_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
