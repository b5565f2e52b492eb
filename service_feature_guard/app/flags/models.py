"""
Flag data models for Feature Guard.
"""

from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class FeatureFlagScope(str, Enum):
    """How a guard decision is applied to the call."""
    # Block the call unless every listed flag passes
    CONTROLLER = "CONTROLLER"
    # Always let the call through; results are only recorded
    SERVICE = "SERVICE"


@dataclass(frozen=True)
class FlagRecord:
    """Persisted flag state."""
    name: str
    enabled: bool
    allowed_users: FrozenSet[str] = frozenset()

    @property
    def is_global(self) -> bool:
        return self.enabled and not self.allowed_users

    @property
    def is_targeted(self) -> bool:
        return self.enabled and bool(self.allowed_users)

    def allows(self, user_id: Optional[str]) -> bool:
        """Apply the membership rule to a requester."""
        if not self.enabled:
            return False
        if not self.allowed_users:
            return True
        return user_id in self.allowed_users


@dataclass
class Identity:
    """Requester identity as supplied by the identity provider.

    ``is_admin`` is stored exactly as received; only the boolean ``True``
    grants admin bypass.
    """
    user_id: Optional[str] = None
    is_admin: Any = None

    @property
    def is_strict_admin(self) -> bool:
        return self.is_admin is True

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None and not self.is_strict_admin


@dataclass
class RequestContext:
    """Per-call carrier of identity and accumulated flag results."""
    identity: Identity = field(default_factory=Identity)
    evaluated_flags: Optional[Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RequestContext":
        """Build a context from request state without coercing values."""
        flags = data.get("feature_flags")
        return cls(
            identity=Identity(user_id=data.get("user_id"), is_admin=data.get("is_admin")),
            evaluated_flags=dict(flags) if isinstance(flags, Mapping) else {},
        )

    def merge_flags(self, results: Mapping[str, bool]) -> None:
        """Overwrite results by name, keeping unrelated entries."""
        self.evaluated_flags = {**(self.evaluated_flags or {}), **results}


@dataclass(frozen=True)
class FeatureFlagOptions:
    """Which flags guard a call site and how the decision is applied."""
    flag_names: Union[str, Sequence[str]]
    scope: FeatureFlagScope = FeatureFlagScope.CONTROLLER

    def __post_init__(self):
        names = self.flag_names
        if isinstance(names, str):
            names = (names,)
        object.__setattr__(self, "flag_names", tuple(names))
        object.__setattr__(self, "scope", FeatureFlagScope(self.scope))


class SetFeatureFlagRequest(BaseModel):
    """Request model for writing a flag."""
    flag: str = Field(..., description="Flag name")
    enabled: bool = Field(..., description="Whether the flag is enabled")
    user_ids: Optional[List[str]] = Field(None, description="Allowed user IDs; empty or missing means global")


@dataclass
class EvaluationResult:
    """Result of one guard evaluation."""
    allowed: bool
    per_flag: Dict[str, bool] = field(default_factory=dict)
    reason: Optional[str] = None
    evaluation_time_ms: float = 0.0
