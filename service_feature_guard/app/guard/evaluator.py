"""
Access decision logic for Feature Guard.
"""

import time
from typing import Dict, Sequence, Union

from shared.logging import get_logger
from ..flags.models import EvaluationResult, FeatureFlagScope, Identity
from ..store.base import FlagStore

REASON_ANONYMOUS = "No user identity supplied"
REASON_ADMIN = "Admin bypass"
REASON_NO_FLAGS = "No feature flags configured"
REASON_SERVICE = "Service scope records flags without blocking"
REASON_ALL_PASSED = "All feature flags passed"
REASON_FLAG_FAILED = "One or more feature flags failed"


class AccessEvaluator:
    """Decides access for an identity against a list of flags.

    Denials for anonymous callers, admin bypass and empty flag lists are
    settled before the store is consulted. Otherwise every flag is resolved
    in order, without short-circuiting, so the per-flag map is complete
    even when the outcome is a denial.
    """

    def __init__(self, store: FlagStore):
        self.store = store
        self.logger = get_logger("feature_guard.evaluator")

    async def evaluate(
        self,
        identity: Identity,
        flag_names: Sequence[str],
        scope: Union[FeatureFlagScope, str] = FeatureFlagScope.CONTROLLER
    ) -> EvaluationResult:
        start_time = time.time()
        scope = FeatureFlagScope(scope)

        if identity.is_anonymous:
            return self._result(False, {}, REASON_ANONYMOUS, start_time)

        if identity.is_strict_admin:
            return self._result(True, {}, REASON_ADMIN, start_time)

        if not flag_names:
            return self._result(False, {}, REASON_NO_FLAGS, start_time)

        per_flag: Dict[str, bool] = {}
        for name in flag_names:
            per_flag[name] = await self.resolve_flag(name, identity.user_id)

        if scope == FeatureFlagScope.SERVICE:
            return self._result(True, per_flag, REASON_SERVICE, start_time)

        if all(per_flag.values()):
            return self._result(True, per_flag, REASON_ALL_PASSED, start_time)
        return self._result(False, per_flag, REASON_FLAG_FAILED, start_time)

    async def resolve_flag(self, name: str, user_id: str) -> bool:
        """Resolve a single flag for a user."""
        record = await self.store.get_record(name)
        record_enabled = record is not None and record.enabled is True
        user_allowed = await self.store.is_user_allowed(name, user_id)

        self.logger.debug(
            "Flag resolved",
            flag=name,
            record_found=record is not None,
            record_enabled=record_enabled,
            user_allowed=user_allowed
        )
        return record_enabled and user_allowed

    @staticmethod
    def _result(allowed: bool, per_flag: Dict[str, bool], reason: str, start_time: float) -> EvaluationResult:
        return EvaluationResult(
            allowed=allowed,
            per_flag=per_flag,
            reason=reason,
            evaluation_time_ms=(time.time() - start_time) * 1000
        )
