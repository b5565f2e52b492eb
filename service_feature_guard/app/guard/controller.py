"""
Per-call guard for Feature Guard.
"""

from typing import Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from ..flags.models import EvaluationResult, FeatureFlagOptions, RequestContext
from ..store.base import FlagStore
from .evaluator import AccessEvaluator


def is_feature_enabled(context: RequestContext, name: str) -> bool:
    """True only when the context holds the boolean True for ``name``."""
    flags = context.evaluated_flags
    if not isinstance(flags, dict):
        return False
    return flags.get(name) is True


class FeatureGuard:
    """Runs one evaluation per incoming call.

    The guard reads identity from the RequestContext, resolves the configured
    flags against the store and merges the per-flag results back into the
    context. Store errors propagate to the caller untouched.
    """

    def __init__(self, store: FlagStore, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.evaluator = AccessEvaluator(store)
        self.metrics = metrics or get_metrics_collector("feature_guard")
        self.logger = get_logger("feature_guard.guard")

    async def resolve(self, context: RequestContext, options: FeatureFlagOptions) -> EvaluationResult:
        """Evaluate and update the context, returning the full result."""
        result = await self.evaluator.evaluate(context.identity, options.flag_names, options.scope)

        if result.per_flag:
            context.merge_flags(result.per_flag)

        outcome = "allowed" if result.allowed else "denied"
        self.metrics.record_decision(options.scope.value, outcome, result.evaluation_time_ms / 1000)
        for value in result.per_flag.values():
            self.metrics.increment_counter(
                "feature_guard_flag_results_total",
                result="pass" if value else "fail"
            )

        self.logger.debug(
            "Guard decision",
            flags=list(options.flag_names),
            scope=options.scope.value,
            allowed=result.allowed,
            reason=result.reason,
            per_flag=result.per_flag,
            evaluation_time_ms=round(result.evaluation_time_ms, 3)
        )
        return result

    async def evaluate(self, context: RequestContext, options: FeatureFlagOptions) -> bool:
        """Return the allow/deny decision for one call."""
        result = await self.resolve(context, options)
        return result.allowed

    is_feature_enabled = staticmethod(is_feature_enabled)
