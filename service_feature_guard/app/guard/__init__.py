"""
Guard package.

- evaluator: combines identity, store lookups and scope into a decision
  plus a per-flag result map. It never touches request state.
- controller: runs one evaluation per call, merges results into the
  RequestContext and records logs and metrics.
"""

from .evaluator import AccessEvaluator
from .controller import FeatureGuard, is_feature_enabled

__all__ = ["AccessEvaluator", "FeatureGuard", "is_feature_enabled"]
