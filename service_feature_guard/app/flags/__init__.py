"""
Flag data types shared by the store and the guard.
"""

from .models import (
    FlagRecord,
    FeatureFlagScope,
    FeatureFlagOptions,
    Identity,
    RequestContext,
    SetFeatureFlagRequest,
    EvaluationResult,
)

__all__ = [
    "FlagRecord",
    "FeatureFlagScope",
    "FeatureFlagOptions",
    "Identity",
    "RequestContext",
    "SetFeatureFlagRequest",
    "EvaluationResult",
]
