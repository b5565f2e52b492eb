"""
FastAPI binding for Feature Guard.

Routes declare their flags explicitly:

    @app.get("/beta")
    async def beta(ctx: RequestContext = Depends(require_feature_flags("beta"))):
        ...

Identity is read from ``request.state.user_id`` and ``request.state.is_admin``,
which an upstream authentication layer is expected to set.
"""

from typing import Optional, Union

from fastapi import Depends, HTTPException, Request, status

from shared.errors import FeatureAccessDenied
from shared.logging import clear_context, get_logger, get_request_id, set_request_id, set_user_context
from .factory import create_feature_guard
from .flags.models import FeatureFlagOptions, FeatureFlagScope, RequestContext
from .guard.controller import FeatureGuard

logger = get_logger("feature_guard.dependencies")

_feature_guard: Optional[FeatureGuard] = None


def get_feature_guard() -> FeatureGuard:
    """Get or create the process-wide guard.

    Tests and applications with their own wiring should override this
    dependency instead.
    """
    global _feature_guard
    if _feature_guard is None:
        _feature_guard = create_feature_guard()
    return _feature_guard


def context_from_request(request: Request) -> RequestContext:
    """Adapt request state to a RequestContext without coercing values.

    A user ID that is not a string is treated as missing.
    """
    state = request.state
    user_id = getattr(state, "user_id", None)
    return RequestContext.from_mapping({
        "user_id": user_id if isinstance(user_id, str) else None,
        "is_admin": getattr(state, "is_admin", None),
        "feature_flags": getattr(state, "feature_flags", None),
    })


def require_feature_flags(*flag_names: str, scope: Union[FeatureFlagScope, str] = FeatureFlagScope.CONTROLLER):
    """
    FastAPI dependency factory guarding a route with one or more flags.

    With CONTROLLER scope the request is rejected with 403 unless every flag
    passes. With SERVICE scope the request always proceeds and handlers read
    the outcome through ``is_feature_enabled``.

    Returns:
        A dependency returning the updated RequestContext
    """
    options = FeatureFlagOptions(flag_names, scope)

    async def check_feature_flags(
        request: Request,
        guard: FeatureGuard = Depends(get_feature_guard),
    ) -> RequestContext:
        clear_context()
        set_request_id(request.headers.get("X-Request-ID"))
        context = context_from_request(request)
        if isinstance(context.identity.user_id, str):
            set_user_context(context.identity.user_id)

        allowed = await guard.evaluate(context, options)
        request.state.feature_flags = context.evaluated_flags

        if not allowed:
            error = FeatureAccessDenied(
                f"Access denied for feature flags: {', '.join(options.flag_names)}",
                {"flags": list(options.flag_names), "scope": options.scope.value}
            )
            logger.warning("Feature access denied", flags=list(options.flag_names), path=request.url.path)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=error.to_response(request_id=get_request_id()).model_dump()
            )

        return context

    return check_feature_flags
