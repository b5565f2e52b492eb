"""
Construction helpers wiring configuration to the store and the guard.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, REGISTRY

from shared.config import FeatureGuardConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import get_metrics_collector
from .guard.controller import FeatureGuard
from .store.redis_store import RedisFlagStore

logger = get_logger("feature_guard.factory")


def create_redis_store(config: Optional[FeatureGuardConfig] = None) -> RedisFlagStore:
    """Build a Redis flag store from configuration."""
    config = config or get_config()
    return RedisFlagStore.from_url(
        config.redis_url,
        prefix=config.key_prefix,
        user_batch_size=config.user_batch_size,
        socket_timeout=config.redis_socket_timeout,
        socket_connect_timeout=config.redis_connect_timeout
    )


def create_feature_guard(
    config: Optional[FeatureGuardConfig] = None,
    registry: Optional[CollectorRegistry] = None
) -> FeatureGuard:
    """Build a guard backed by Redis.

    When metrics are enabled they are exported through ``registry``, or the
    default Prometheus registry when none is given. Call once per process.
    """
    config = config or get_config()
    configure_logging(config.service_name, config.log_level)
    store = create_redis_store(config)
    if config.enable_metrics and registry is None:
        registry = REGISTRY
    metrics = get_metrics_collector(
        config.service_name,
        registry if config.enable_metrics else None
    )

    logger.info(
        "Feature guard created",
        env=config.env,
        key_prefix=config.key_prefix,
        user_batch_size=config.user_batch_size
    )
    return FeatureGuard(store, metrics=metrics)
