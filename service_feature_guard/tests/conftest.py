"""
Shared fixtures for Feature Guard tests.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from prometheus_client import CollectorRegistry

from shared.metrics import get_metrics_collector
from shared.test_helpers import FakeAsyncRedis
from service_feature_guard.app.guard.controller import FeatureGuard
from service_feature_guard.app.store.memory_store import InMemoryFlagStore
from service_feature_guard.app.store.redis_store import RedisFlagStore


@pytest.fixture
def fake_redis():
    """In-process async Redis double."""
    return FakeAsyncRedis()


@pytest.fixture
def redis_store(fake_redis):
    """Redis flag store over the fake client."""
    return RedisFlagStore(fake_redis, prefix="test:feature-guard")


@pytest.fixture
def memory_store():
    """In-memory flag store."""
    return InMemoryFlagStore(prefix="test:feature-guard")


@pytest.fixture(params=["memory", "redis"])
def store(request):
    """Every FlagStore backend, for contract tests."""
    if request.param == "memory":
        return InMemoryFlagStore(prefix="test:feature-guard")
    return RedisFlagStore(FakeAsyncRedis(), prefix="test:feature-guard")


@pytest.fixture
def registry():
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def guard(memory_store, registry):
    """Guard backed by the in-memory store with exported metrics."""
    return FeatureGuard(memory_store, metrics=get_metrics_collector("feature_guard", registry))
