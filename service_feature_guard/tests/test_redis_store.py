"""
Unit tests for the Redis flag store.
"""

import pytest
from unittest.mock import AsyncMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError, TimeoutError as RedisTimeoutError

from shared.errors import ConfigurationError
from shared.test_helpers import FakeAsyncRedis, TestDataFactory
from service_feature_guard.app.store import redis_store as redis_store_module
from service_feature_guard.app.store.base import DEFAULT_PREFIX
from service_feature_guard.app.store.redis_store import RedisFlagStore


class TestKeyLayout:
    """Persisted layout is part of the contract."""

    def test_default_prefix(self, fake_redis):
        """Default namespace is used when none is given."""
        store = RedisFlagStore(fake_redis)

        assert store.prefix == DEFAULT_PREFIX
        assert store.info_key("beta") == "feature-guard:beta:info"
        assert store.users_key("beta") == "feature-guard:beta:users"

    def test_custom_prefix(self, fake_redis):
        """Keys are built from the caller's prefix."""
        store = RedisFlagStore(fake_redis, prefix="myapp:flags")

        assert store.info_key("beta") == "myapp:flags:beta:info"
        assert store.users_key("beta") == "myapp:flags:beta:users"

    @pytest.mark.asyncio
    async def test_written_values(self, redis_store, fake_redis):
        """Marker and users land in the expected hash and set."""
        await redis_store.set_flag("beta", True, ["u1", "u2"])

        assert fake_redis.hashes["test:feature-guard:beta:info"] == {"enabled": "true"}
        assert fake_redis.sets["test:feature-guard:beta:users"] == {"u1", "u2"}

    @pytest.mark.asyncio
    async def test_disabled_marker_value(self, redis_store, fake_redis):
        """Disabled flags store the string false."""
        await redis_store.set_flag("beta", False)

        assert fake_redis.hashes["test:feature-guard:beta:info"] == {"enabled": "false"}
        assert "test:feature-guard:beta:users" not in fake_redis.sets

    @pytest.mark.asyncio
    async def test_prefixes_are_independent(self, fake_redis):
        """The same flag name under two prefixes does not interfere."""
        first = RedisFlagStore(fake_redis, prefix="app-one")
        second = RedisFlagStore(fake_redis, prefix="app-two")

        await first.set_flag("beta", True, ["u1"])
        await second.set_flag("beta", False)

        assert await first.is_user_allowed("beta", "u1") is True
        assert await second.is_user_allowed("beta", "u1") is False
        assert await RedisFlagStore(fake_redis, prefix="app-three").get_record("beta") is None


class TestWrites:
    """Write ordering and batching."""

    @pytest.mark.asyncio
    async def test_marker_written_before_users_replaced(self, redis_store, fake_redis):
        """Marker first, then delete, then add."""
        await redis_store.set_flag("beta", True, ["u1"])

        assert [name for name, _ in fake_redis.calls] == ["hset", "delete", "sadd"]

    @pytest.mark.asyncio
    async def test_users_deleted_when_none_given(self, redis_store, fake_redis):
        """A write without users still deletes the old set."""
        await redis_store.set_flag("beta", True, ["u1"])
        fake_redis.calls.clear()

        await redis_store.set_flag("beta", True)

        assert fake_redis.commands("delete") == [("test:feature-guard:beta:users",)]
        assert fake_redis.commands("sadd") == []

    @pytest.mark.asyncio
    async def test_large_list_is_chunked(self, fake_redis):
        """SADD calls never exceed the batch size."""
        store = RedisFlagStore(fake_redis, prefix="p", user_batch_size=1000)
        user_ids = TestDataFactory.create_user_ids(2500)

        await store.set_flag("rollout", True, user_ids)

        batches = fake_redis.commands("sadd")
        assert [len(args) - 1 for args in batches] == [1000, 1000, 500]
        assert fake_redis.sets["p:rollout:users"] == set(user_ids)

    @pytest.mark.asyncio
    async def test_custom_batch_size(self, fake_redis):
        """Batch size is configurable."""
        store = RedisFlagStore(fake_redis, prefix="p", user_batch_size=2)

        await store.set_flag("beta", True, ["a", "b", "c", "d", "e"])

        assert len(fake_redis.commands("sadd")) == 3

    def test_invalid_batch_size(self, fake_redis):
        """Non-positive batch sizes are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            RedisFlagStore(fake_redis, user_batch_size=0)

        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_empty_prefix(self, fake_redis):
        """An empty namespace is rejected."""
        with pytest.raises(ConfigurationError):
            RedisFlagStore(fake_redis, prefix="")


class TestStoredDataShapes:
    """Records written outside the store."""

    @pytest.mark.asyncio
    async def test_corrupted_marker_fails_closed(self, redis_store, fake_redis):
        """Non-canonical enabled values read as disabled, without raising."""
        fake_redis.hashes["test:feature-guard:broken:info"] = {
            "enabled": "not_a_boolean",
            "corrupted_field": "corrupted_value",
        }

        record = await redis_store.get_record("broken")

        assert record is not None
        assert record.enabled is False
        assert await redis_store.is_user_allowed("broken", "u1") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("marker", ["True", "TRUE", "1", "yes", ""])
    async def test_non_canonical_true_values(self, redis_store, fake_redis, marker):
        """Only the exact string true enables a flag."""
        fake_redis.hashes["test:feature-guard:beta:info"] = {"enabled": marker}

        assert await redis_store.is_user_allowed("beta", "u1") is False

    @pytest.mark.asyncio
    async def test_hash_without_marker_is_absent(self, redis_store, fake_redis):
        """Metadata lacking the enabled field means no flag."""
        fake_redis.hashes["test:feature-guard:beta:info"] = {"owner": "team-a"}
        fake_redis.sets["test:feature-guard:beta:users"] = {"u1"}

        assert await redis_store.get_record("beta") is None
        assert await redis_store.is_user_allowed("beta", "u1") is False

    @pytest.mark.asyncio
    async def test_marker_without_user_set_is_global(self, redis_store, fake_redis):
        """A marker on its own is a global flag."""
        fake_redis.hashes["test:feature-guard:beta:info"] = {"enabled": "true"}

        assert await redis_store.is_user_allowed("beta", "anyone") is True

    @pytest.mark.asyncio
    async def test_deleted_info_key_denies(self, redis_store, fake_redis):
        """Losing the info hash removes the flag even if users remain."""
        await redis_store.set_flag("beta", True, ["u1"])
        await fake_redis.delete("test:feature-guard:beta:info")

        assert await redis_store.is_user_allowed("beta", "u1") is False

    @pytest.mark.asyncio
    async def test_bytes_responses(self, fake_redis):
        """Clients without decode_responses are handled."""
        fake_redis.hgetall = AsyncMock(return_value={b"enabled": b"true"})
        fake_redis.smembers = AsyncMock(return_value={b"u1"})
        store = RedisFlagStore(fake_redis, prefix="p")

        record = await store.get_record("beta")

        assert record.enabled is True
        assert record.allowed_users == frozenset({"u1"})

    @pytest.mark.asyncio
    async def test_membership_uses_set_commands(self, redis_store, fake_redis):
        """Targeted checks do not load the full allow-list."""
        await redis_store.set_flag("beta", True, ["u1", "u2"])
        fake_redis.calls.clear()

        assert await redis_store.is_user_allowed("beta", "u2") is True
        assert fake_redis.commands("smembers") == []
        assert fake_redis.commands("sismember") == [("test:feature-guard:beta:users", "u2")]


class TestBackendErrors:
    """Backend failures propagate unchanged."""

    @pytest.mark.asyncio
    async def test_get_record_connection_error(self, redis_store, fake_redis):
        error = RedisConnectionError("Connection refused")
        fake_redis.hgetall = AsyncMock(side_effect=error)

        with pytest.raises(RedisConnectionError) as exc_info:
            await redis_store.get_record("beta")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_is_user_allowed_timeout(self, redis_store, fake_redis):
        fake_redis.hgetall = AsyncMock(side_effect=RedisTimeoutError("Timeout reading from socket"))

        with pytest.raises(RedisTimeoutError):
            await redis_store.is_user_allowed("beta", "u1")

    @pytest.mark.asyncio
    async def test_partial_failure_after_marker(self, redis_store, fake_redis):
        """A failure reading the user set surfaces as is."""
        await redis_store.set_flag("beta", True, ["u1"])
        fake_redis.scard = AsyncMock(side_effect=ResponseError("WRONGTYPE"))

        with pytest.raises(ResponseError):
            await redis_store.is_user_allowed("beta", "u1")

    @pytest.mark.asyncio
    async def test_set_flag_command_error(self, redis_store, fake_redis):
        fake_redis.hset = AsyncMock(side_effect=ResponseError("READONLY"))

        with pytest.raises(ResponseError):
            await redis_store.set_flag("beta", True, ["u1"])

        assert fake_redis.commands("sadd") == []

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self, redis_store, fake_redis):
        """The failing command is issued exactly once."""
        fake_redis.hgetall = AsyncMock(side_effect=RedisConnectionError("down"))

        with pytest.raises(RedisConnectionError):
            await redis_store.is_user_allowed("beta", "u1")

        assert fake_redis.hgetall.await_count == 1


class TestLifecycle:
    """Client construction and health."""

    @pytest.mark.asyncio
    async def test_health_check_ok(self, redis_store):
        assert await redis_store.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self, redis_store, fake_redis):
        fake_redis.ping = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await redis_store.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, redis_store, fake_redis):
        await redis_store.close()

        assert fake_redis.closed is True

    def test_from_url(self):
        """from_url builds a decoding client with the given timeouts."""
        client = FakeAsyncRedis()
        with patch.object(redis_store_module.redis, "from_url", return_value=client) as mock_from_url:
            store = RedisFlagStore.from_url(
                "redis://localhost:6379/1",
                prefix="custom",
                user_batch_size=50,
                socket_timeout=1.5
            )

        assert store.redis is client
        assert store.prefix == "custom"
        assert store.user_batch_size == 50
        args, kwargs = mock_from_url.call_args
        assert args == ("redis://localhost:6379/1",)
        assert kwargs["decode_responses"] is True
        assert kwargs["socket_timeout"] == 1.5
