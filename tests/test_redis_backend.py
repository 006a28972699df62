"""Tests for the Redis storage backend against a mocked redis.asyncio client."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from neo_acl.core.exceptions import BatchStateError, StorageNotConfiguredError
from neo_acl.infrastructure.backends import RedisBackend, RedisBatch


class TestRedisBackend:
    """Redis key layout, pipelines and replies."""

    @pytest.fixture
    def backend(self, mock_redis_client):
        return RedisBackend(mock_redis_client, key_prefix="acl")

    def test_bucket_key_layout(self, backend):
        assert backend.bucket_key("users", "joed") == "acl_users@joed"
        assert backend.bucket_key("allows_blogs", "guest") == "acl_allows_blogs@guest"

    def test_separator_in_names_is_encoded(self, backend):
        assert backend.bucket_key("allows_a@b", "r") == "acl_allows_a%40b@r"
        assert backend.bucket_key("allows_a", "b@r") == "acl_allows_a@b%40r"
        assert backend.bucket_key("allows_a%40b", "r") == "acl_allows_a%2540b@r"
        assert len({
            backend.bucket_key("allows_a@b", "r"),
            backend.bucket_key("allows_a", "b@r"),
            backend.bucket_key("allows_a%40b", "r"),
        }) == 3

    @pytest.mark.asyncio
    async def test_encoded_keys_are_used_for_reads_and_writes(self, backend, mock_redis_client):
        batch = backend.begin_batch()
        backend.add(batch, "allows_/blogs@v2", "guest", "view")

        batch.pipeline.sadd.assert_called_once_with("acl_allows_/blogs%40v2@guest", "view")

        mock_redis_client.smembers.return_value = {"view"}
        assert await backend.get("allows_/blogs@v2", "guest") == {"view"}
        mock_redis_client.smembers.assert_awaited_once_with("acl_allows_/blogs%40v2@guest")

    def test_begin_batch_uses_transactional_pipeline(self, backend, mock_redis_client):
        batch = backend.begin_batch()

        assert isinstance(batch, RedisBatch)
        mock_redis_client.pipeline.assert_called_once_with(transaction=True)
        assert batch.pipeline.transaction is True

    @pytest.mark.asyncio
    async def test_add_remove_delete_are_queued_on_pipeline(self, backend):
        batch = backend.begin_batch()
        backend.add(batch, "users", "joed", ["guest", "admin"])
        backend.remove(batch, "roles", "guest", "joed")
        backend.delete(batch, "parents", ["member", "admin"])

        batch.pipeline.sadd.assert_called_once_with("acl_users@joed", "admin", "guest")
        batch.pipeline.srem.assert_called_once_with("acl_roles@guest", "joed")
        batch.pipeline.delete.assert_called_once_with("acl_parents@admin", "acl_parents@member")
        batch.pipeline.execute.assert_not_called()

        await backend.commit_batch(batch)
        batch.pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_values_are_not_sent(self, backend):
        batch = backend.begin_batch()
        backend.add(batch, "users", "joed", [])
        backend.remove(batch, "users", "joed", [])
        backend.delete(batch, "users", [])

        assert len(batch) == 0
        await backend.commit_batch(batch)
        batch.pipeline.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_commit_twice_is_rejected(self, backend):
        batch = backend.begin_batch()
        backend.add(batch, "users", "joed", "guest")
        await backend.commit_batch(batch)

        with pytest.raises(BatchStateError):
            await backend.commit_batch(batch)

    @pytest.mark.asyncio
    async def test_commit_failure_propagates(self, backend):
        batch = backend.begin_batch()
        backend.add(batch, "users", "joed", "guest")
        batch.pipeline.execute.side_effect = ConnectionError("connection lost")

        with pytest.raises(ConnectionError):
            await backend.commit_batch(batch)

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self, backend, mock_redis_client):
        mock_redis_client.smembers.return_value = {b"guest", "admin"}

        result = await backend.get("users", "joed")

        assert result == {"guest", "admin"}
        mock_redis_client.smembers.assert_awaited_once_with("acl_users@joed")

    @pytest.mark.asyncio
    async def test_union(self, backend, mock_redis_client):
        mock_redis_client.sunion.return_value = {"view", "edit"}

        result = await backend.union("allows_blogs", ["guest", "member"])

        assert result == {"view", "edit"}
        mock_redis_client.sunion.assert_awaited_once_with(
            ["acl_allows_blogs@guest", "acl_allows_blogs@member"]
        )

    @pytest.mark.asyncio
    async def test_union_without_keys_skips_redis(self, backend, mock_redis_client):
        assert await backend.union("allows_blogs", []) == set()
        mock_redis_client.sunion.assert_not_called()

    @pytest.mark.asyncio
    async def test_unions_single_round_trip(self, backend, mock_redis_client):
        pipeline = MagicMock()
        pipeline.execute = AsyncMock(return_value=[{b"view"}, {"*"}])
        mock_redis_client.pipeline = MagicMock(return_value=pipeline)

        result = await backend.unions(["allows_blogs", "allows_forums"], ["guest", "admin"])

        assert result == {"allows_blogs": {"view"}, "allows_forums": {"*"}}
        mock_redis_client.pipeline.assert_called_once_with(transaction=False)
        assert pipeline.sunion.call_count == 2
        pipeline.sunion.assert_any_call(["acl_allows_blogs@guest", "acl_allows_blogs@admin"])
        pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unions_without_keys(self, backend, mock_redis_client):
        result = await backend.unions(["allows_blogs"], [])

        assert result == {"allows_blogs": set()}
        mock_redis_client.pipeline.assert_not_called()

    @pytest.mark.asyncio
    async def test_clean_deletes_prefixed_keys(self, backend, mock_redis_client):
        async def scan_iter(match=None):
            for key in ["acl_users@joed", "acl_roles@guest"]:
                yield key

        mock_redis_client.scan_iter = MagicMock(side_effect=scan_iter)

        await backend.clean()

        mock_redis_client.scan_iter.assert_called_once_with(match="acl_*")
        mock_redis_client.delete.assert_awaited_once_with("acl_users@joed", "acl_roles@guest")

    @pytest.mark.asyncio
    async def test_close(self, backend, mock_redis_client):
        await backend.close()
        mock_redis_client.aclose.assert_awaited_once()

    def test_missing_client(self):
        backend = RedisBackend(None)

        with pytest.raises(StorageNotConfiguredError):
            backend.begin_batch()

    def test_from_url(self):
        with patch("neo_acl.infrastructure.backends.redis_backend.redis.from_url") as from_url:
            backend = RedisBackend.from_url("redis://localhost:6379/0", key_prefix="test")

        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
        assert backend.bucket_key("meta", "roles") == "test_meta@roles"
