"""Tests for the response cache engine and the invalidation worker."""

import asyncio
import json
import logging

import pytest

from spacefy.core.cache_store import RedisCacheStore
from spacefy.core.invalidation_worker import InvalidationWorker
from spacefy.services.cache_service import CacheCategory, CacheEngine, is_success_body
from spacefy.services.cache_tags import RequestShape
from tests.fakes import FailingCacheStore, InMemoryCacheStore


def _body(**extra) -> bytes:
    return json.dumps({"success": True, "data": [], **extra}).encode()


class TestSuccessMarker:

    def test_success_true_or_status_success(self):
        assert is_success_body({"success": True})
        assert is_success_body({"status": "success"})

    def test_anything_else_is_not_cacheable(self):
        assert not is_success_body({"success": False})
        assert not is_success_body({"data": 1})
        assert not is_success_body([1, 2])


class TestReadPath:

    @pytest.mark.asyncio
    async def test_remember_then_lookup(self):
        store = InMemoryCacheStore()
        engine = CacheEngine(store, ttl_list=60, ttl_by_id=300)
        shape = RequestShape("roles", {})

        assert await engine.remember("roles:page=1", _body(), engine.ttl_for(CacheCategory.LIST), shape) is True
        assert await engine.lookup("roles:page=1") == {"success": True, "data": []}
        assert store.expiry["roles:page=1"] == 60
        assert "roles:page=1" in store.sets["cacheTag:route:roles"]
        assert "roles:page=1" in store.sets["cacheTag:prefix:role"]

    @pytest.mark.asyncio
    async def test_zero_ttl_means_no_expiry(self):
        store = InMemoryCacheStore()
        engine = CacheEngine(store, ttl_list=0)
        await engine.remember("roles:x", _body(), engine.ttl_for(CacheCategory.LIST), RequestShape("roles"))
        assert store.expiry["roles:x"] is None

    @pytest.mark.asyncio
    async def test_error_body_not_cached(self):
        store = InMemoryCacheStore()
        engine = CacheEngine(store)
        body = json.dumps({"success": False, "error": "FORBIDDEN"}).encode()
        assert await engine.remember("roles:x", body, 60, RequestShape("roles")) is False
        assert store.values == {}

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_a_miss(self):
        store = InMemoryCacheStore()
        store.values["roles:x"] = "{not json"
        assert await CacheEngine(store).lookup("roles:x") is None

    @pytest.mark.asyncio
    async def test_store_failure_fails_open(self):
        engine = CacheEngine(FailingCacheStore())
        assert await engine.lookup("roles:x") is None
        assert await engine.remember("roles:x", _body(), 60, RequestShape("roles")) is False


class TestInvalidate:

    @pytest.mark.asyncio
    async def test_removes_entries_indexed_under_shape_tags(self):
        store = InMemoryCacheStore()
        engine = CacheEngine(store)
        await engine.remember("device:d1", _body(), 300, RequestShape("devices", {"branch_id": "b1", "device_id": "d1"}))
        await engine.remember("devices:branch_id=b1:page=1", _body(), 60, RequestShape("devices", {"branch_id": "b1"}))
        await engine.remember("roles:page=1", _body(), 60, RequestShape("roles"))

        await engine.invalidate(RequestShape("devices", {"branch_id": "b1", "device_id": "d1"}))

        assert "device:d1" not in store.values
        assert "devices:branch_id=b1:page=1" not in store.values
        assert "roles:page=1" in store.values
        assert "cacheTag:route:devices" not in store.sets

    @pytest.mark.asyncio
    async def test_sweeps_untagged_keys_by_pattern(self):
        store = InMemoryCacheStore()
        store.values["devices:legacy"] = "{}"
        store.values["device:abc"] = "{}"
        store.values["report:branch_id=b7:x"] = "{}"
        store.values["roles:keep"] = "{}"

        removed = await CacheEngine(store).invalidate(RequestShape("devices", {"branch_id": "b7"}))

        assert removed == 3
        assert set(store.values) == {"roles:keep"}

    @pytest.mark.asyncio
    async def test_all_memberships_read_before_first_delete(self):
        store = InMemoryCacheStore()
        engine = CacheEngine(store)
        await engine.remember("branch:b1", _body(), 300, RequestShape("branches", {"branch_id": "b1"}))

        await engine.invalidate(RequestShape("branches", {"branch_id": "b1"}))

        first_delete = store.deleted_batches[0]
        assert "branch:b1" in first_delete
        assert "cacheTag:route:branches" in first_delete
        assert "cacheTag:param:branch_id:b1" in first_delete

    @pytest.mark.asyncio
    async def test_sweep_deletes_in_batches(self):
        store = InMemoryCacheStore()
        for i in range(5):
            store.values[f"users:page={i}"] = "{}"

        await CacheEngine(store, scan_count=2).invalidate(RequestShape("users"))

        sweep_batches = store.deleted_batches[1:]
        assert [len(b) for b in sweep_batches] == [2, 2, 1]
        assert store.values == {}

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        with pytest.raises(ConnectionError):
            await CacheEngine(FailingCacheStore()).invalidate(RequestShape("roles"))


class TestInvalidationWorker:

    @pytest.mark.asyncio
    async def test_processes_submitted_shapes(self):
        store = InMemoryCacheStore()
        engine = CacheEngine(store)
        await engine.remember("roles:page=1", _body(), 60, RequestShape("roles"))

        worker = InvalidationWorker(engine)
        worker.start()
        worker.submit(RequestShape("roles"))
        await worker.join()

        assert store.values == {}
        await worker.stop()
        assert worker.running is False

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_worker_keeps_running(self, caplog):
        worker = InvalidationWorker(CacheEngine(FailingCacheStore()))
        worker.start()
        with caplog.at_level(logging.ERROR, logger="spacefy.core.invalidation_worker"):
            worker.submit(RequestShape("roles"))
            await worker.join()

        assert worker.running is True
        failures = [r for r in caplog.records if r.getMessage() == "Cache invalidation failed"]
        assert failures and failures[0].exc_info is not None
        await worker.stop()

    @pytest.mark.asyncio
    async def test_submit_does_not_wait_for_invalidation(self):
        started = asyncio.Event()
        release = asyncio.Event()

        class BlockingEngine:
            async def invalidate(self, shape):
                started.set()
                await release.wait()

        worker = InvalidationWorker(BlockingEngine())
        worker.start()
        worker.submit(RequestShape("roles"))
        await asyncio.wait_for(started.wait(), timeout=1)
        # Submission returned while the invalidation is still in flight.
        release.set()
        await worker.stop()


class _RecordingRedis:
    """Stands in for a redis.asyncio client; records calls."""

    def __init__(self):
        self.calls = []

    async def set(self, key, value, ex=None):
        self.calls.append(("set", key, value, ex))

    async def smembers(self, key):
        return ["a", "b", "a"]


class TestRedisCacheStore:

    @pytest.mark.asyncio
    async def test_smembers_returns_builtin_set(self):
        store = RedisCacheStore(_RecordingRedis())
        assert await store.smembers("cacheTag:route:roles") == {"a", "b"}

    @pytest.mark.asyncio
    async def test_zero_ttl_sets_without_expiry(self):
        client = _RecordingRedis()
        store = RedisCacheStore(client)
        await store.set("k", "v", ttl=0)
        await store.set("k", "v", ttl=60)
        assert client.calls == [("set", "k", "v", None), ("set", "k", "v", 60)]
