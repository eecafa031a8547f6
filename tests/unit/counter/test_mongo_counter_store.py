"""Tests for the MongoDB counter store against a mocked collection."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from seqid.core.modules.counter.store import MongoCounterStore
from seqid.errors import StorageUnavailableError


@pytest.fixture
def collection():
    """Create a mock async collection."""
    collection = MagicMock()
    collection.find_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.create_index = AsyncMock()
    return collection


@pytest.fixture
def store(collection):
    return MongoCounterStore(collection)


class TestGet:
    """Tests for reading counters."""

    @pytest.mark.asyncio
    async def test_reads_by_key(self, store, collection):
        """Test that counters are looked up by their namespace_tenant key."""
        collection.find_one.return_value = {"_id": "course_tenant-a", "namespace": "course", "tenant_id": "tenant-a", "seq": 5}
        counter = await store.get("course", "tenant-a")
        collection.find_one.assert_awaited_once_with({"_id": "course_tenant-a"})
        assert counter.key == "course_tenant-a"
        assert counter.seq == 5

    @pytest.mark.asyncio
    async def test_missing_counter(self, store, collection):
        """Test that a missing counter reads as None."""
        collection.find_one.return_value = None
        assert await store.get("course", "tenant-a") is None


class TestCreateIfAbsent:
    """Tests for seeding counters."""

    @pytest.mark.asyncio
    async def test_upsert_only_sets_on_insert(self, store, collection):
        """Test that creation never overwrites an existing counter."""
        collection.update_one.return_value = MagicMock(upserted_id="course_tenant-a")
        assert await store.create_if_absent("course", "tenant-a", 7) is True
        collection.update_one.assert_awaited_once_with(
            {"_id": "course_tenant-a"},
            {"$setOnInsert": {"namespace": "course", "tenant_id": "tenant-a", "seq": 7}},
            upsert=True,
        )

    @pytest.mark.asyncio
    async def test_existing_counter_not_created(self, store, collection):
        """Test that matching an existing document reports no creation."""
        collection.update_one.return_value = MagicMock(upserted_id=None)
        assert await store.create_if_absent("course", "tenant-a", 7) is False

    @pytest.mark.asyncio
    async def test_lost_upsert_race(self, store, collection):
        """Test that a duplicate key from a concurrent upsert means another caller won."""
        collection.update_one.side_effect = DuplicateKeyError("E11000 duplicate key error")
        assert await store.create_if_absent("course", "tenant-a", 7) is False


class TestIncrement:
    """Tests for atomic increments."""

    @pytest.mark.asyncio
    async def test_increment_returns_new_value(self, store, collection):
        """Test that increments use $inc and return the post-update value."""
        collection.find_one_and_update.return_value = {"_id": "course_tenant-a", "seq": 8}
        assert await store.increment("course", "tenant-a") == 8
        collection.find_one_and_update.assert_awaited_once_with(
            {"_id": "course_tenant-a"},
            {"$inc": {"seq": 1}},
            return_document=ReturnDocument.AFTER,
        )

    @pytest.mark.asyncio
    async def test_increment_never_upserts(self, store, collection):
        """Test that incrementing a missing counter reports None instead of creating it at 1."""
        collection.find_one_and_update.return_value = None
        assert await store.increment("course", "tenant-a") is None
        assert "upsert" not in collection.find_one_and_update.await_args.kwargs

    @pytest.mark.asyncio
    async def test_driver_failure_translated(self, store, collection):
        """Test that driver errors surface as StorageUnavailableError."""
        collection.find_one_and_update.side_effect = ServerSelectionTimeoutError("no servers")
        with pytest.raises(StorageUnavailableError, match="counter.increment"):
            await store.increment("course", "tenant-a")


class TestRaiseTo:
    """Tests for monotonic resync."""

    @pytest.mark.asyncio
    async def test_uses_max_operator(self, store, collection):
        """Test that raising uses $max so the counter can never go down."""
        collection.find_one_and_update.return_value = {"_id": "course_tenant-a", "seq": 12}
        assert await store.raise_to("course", "tenant-a", 10) == 12
        collection.find_one_and_update.assert_awaited_once_with(
            {"_id": "course_tenant-a"},
            {"$max": {"seq": 10}, "$setOnInsert": {"namespace": "course", "tenant_id": "tenant-a"}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )


class TestCreateIndexes:
    """Tests for counter indexes."""

    @pytest.mark.asyncio
    async def test_unique_per_namespace_and_tenant(self, store, collection):
        """Test that at most one counter document can exist per namespace and tenant."""
        await store.create_indexes()
        collection.create_index.assert_awaited_once_with([("namespace", 1), ("tenant_id", 1)], unique=True)
