"""Tests for the MongoDB record store against a mocked collection."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from seqid.core.modules.record.models import Record, RecordStatus
from seqid.core.modules.record.store import MongoRecordStore
from seqid.errors import DuplicateIdentifierError, StorageUnavailableError
from seqid.utils import now


@pytest.fixture
def collection():
    """Create a mock async collection."""
    collection = MagicMock()
    collection.find_one = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.update_many = AsyncMock()
    collection.count_documents = AsyncMock()
    collection.aggregate = AsyncMock()
    return collection


@pytest.fixture
def store(collection):
    return MongoRecordStore(collection)


def aggregate_result(collection, docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    collection.aggregate.return_value = cursor


class TestMaxSequence:
    """Tests for the numeric maximum over bound identifiers."""

    @pytest.mark.asyncio
    async def test_returns_aggregated_maximum(self, store, collection, course):
        """Test that the aggregated maximum is returned as an int."""
        aggregate_result(collection, [{"_id": None, "max_seq": 10000}])
        assert await store.max_sequence(course, "tenant-a") == 10000

    @pytest.mark.asyncio
    async def test_no_matches_is_zero(self, store, collection, course):
        """Test that a namespace without identifiers starts from zero."""
        aggregate_result(collection, [])
        assert await store.max_sequence(course, "tenant-a") == 0

    @pytest.mark.asyncio
    async def test_match_is_scoped_and_ignores_deletion(self, store, collection, course):
        """Test that the match covers one tenant and namespace, with deleted records included."""
        aggregate_result(collection, [])
        await store.max_sequence(course, "tenant-a")
        pipeline = collection.aggregate.await_args.args[0]
        match = pipeline[0]["$match"]
        assert match == {"namespace": "course", "tenant_id": "tenant-a", "identifier": {"$regex": "^COURSE[0-9]+$"}}
        assert "is_deleted" not in match

    @pytest.mark.asyncio
    async def test_driver_failure_translated(self, store, collection, course):
        """Test that an unreachable database is reported, never read as zero."""
        collection.aggregate.side_effect = AutoReconnect("connection reset")
        with pytest.raises(StorageUnavailableError):
            await store.max_sequence(course, "tenant-a")


class TestExists:
    """Tests for identifier existence checks."""

    @pytest.mark.asyncio
    async def test_exists(self, store, collection, course):
        """Test that any matching document counts as bound."""
        collection.find_one.return_value = {"_id": uuid4()}
        assert await store.exists(course, "tenant-a", "COURSE0001") is True
        collection.find_one.assert_awaited_once_with(
            {"namespace": "course", "tenant_id": "tenant-a", "identifier": "COURSE0001"},
            projection={"_id": 1},
        )

    @pytest.mark.asyncio
    async def test_free(self, store, collection, course):
        """Test that an unmatched identifier is free."""
        collection.find_one.return_value = None
        assert await store.exists(course, "tenant-a", "COURSE0001") is False


class TestInsert:
    """Tests for inserting records."""

    @pytest.mark.asyncio
    async def test_stores_without_computed_state(self, store, collection):
        """Test that records are stored under _id and the derived state is not persisted."""
        record = Record(namespace="course", tenant_id="tenant-a", identifier="COURSE0001", status=RecordStatus.ACTIVE)
        await store.insert(record)
        doc = collection.insert_one.await_args.args[0]
        assert doc["_id"] == record.id
        assert doc["identifier"] == "COURSE0001"
        assert "state" not in doc
        assert "id" not in doc

    @pytest.mark.asyncio
    async def test_duplicate_identifier(self, store, collection):
        """Test that the unique index violation maps to DuplicateIdentifierError."""
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")
        record = Record(namespace="course", tenant_id="tenant-a", identifier="COURSE0001", status=RecordStatus.ACTIVE)
        with pytest.raises(DuplicateIdentifierError) as exc_info:
            await store.insert(record)
        assert exc_info.value.identifier == "COURSE0001"


class TestCommitDraft:
    """Tests for binding identifiers to drafts."""

    @pytest.mark.asyncio
    async def test_only_live_uncommitted_drafts_match(self, store, collection):
        """Test that the update is conditional on the draft being uncommitted and not deleted."""
        draft_id = uuid4()
        collection.find_one_and_update.return_value = None
        assert await store.commit_draft(draft_id, "COURSE0001", RecordStatus.ACTIVE, now()) is None
        query, update = collection.find_one_and_update.await_args.args
        assert query == {"_id": draft_id, "identifier": None, "is_deleted": False}
        assert update["$set"]["identifier"] == "COURSE0001"
        assert update["$set"]["preview_identifier"] is None


class TestListRecords:
    """Tests for paginated listing."""

    @pytest.mark.asyncio
    async def test_excludes_deleted_by_default(self, store, collection, course):
        """Test that listing filters deleted records and pages newest first."""
        record = Record(namespace="course", tenant_id="tenant-a", identifier="COURSE0001", status=RecordStatus.ACTIVE)
        cursor = MagicMock()
        cursor.__aiter__.return_value = [record.to_mongo()]
        collection.find.return_value.sort.return_value.skip.return_value.limit.return_value = cursor
        collection.count_documents.return_value = 1

        items, total = await store.list_records(course, "tenant-a", None, False, 10, 0)

        assert total == 1
        assert [item.identifier for item in items] == ["COURSE0001"]
        collection.find.assert_called_once_with({"namespace": "course", "tenant_id": "tenant-a", "is_deleted": False})
        collection.find.return_value.sort.assert_called_once_with("created_at", -1)


class TestSetPreviews:
    """Tests for pushing previews onto drafts."""

    @pytest.mark.asyncio
    async def test_targets_live_uncommitted_drafts(self, store, collection, course):
        """Test that only live uncommitted drafts of the tenant are stamped."""
        collection.update_many.return_value = MagicMock(modified_count=3)
        assert await store.set_previews(course, "tenant-a", "COURSE0005") == 3
        collection.update_many.assert_awaited_once_with(
            {"namespace": "course", "tenant_id": "tenant-a", "identifier": None, "is_deleted": False},
            {"$set": {"preview_identifier": "COURSE0005"}},
        )
