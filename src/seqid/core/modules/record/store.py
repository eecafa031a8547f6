"""Record storage backends and the entity lookup used by the allocator."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from seqid.core.db import storage_errors
from seqid.core.modules.allocator.utils import identifier_pattern
from seqid.core.modules.namespace.models import Namespace
from seqid.core.modules.record.models import Record, RecordStatus
from seqid.errors import DuplicateIdentifierError


class EntityLookup(ABC):
    """Read-only view of identifiers already bound to records.

    Both operations consider every record of the tenant and namespace:
    active, cancelled, soft-deleted, and drafts holding a committed identifier.
    """

    @abstractmethod
    async def max_sequence(self, namespace: Namespace, tenant_id: str) -> int:
        """Highest numeric suffix bound in the namespace for the tenant, 0 if none."""

    @abstractmethod
    async def exists(self, namespace: Namespace, tenant_id: str, identifier: str) -> bool:
        """Whether the identifier is bound to any record of the tenant."""


class RecordStore(EntityLookup):
    """Record persistence needed by the creation workflow and the lifecycle."""

    async def create_indexes(self) -> None:
        """Create backend indexes on startup."""

    @abstractmethod
    async def insert(self, record: Record) -> None:
        """Persist a new record. Raises DuplicateIdentifierError if its identifier is taken."""

    @abstractmethod
    async def get(self, record_id: UUID) -> Record | None:
        """Get a record by its internal id."""

    @abstractmethod
    async def get_by_identifier(self, namespace: Namespace, tenant_id: str, identifier: str) -> Record | None:
        """Get a record by its committed identifier, deleted or not."""

    @abstractmethod
    async def list_records(
        self,
        namespace: Namespace,
        tenant_id: str,
        status: RecordStatus | None,
        include_deleted: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Record], int]:
        """Get one page of records, newest first, and the total count of matches."""

    @abstractmethod
    async def commit_draft(
        self, record_id: UUID, identifier: str, status: RecordStatus, committed_at: datetime
    ) -> Record | None:
        """Bind an identifier to a live uncommitted draft.

        Returns None when the draft is gone, deleted, or already committed.
        """

    @abstractmethod
    async def mark_deleted(self, record_id: UUID, deleted_at: datetime) -> Record | None:
        """Flag a live record as deleted. Returns None if it is missing or already deleted."""

    @abstractmethod
    async def set_previews(self, namespace: Namespace, tenant_id: str, preview: str) -> int:
        """Stamp the preview onto every live uncommitted draft. Returns the number updated."""


class MongoRecordStore(RecordStore):
    """Records in a single MongoDB collection shared by all namespaces."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        with storage_errors("record.create_indexes"):
            await self._collection.create_index(
                [("namespace", 1), ("tenant_id", 1), ("identifier", 1)],
                unique=True,
                partialFilterExpression={"identifier": {"$type": "string"}},
            )
            await self._collection.create_index([("namespace", 1), ("tenant_id", 1), ("created_at", -1)])

    async def max_sequence(self, namespace: Namespace, tenant_id: str) -> int:
        # Numeric max, not string max: COURSE10000 sorts before COURSE9999 as text
        pipeline: list[dict[str, Any]] = [
            {
                "$match": {
                    "namespace": namespace.name,
                    "tenant_id": tenant_id,
                    "identifier": {"$regex": identifier_pattern(namespace)},
                }
            },
            {
                "$group": {
                    "_id": None,
                    "max_seq": {
                        "$max": {
                            "$toLong": {
                                "$substrCP": ["$identifier", len(namespace.prefix), {"$strLenCP": "$identifier"}]
                            }
                        }
                    },
                }
            },
        ]
        with storage_errors("record.max_sequence"):
            cursor = await self._collection.aggregate(pipeline)
            docs = await cursor.to_list()
        if not docs or docs[0].get("max_seq") is None:
            return 0
        return int(docs[0]["max_seq"])

    async def exists(self, namespace: Namespace, tenant_id: str, identifier: str) -> bool:
        with storage_errors("record.exists"):
            doc = await self._collection.find_one(
                {"namespace": namespace.name, "tenant_id": tenant_id, "identifier": identifier},
                projection={"_id": 1},
            )
        return doc is not None

    async def insert(self, record: Record) -> None:
        with storage_errors("record.insert"):
            try:
                await self._collection.insert_one(record.to_mongo())
            except DuplicateKeyError as e:
                raise DuplicateIdentifierError(record.identifier or str(record.id)) from e

    async def get(self, record_id: UUID) -> Record | None:
        with storage_errors("record.get"):
            doc = await self._collection.find_one({"_id": record_id})
        return Record.from_mongo(doc)

    async def get_by_identifier(self, namespace: Namespace, tenant_id: str, identifier: str) -> Record | None:
        with storage_errors("record.get_by_identifier"):
            doc = await self._collection.find_one(
                {"namespace": namespace.name, "tenant_id": tenant_id, "identifier": identifier}
            )
        return Record.from_mongo(doc)

    async def list_records(
        self,
        namespace: Namespace,
        tenant_id: str,
        status: RecordStatus | None,
        include_deleted: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Record], int]:
        query: dict[str, Any] = {"namespace": namespace.name, "tenant_id": tenant_id}
        if status is not None:
            query["status"] = status
        if not include_deleted:
            query["is_deleted"] = False

        with storage_errors("record.list_records"):
            total = await self._collection.count_documents(query)
            cursor = self._collection.find(query).sort("created_at", -1).skip(offset).limit(limit)
            items = await Record.list_cursor(cursor)
        return items, total

    async def commit_draft(
        self, record_id: UUID, identifier: str, status: RecordStatus, committed_at: datetime
    ) -> Record | None:
        with storage_errors("record.commit_draft"):
            doc = await self._collection.find_one_and_update(
                {"_id": record_id, "identifier": None, "is_deleted": False},
                {
                    "$set": {
                        "identifier": identifier,
                        "status": status,
                        "committed_at": committed_at,
                        "preview_identifier": None,
                    }
                },
                return_document=ReturnDocument.AFTER,
            )
        return Record.from_mongo(doc)

    async def mark_deleted(self, record_id: UUID, deleted_at: datetime) -> Record | None:
        with storage_errors("record.mark_deleted"):
            doc = await self._collection.find_one_and_update(
                {"_id": record_id, "is_deleted": False},
                {"$set": {"is_deleted": True, "deleted_at": deleted_at}},
                return_document=ReturnDocument.AFTER,
            )
        return Record.from_mongo(doc)

    async def set_previews(self, namespace: Namespace, tenant_id: str, preview: str) -> int:
        with storage_errors("record.set_previews"):
            result = await self._collection.update_many(
                {"namespace": namespace.name, "tenant_id": tenant_id, "identifier": None, "is_deleted": False},
                {"$set": {"preview_identifier": preview}},
            )
        return result.modified_count
