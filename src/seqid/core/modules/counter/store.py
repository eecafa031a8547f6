"""Counter storage backends.

Correctness rests on the backend: create_if_absent, increment and raise_to
must each be a single atomic operation at the storage layer.
"""

from abc import ABC, abstractmethod
from typing import Any

from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from seqid.core.db import storage_errors
from seqid.core.modules.counter.models import Counter, counter_key


class CounterStore(ABC):
    """Durable per-(namespace, tenant) counter with atomic primitives."""

    async def create_indexes(self) -> None:
        """Create backend indexes on startup."""

    @abstractmethod
    async def get(self, namespace: str, tenant_id: str) -> Counter | None:
        """Read the counter without modifying it, or None if it was never created."""

    @abstractmethod
    async def create_if_absent(self, namespace: str, tenant_id: str, seed: int) -> bool:
        """Create the counter at `seed` unless it exists. Returns True if this call created it.

        Concurrent callers converge on exactly one seed value.
        """

    @abstractmethod
    async def increment(self, namespace: str, tenant_id: str) -> int | None:
        """Atomically increment and return the new value, or None if the counter does not exist."""

    @abstractmethod
    async def raise_to(self, namespace: str, tenant_id: str, seq: int) -> int:
        """Atomically set the counter to max(current, seq), creating it if needed. Returns the result."""


class MongoCounterStore(CounterStore):
    """Counters in a MongoDB collection, one document per key."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def create_indexes(self) -> None:
        with storage_errors("counter.create_indexes"):
            # One counter per namespace and tenant
            await self._collection.create_index([("namespace", 1), ("tenant_id", 1)], unique=True)

    async def get(self, namespace: str, tenant_id: str) -> Counter | None:
        with storage_errors("counter.get"):
            doc = await self._collection.find_one({"_id": counter_key(namespace, tenant_id)})
        if doc is None:
            return None
        return Counter.model_validate(doc)

    async def create_if_absent(self, namespace: str, tenant_id: str, seed: int) -> bool:
        with storage_errors("counter.create_if_absent"):
            try:
                result = await self._collection.update_one(
                    {"_id": counter_key(namespace, tenant_id)},
                    {"$setOnInsert": {"namespace": namespace, "tenant_id": tenant_id, "seq": seed}},
                    upsert=True,
                )
            except DuplicateKeyError:
                # Lost a concurrent upsert race on _id; the winner's seed stands
                return False
        return result.upserted_id is not None

    async def increment(self, namespace: str, tenant_id: str) -> int | None:
        with storage_errors("counter.increment"):
            doc = await self._collection.find_one_and_update(
                {"_id": counter_key(namespace, tenant_id)},
                {"$inc": {"seq": 1}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            return None
        return int(doc["seq"])

    async def raise_to(self, namespace: str, tenant_id: str, seq: int) -> int:
        with storage_errors("counter.raise_to"):
            doc = await self._collection.find_one_and_update(
                {"_id": counter_key(namespace, tenant_id)},
                {"$max": {"seq": seq}, "$setOnInsert": {"namespace": namespace, "tenant_id": tenant_id}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return int(doc["seq"])
