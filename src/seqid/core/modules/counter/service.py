from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from seqid.core.core import Service
from seqid.core.modules.counter.models import Counter, counter_key
from seqid.core.modules.counter.store import CounterStore, MongoCounterStore
from seqid.core.modules.namespace.models import Namespace
from seqid.errors import StorageUnavailableError

logger = structlog.get_logger(__name__)


class CounterService(Service):
    """Per-tenant monotonic counters, seeded lazily from existing records."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self.store: CounterStore = MongoCounterStore(database.get_collection("counters"))

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self.store.create_indexes()

    async def ensure_initialized(self, namespace: Namespace, tenant_id: str) -> None:
        """Create the counter seeded to the highest identifier already bound, if it does not exist.

        Safe to call concurrently and repeatedly: creation is a conditional insert,
        so racing callers converge on a single seed.
        """
        if await self.store.get(namespace.name, tenant_id) is not None:
            return

        seed = await self.core.services.record.store.max_sequence(namespace, tenant_id)
        created = await self.store.create_if_absent(namespace.name, tenant_id, seed)
        if created:
            logger.info("counter_initialized", namespace=namespace.name, tenant_id=tenant_id, seq=seed)
        else:
            logger.debug("counter_already_initialized", namespace=namespace.name, tenant_id=tenant_id)

    async def increment_and_get(self, namespace: Namespace, tenant_id: str) -> int:
        """Atomically increment the counter and return the new sequence number."""
        seq = await self.store.increment(namespace.name, tenant_id)
        if seq is None:
            await self.ensure_initialized(namespace, tenant_id)
            seq = await self.store.increment(namespace.name, tenant_id)
        if seq is None:
            raise StorageUnavailableError(f"Counter {counter_key(namespace.name, tenant_id)} vanished after initialization")
        return seq

    async def peek_next(self, namespace: Namespace, tenant_id: str) -> int:
        """Return the sequence number the next increment would produce, without writing anything."""
        counter = await self.get_counter(namespace, tenant_id)
        return counter.seq + 1

    async def get_counter(self, namespace: Namespace, tenant_id: str) -> Counter:
        """Get the stored counter, or an unsaved view seeded from existing records."""
        counter = await self.store.get(namespace.name, tenant_id)
        if counter is not None:
            return counter
        seed = await self.core.services.record.store.max_sequence(namespace, tenant_id)
        return Counter(
            key=counter_key(namespace.name, tenant_id),
            namespace=namespace.name,
            tenant_id=tenant_id,
            seq=seed,
            persisted=False,
        )

    async def resync(self, namespace: Namespace, tenant_id: str) -> Counter:
        """Raise the counter to at least the highest identifier bound in the data. Never lowers it."""
        highest = await self.core.services.record.store.max_sequence(namespace, tenant_id)
        seq = await self.store.raise_to(namespace.name, tenant_id, highest)
        logger.info("counter_resynced", namespace=namespace.name, tenant_id=tenant_id, highest_bound=highest, seq=seq)
        return Counter(key=counter_key(namespace.name, tenant_id), namespace=namespace.name, tenant_id=tenant_id, seq=seq)
