"""Shared pytest fixtures: services wired to in-memory stores."""

import asyncio
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import UUID

import pytest

from seqid.config import Config
from seqid.core.core import Services
from seqid.core.modules.allocator.utils import parse_sequence
from seqid.core.modules.counter.models import Counter, counter_key
from seqid.core.modules.counter.store import CounterStore
from seqid.core.modules.namespace.models import Namespace
from seqid.core.modules.record.models import Record, RecordStatus
from seqid.core.modules.record.store import RecordStore
from seqid.errors import DuplicateIdentifierError, StorageUnavailableError


class InMemoryCounterStore(CounterStore):
    """Counter store whose primitives are atomic with respect to the event loop.

    Each operation yields once before acting so concurrent callers interleave
    between service-level steps, never inside a primitive.
    """

    def __init__(self) -> None:
        self.counters: dict[str, Counter] = {}
        self.unavailable = False
        self.increments = 0

    async def _enter(self) -> None:
        await asyncio.sleep(0)
        if self.unavailable:
            raise StorageUnavailableError("counter store offline")

    async def get(self, namespace: str, tenant_id: str) -> Counter | None:
        await self._enter()
        counter = self.counters.get(counter_key(namespace, tenant_id))
        return counter.model_copy() if counter else None

    async def create_if_absent(self, namespace: str, tenant_id: str, seed: int) -> bool:
        await self._enter()
        key = counter_key(namespace, tenant_id)
        if key in self.counters:
            return False
        self.counters[key] = Counter(key=key, namespace=namespace, tenant_id=tenant_id, seq=seed)
        return True

    async def increment(self, namespace: str, tenant_id: str) -> int | None:
        await self._enter()
        counter = self.counters.get(counter_key(namespace, tenant_id))
        if counter is None:
            return None
        counter.seq += 1
        self.increments += 1
        return counter.seq

    async def raise_to(self, namespace: str, tenant_id: str, seq: int) -> int:
        await self._enter()
        key = counter_key(namespace, tenant_id)
        counter = self.counters.setdefault(key, Counter(key=key, namespace=namespace, tenant_id=tenant_id, seq=0))
        counter.seq = max(counter.seq, seq)
        return counter.seq


class InMemoryRecordStore(RecordStore):
    """Record store enforcing identifier uniqueness per (namespace, tenant)."""

    def __init__(self, namespaces: list[Namespace]) -> None:
        self.records: dict[UUID, Record] = {}
        self.namespaces = {namespace.name: namespace for namespace in namespaces}
        self.unavailable = False
        self.fail_commits = 0  # Number of upcoming commit_draft calls that fail

    async def _enter(self) -> None:
        await asyncio.sleep(0)
        if self.unavailable:
            raise StorageUnavailableError("record store offline")

    def _scoped(self, namespace: Namespace, tenant_id: str) -> list[Record]:
        return [r for r in self.records.values() if r.namespace == namespace.name and r.tenant_id == tenant_id]

    def seed(self, namespace: Namespace, tenant_id: str, identifier: str, **kwargs: object) -> Record:
        """Insert a pre-existing committed record synchronously."""
        record = Record(
            namespace=namespace.name,
            tenant_id=tenant_id,
            identifier=identifier,
            status=RecordStatus.ACTIVE,
            **kwargs,  # type: ignore[arg-type]
        )
        self.records[record.id] = record
        return record

    async def max_sequence(self, namespace: Namespace, tenant_id: str) -> int:
        await self._enter()
        sequences = [
            parse_sequence(namespace, r.identifier) for r in self._scoped(namespace, tenant_id) if r.identifier is not None
        ]
        return max((s for s in sequences if s is not None), default=0)

    async def exists(self, namespace: Namespace, tenant_id: str, identifier: str) -> bool:
        await self._enter()
        return any(r.identifier == identifier for r in self._scoped(namespace, tenant_id))

    async def insert(self, record: Record) -> None:
        await self._enter()
        namespace = self.namespaces[record.namespace]
        if record.identifier is not None and any(
            r.identifier == record.identifier for r in self._scoped(namespace, record.tenant_id)
        ):
            raise DuplicateIdentifierError(record.identifier)
        self.records[record.id] = record.model_copy()

    async def get(self, record_id: UUID) -> Record | None:
        await self._enter()
        record = self.records.get(record_id)
        return record.model_copy() if record else None

    async def get_by_identifier(self, namespace: Namespace, tenant_id: str, identifier: str) -> Record | None:
        await self._enter()
        for record in self._scoped(namespace, tenant_id):
            if record.identifier == identifier:
                return record.model_copy()
        return None

    async def list_records(
        self,
        namespace: Namespace,
        tenant_id: str,
        status: RecordStatus | None,
        include_deleted: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Record], int]:
        await self._enter()
        matches = [
            r
            for r in self._scoped(namespace, tenant_id)
            if (status is None or r.status == status) and (include_deleted or not r.is_deleted)
        ]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy() for r in matches[offset : offset + limit]], len(matches)

    async def commit_draft(
        self, record_id: UUID, identifier: str, status: RecordStatus, committed_at: datetime
    ) -> Record | None:
        await self._enter()
        if self.fail_commits:
            self.fail_commits -= 1
            raise StorageUnavailableError("record store write failed")
        record = self.records.get(record_id)
        if record is None or record.identifier is not None or record.is_deleted:
            return None
        record.identifier = identifier
        record.status = status
        record.committed_at = committed_at
        record.preview_identifier = None
        return record.model_copy()

    async def mark_deleted(self, record_id: UUID, deleted_at: datetime) -> Record | None:
        await self._enter()
        record = self.records.get(record_id)
        if record is None or record.is_deleted:
            return None
        record.is_deleted = True
        record.deleted_at = deleted_at
        return record.model_copy()

    async def set_previews(self, namespace: Namespace, tenant_id: str, preview: str) -> int:
        await self._enter()
        updated = 0
        for record in self._scoped(namespace, tenant_id):
            if record.identifier is None and not record.is_deleted and record.preview_identifier != preview:
                record.preview_identifier = preview
                updated += 1
        return updated


@pytest.fixture
def course():
    """Create the course namespace used across tests."""
    return Namespace(name="course", prefix="COURSE", width=4)


@pytest.fixture
def event():
    """Create the event namespace used across tests."""
    return Namespace(name="event", prefix="EVT", width=4)


@pytest.fixture
def config(course, event):
    """Create a config pointing at a throwaway database."""
    return Config(
        database_url="mongodb://localhost:27017/seqid_test",
        host="127.0.0.1",
        port=8000,
        debug=True,
        namespaces=[course, event],
    )


@pytest.fixture
def counter_store():
    return InMemoryCounterStore()


@pytest.fixture
def record_store(config):
    return InMemoryRecordStore(config.namespaces)


@pytest.fixture
def services(config, counter_store, record_store):
    """All services wired together on in-memory stores; no database is contacted."""
    services = Services(MagicMock())
    services.counter.store = counter_store
    services.record.store = record_store
    services.set_core(SimpleNamespace(config=config, services=services))  # type: ignore[arg-type]
    return services
