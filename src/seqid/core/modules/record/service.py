from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from seqid.core.core import Service
from seqid.core.modules.allocator.utils import degraded_identifier
from seqid.core.modules.namespace.models import Namespace
from seqid.core.modules.record.models import Record, RecordPage, RecordStatus
from seqid.core.modules.record.store import MongoRecordStore, RecordStore
from seqid.errors import (
    AllocationError,
    DraftNotFoundError,
    DuplicateIdentifierError,
    IdentifierBurnedError,
    NotFoundError,
    PartialBulkCreateError,
    StorageUnavailableError,
)
from seqid.utils import now, require_tenant

logger = structlog.get_logger(__name__)


class RecordService(Service):
    """Creates and reads sequence-identified records."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self.store: RecordStore = MongoRecordStore(database.get_collection("records"))

    async def on_start(self) -> None:
        """Create indexes for identifier uniqueness and listing."""
        await self.store.create_indexes()

    async def create_record(
        self, namespace: Namespace, tenant_id: str, fields: dict[str, Any], status: RecordStatus = RecordStatus.ACTIVE
    ) -> Record:
        """Assign an identifier and persist a committed record.

        No record is ever persisted without a valid identifier: allocation errors
        abort creation, unless degraded fallback is enabled and storage is down.
        """
        tenant_id = require_tenant(tenant_id)
        record = await self._create_committed(namespace, tenant_id, fields, status)
        await self.core.services.lifecycle.refresh_after_change(namespace, tenant_id)
        return record

    async def create_records(
        self, namespace: Namespace, tenant_id: str, items: list[dict[str, Any]], status: RecordStatus = RecordStatus.ACTIVE
    ) -> list[Record]:
        """Create several committed records; identifiers follow input order.

        Items are stored one at a time. If an item fails after others were stored,
        PartialBulkCreateError names the stored identifiers so only the rest are retried.
        """
        tenant_id = require_tenant(tenant_id)
        records: list[Record] = []
        for index, fields in enumerate(items):
            try:
                records.append(await self._create_committed(namespace, tenant_id, fields, status))
            except AllocationError as e:
                if not records:
                    raise
                created = [record.identifier for record in records if record.identifier is not None]
                burned = e.identifier if isinstance(e, IdentifierBurnedError) else None
                logger.error(
                    "records_partially_created",
                    namespace=namespace.name,
                    tenant_id=tenant_id,
                    created=created,
                    burned=burned,
                    remaining=len(items) - index,
                    error=str(e),
                )
                await self.core.services.lifecycle.refresh_after_change(namespace, tenant_id)
                raise PartialBulkCreateError(created, burned, len(items) - index) from e
        if records:
            await self.core.services.lifecycle.refresh_after_change(namespace, tenant_id)
        logger.info("records_created", namespace=namespace.name, tenant_id=tenant_id, count=len(records))
        return records

    async def create_draft(self, namespace: Namespace, tenant_id: str, fields: dict[str, Any]) -> Record:
        """Persist a draft that previews, but does not reserve, the next identifier."""
        tenant_id = require_tenant(tenant_id)
        preview = await self.core.services.allocator.preview(namespace, tenant_id)
        draft = Record(
            namespace=namespace.name,
            tenant_id=tenant_id,
            status=RecordStatus.DRAFT,
            fields=fields,
            preview_identifier=preview,
        )
        await self.store.insert(draft)
        logger.debug("draft_created", namespace=namespace.name, tenant_id=tenant_id, draft_id=draft.id, preview=preview)
        return draft

    async def get_record(self, namespace: Namespace, tenant_id: str, identifier: str) -> Record:
        """Get a committed record by identifier, including soft-deleted ones."""
        tenant_id = require_tenant(tenant_id)
        record = await self.store.get_by_identifier(namespace, tenant_id, identifier)
        if record is None:
            raise NotFoundError(f"Record not found: {identifier}")
        return record

    async def get_draft(self, namespace: Namespace, tenant_id: str, draft_id: UUID) -> Record:
        """Get a draft by id with a freshly computed preview if it is still uncommitted."""
        draft = await self.find_draft(namespace, tenant_id, draft_id)
        if draft.identifier is None and not draft.is_deleted:
            preview = await self.core.services.allocator.preview(namespace, draft.tenant_id)
            draft = draft.model_copy(update={"preview_identifier": preview})
        return draft

    async def find_draft(self, namespace: Namespace, tenant_id: str, draft_id: UUID) -> Record:
        """Get a record by internal id, scoped to the tenant and namespace."""
        tenant_id = require_tenant(tenant_id)
        record = await self.store.get(draft_id)
        if record is None or record.tenant_id != tenant_id or record.namespace != namespace.name:
            raise DraftNotFoundError(f"Draft not found: {draft_id}")
        return record

    async def list_records(
        self,
        namespace: Namespace,
        tenant_id: str,
        limit: int = 50,
        offset: int = 0,
        status: RecordStatus | None = None,
        include_deleted: bool = False,
    ) -> RecordPage:
        """Get paginated records in a namespace, newest first."""
        tenant_id = require_tenant(tenant_id)
        items, total = await self.store.list_records(namespace, tenant_id, status, include_deleted, limit, offset)
        logger.debug(
            "list_records",
            namespace=namespace.name,
            tenant_id=tenant_id,
            status=status,
            include_deleted=include_deleted,
            total=total,
            returned=len(items),
        )
        return RecordPage(items=items, total=total, limit=limit, offset=offset)

    async def _create_committed(
        self, namespace: Namespace, tenant_id: str, fields: dict[str, Any], status: RecordStatus
    ) -> Record:
        needs_reconciliation = False
        try:
            identifier = await self.core.services.allocator.assign(namespace, tenant_id)
        except StorageUnavailableError as e:
            if not self.core.config.degraded_fallback:
                raise
            identifier = degraded_identifier(namespace, now())
            needs_reconciliation = True
            logger.error(
                "degraded_identifier_issued",
                namespace=namespace.name,
                tenant_id=tenant_id,
                identifier=identifier,
                error=str(e),
            )

        timestamp = now()
        record = Record(
            namespace=namespace.name,
            tenant_id=tenant_id,
            identifier=identifier,
            status=status,
            fields=fields,
            created_at=timestamp,
            committed_at=timestamp,
            needs_reconciliation=needs_reconciliation,
        )
        try:
            await self.store.insert(record)
        except (DuplicateIdentifierError, StorageUnavailableError) as e:
            logger.error("identifier_burned", namespace=namespace.name, tenant_id=tenant_id, identifier=identifier, error=str(e))
            raise IdentifierBurnedError(identifier) from e
        return record
