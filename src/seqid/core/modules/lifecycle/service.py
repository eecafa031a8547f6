from uuid import UUID

import structlog

from seqid.core.core import Service
from seqid.core.modules.namespace.models import Namespace
from seqid.core.modules.record.models import Record, RecordStatus
from seqid.errors import IdentifierBurnedError, InvalidStateTransitionError, NotFoundError, StorageUnavailableError
from seqid.utils import now, require_tenant

logger = structlog.get_logger(__name__)


class LifecycleService(Service):
    """Identifier-affecting transitions: Previewing -> Committed -> Retired.

    The counter is only touched through AllocatorService.assign, and only after
    every validation has passed. Retiring never gives a number back.
    """

    async def convert_draft_to_committed(self, namespace: Namespace, tenant_id: str, draft_id: UUID) -> Record:
        """Assign a fresh identifier to a draft and flip it to active.

        If the assignment succeeds but persisting it fails, the number is burned and
        IdentifierBurnedError is raised. A retry assigns a new, higher number.
        """
        tenant_id = require_tenant(tenant_id)
        draft = await self.core.services.record.find_draft(namespace, tenant_id, draft_id)
        if draft.is_deleted:
            raise InvalidStateTransitionError(f"Draft {draft_id} is deleted and cannot be committed")
        if draft.identifier is not None:
            raise InvalidStateTransitionError(f"Draft {draft_id} is already committed as {draft.identifier}")
        if draft.status != RecordStatus.DRAFT:
            # Recoverable drift: no identifier yet, so committing is still correct
            logger.warning(
                "draft_status_drift",
                namespace=namespace.name,
                tenant_id=tenant_id,
                draft_id=draft_id,
                status=draft.status,
            )

        identifier = await self.core.services.allocator.assign(namespace, tenant_id)
        try:
            committed = await self.core.services.record.store.commit_draft(
                draft.id, identifier, RecordStatus.ACTIVE, now()
            )
        except StorageUnavailableError as e:
            logger.error(
                "identifier_burned", namespace=namespace.name, tenant_id=tenant_id, draft_id=draft_id, identifier=identifier
            )
            raise IdentifierBurnedError(identifier) from e

        if committed is None:
            logger.error(
                "identifier_burned",
                namespace=namespace.name,
                tenant_id=tenant_id,
                draft_id=draft_id,
                identifier=identifier,
                reason="draft_changed",
            )
            raise InvalidStateTransitionError(
                f"Draft {draft_id} was committed or deleted concurrently; identifier {identifier} was not used"
            )

        logger.info("draft_committed", namespace=namespace.name, tenant_id=tenant_id, draft_id=draft_id, identifier=identifier)
        await self.refresh_after_change(namespace, tenant_id)
        return committed

    async def soft_delete(self, namespace: Namespace, tenant_id: str, identifier: str) -> Record:
        """Retire a committed record. Its identifier stays reserved forever; the counter is untouched."""
        tenant_id = require_tenant(tenant_id)
        record = await self.core.services.record.store.get_by_identifier(namespace, tenant_id, identifier)
        if record is None:
            raise NotFoundError(f"Record not found: {identifier}")
        if record.is_deleted:
            raise InvalidStateTransitionError(f"Record {identifier} is already deleted")

        retired = await self.core.services.record.store.mark_deleted(record.id, now())
        if retired is None:
            raise InvalidStateTransitionError(f"Record {identifier} is already deleted")

        logger.info("record_retired", namespace=namespace.name, tenant_id=tenant_id, identifier=identifier)
        await self.refresh_after_change(namespace, tenant_id)
        return retired

    async def discard_draft(self, namespace: Namespace, tenant_id: str, draft_id: UUID) -> Record:
        """Soft-delete an uncommitted draft. No sequence number is involved."""
        draft = await self.core.services.record.find_draft(namespace, tenant_id, draft_id)
        if draft.identifier is not None:
            raise InvalidStateTransitionError(f"Record {draft.identifier} is committed; delete it by identifier")
        if draft.is_deleted:
            raise InvalidStateTransitionError(f"Draft {draft_id} is already deleted")

        discarded = await self.core.services.record.store.mark_deleted(draft.id, now())
        if discarded is None:
            raise InvalidStateTransitionError(f"Draft {draft_id} is already deleted")
        logger.info("draft_discarded", namespace=namespace.name, tenant_id=draft.tenant_id, draft_id=draft_id)
        return discarded

    async def refresh_all_previews(self, namespace: Namespace, tenant_id: str) -> int:
        """Push the current forecast onto every live draft of the tenant. Returns the number updated.

        Readers recompute previews on demand, so this only keeps the stored field fresh.
        """
        tenant_id = require_tenant(tenant_id)
        if not self.core.config.push_draft_previews:
            return 0
        preview = await self.core.services.allocator.preview(namespace, tenant_id)
        updated = await self.core.services.record.store.set_previews(namespace, tenant_id, preview)
        logger.debug("draft_previews_refreshed", namespace=namespace.name, tenant_id=tenant_id, preview=preview, updated=updated)
        return updated

    async def refresh_after_change(self, namespace: Namespace, tenant_id: str) -> None:
        """Refresh previews after a committed change without failing the change itself."""
        try:
            await self.refresh_all_previews(namespace, tenant_id)
        except StorageUnavailableError as e:
            logger.warning("draft_previews_refresh_failed", namespace=namespace.name, tenant_id=tenant_id, error=str(e))
