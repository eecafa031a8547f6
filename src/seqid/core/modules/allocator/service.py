import structlog

from seqid.core.core import Service
from seqid.core.modules.allocator.utils import format_identifier
from seqid.core.modules.namespace.models import Namespace
from seqid.errors import IdentifierBurnedError, StorageUnavailableError
from seqid.utils import require_tenant

logger = structlog.get_logger(__name__)


class AllocatorService(Service):
    """Public identifier API: non-committing previews and committing assignment."""

    async def preview(self, namespace: Namespace, tenant_id: str) -> str:
        """Forecast the next identifier without reserving it.

        Side-effect free; safe to call on every render of a draft form. The value may
        end up assigned to a different record than the one that previewed it.
        """
        tenant_id = require_tenant(tenant_id)
        seq = await self.core.services.counter.peek_next(namespace, tenant_id)
        return format_identifier(namespace, seq)

    async def assign(self, namespace: Namespace, tenant_id: str) -> str:
        """Permanently consume the next sequence number and return its identifier.

        If the caller fails to persist a record afterwards, the number is lost:
        gaps are tolerated, duplicates are not. A storage failure after the increment
        raises IdentifierBurnedError, since the number is already consumed.
        """
        tenant_id = require_tenant(tenant_id)
        seq = await self.core.services.counter.increment_and_get(namespace, tenant_id)
        candidate = format_identifier(namespace, seq)
        try:
            identifier = await self.core.services.guard.verify_or_advance(namespace, tenant_id, candidate)
        except StorageUnavailableError as e:
            logger.error(
                "identifier_burned", namespace=namespace.name, tenant_id=tenant_id, identifier=candidate, error=str(e)
            )
            raise IdentifierBurnedError(candidate) from e
        logger.info("identifier_assigned", namespace=namespace.name, tenant_id=tenant_id, identifier=identifier)
        return identifier
