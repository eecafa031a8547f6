from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from seqid.config import Config
from seqid.core.core import Core
from seqid.core.modules.counter.models import Counter
from seqid.core.modules.namespace.models import Namespace
from seqid.core.modules.record.models import Record, RecordPage, RecordStatus
from seqid.utils import require_tenant


class App:
    """Facade for all application operations, resolves tenant and namespace before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def get_namespaces(self) -> list[Namespace]:
        """Get all configured identifier namespaces."""
        return self._core.services.namespace.list_namespaces()

    # === Identifiers ===
    async def preview_identifier(self, tenant_id: str | None, namespace_name: str) -> str:
        """Forecast the next identifier without reserving it."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.allocator.preview(namespace, tenant)

    async def refresh_previews(self, tenant_id: str | None, namespace_name: str) -> int:
        """Push the current forecast onto all live drafts of the tenant."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.lifecycle.refresh_all_previews(namespace, tenant)

    async def get_counter(self, tenant_id: str | None, namespace_name: str) -> Counter:
        """Get the tenant's counter for a namespace."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.counter.get_counter(namespace, tenant)

    async def resync_counter(self, tenant_id: str | None, namespace_name: str) -> Counter:
        """Raise the tenant's counter to the highest identifier bound in the data."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.counter.resync(namespace, tenant)

    # === Records ===
    async def list_records(
        self,
        tenant_id: str | None,
        namespace_name: str,
        limit: int = 50,
        offset: int = 0,
        status: RecordStatus | None = None,
        include_deleted: bool = False,
    ) -> RecordPage:
        """Get paginated records of a namespace."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.record.list_records(namespace, tenant, limit, offset, status, include_deleted)

    async def get_record(self, tenant_id: str | None, namespace_name: str, identifier: str) -> Record:
        """Get a committed record by identifier."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.record.get_record(namespace, tenant, identifier)

    async def create_record(
        self, tenant_id: str | None, namespace_name: str, fields: dict[str, Any], status: RecordStatus = RecordStatus.ACTIVE
    ) -> Record:
        """Create a committed record with a newly assigned identifier."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.record.create_record(namespace, tenant, fields, status)

    async def create_records(
        self,
        tenant_id: str | None,
        namespace_name: str,
        items: list[dict[str, Any]],
        status: RecordStatus = RecordStatus.ACTIVE,
    ) -> list[Record]:
        """Create committed records in bulk, identifiers assigned in input order."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.record.create_records(namespace, tenant, items, status)

    async def delete_record(self, tenant_id: str | None, namespace_name: str, identifier: str) -> Record:
        """Soft-delete a committed record; its identifier is never reused."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.lifecycle.soft_delete(namespace, tenant, identifier)

    # === Drafts ===
    async def create_draft(self, tenant_id: str | None, namespace_name: str, fields: dict[str, Any]) -> Record:
        """Save a draft showing the current identifier forecast."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.record.create_draft(namespace, tenant, fields)

    async def get_draft(self, tenant_id: str | None, namespace_name: str, draft_id: UUID) -> Record:
        """Get a draft with a fresh identifier forecast."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.record.get_draft(namespace, tenant, draft_id)

    async def commit_draft(self, tenant_id: str | None, namespace_name: str, draft_id: UUID) -> Record:
        """Convert a draft into a committed record with a newly assigned identifier."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.lifecycle.convert_draft_to_committed(namespace, tenant, draft_id)

    async def discard_draft(self, tenant_id: str | None, namespace_name: str, draft_id: UUID) -> Record:
        """Soft-delete an uncommitted draft."""
        tenant, namespace = self._resolve(tenant_id, namespace_name)
        return await self._core.services.lifecycle.discard_draft(namespace, tenant, draft_id)

    # === Private resolver methods ===
    def _resolve(self, tenant_id: str | None, namespace_name: str) -> tuple[str, Namespace]:
        """Validate the tenant and resolve the namespace. Raises before any storage access."""
        tenant = require_tenant(tenant_id)
        return tenant, self._core.services.namespace.get_namespace(namespace_name)
