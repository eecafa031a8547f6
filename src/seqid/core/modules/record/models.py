from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from seqid.core.db import MongoModel
from seqid.utils import now


class RecordStatus(StrEnum):
    """Business status of a record."""

    DRAFT = "draft"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class IdentifierState(StrEnum):
    """Where a record stands relative to identifier commitment."""

    PREVIEWING = "previewing"  # No committed identifier; shows a forecast
    COMMITTED = "committed"  # Holds a permanently assigned identifier
    RETIRED = "retired"  # Soft-deleted; terminal, identifier stays reserved


class Record(MongoModel):
    """Sequence-identified entity (a course, an event, ...) owned by one tenant.

    Indexed on (namespace, tenant_id, identifier) - unique where identifier is a string.
    """

    namespace: str
    tenant_id: str
    identifier: str | None = None  # Immutable once assigned
    status: RecordStatus = RecordStatus.DRAFT
    fields: dict[str, Any] = Field(default_factory=dict)  # Caller payload, opaque to the allocator
    preview_identifier: str | None = None  # Last pushed forecast, uncommitted drafts only
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)
    committed_at: datetime | None = None
    needs_reconciliation: bool = False  # Issued a degraded-mode identifier

    @computed_field  # type: ignore[prop-decorator]
    @property
    def state(self) -> IdentifierState:
        if self.is_deleted:
            return IdentifierState.RETIRED
        if self.identifier is None:
            return IdentifierState.PREVIEWING
        return IdentifierState.COMMITTED


class RecordPage(BaseModel):
    """Page of records for list endpoints."""

    items: list[Record] = Field(..., description="Records in current page")
    total: int = Field(..., description="Total number of matching records", ge=0)
    limit: int = Field(..., description="Maximum items per page", ge=1)
    offset: int = Field(..., description="Number of items skipped", ge=0)

    @property
    def has_more(self) -> bool:
        """Whether there are more records beyond the current page."""
        return self.offset + len(self.items) < self.total
