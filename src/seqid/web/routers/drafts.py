from typing import Any
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from seqid.core.modules.record.models import Record
from seqid.web.deps import AppDep, TenantDep
from seqid.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["drafts"])


class CreateDraftRequest(BaseModel):
    """Request to save a draft."""

    fields: dict[str, Any] = Field(default_factory=dict, description="Draft payload, stored as-is")


@router.post(
    "/namespaces/{namespace}/drafts",
    summary="Create draft",
    description=(
        "Save a draft. The response carries `preview_identifier`, a forecast of the identifier "
        "the draft would receive if committed now. No identifier is reserved."
    ),
    operation_id="createDraft",
    status_code=201,
    responses={
        201: {"description": "Draft saved"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
    },
)
async def create_draft(namespace: str, request: CreateDraftRequest, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.create_draft(tenant_id, namespace, request.fields)


@router.get(
    "/namespaces/{namespace}/drafts/{draft_id}",
    summary="Get draft",
    description="Get a draft. Uncommitted drafts carry a freshly computed `preview_identifier`.",
    operation_id="getDraft",
    responses={
        200: {"description": "Draft details"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace or draft not found"},
    },
)
async def get_draft(namespace: str, draft_id: UUID, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.get_draft(tenant_id, namespace, draft_id)


@router.post(
    "/namespaces/{namespace}/drafts/{draft_id}/commit",
    summary="Commit draft",
    description=(
        "Convert a draft into an active record with a newly assigned identifier. "
        "The identifier is the next one at commit time, not necessarily the one previewed."
    ),
    operation_id="commitDraft",
    responses={
        200: {"description": "Draft committed"},
        400: {"model": ErrorResponse, "description": "Draft deleted or already committed"},
        404: {"model": ErrorResponse, "description": "Namespace or draft not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable or identifier burned; safe to retry"},
    },
)
async def commit_draft(namespace: str, draft_id: UUID, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.commit_draft(tenant_id, namespace, draft_id)


@router.delete(
    "/namespaces/{namespace}/drafts/{draft_id}",
    summary="Discard draft",
    description="Soft-delete an uncommitted draft. Committed records must be deleted by identifier.",
    operation_id="discardDraft",
    responses={
        200: {"description": "Draft discarded"},
        400: {"model": ErrorResponse, "description": "Draft already committed or deleted"},
        404: {"model": ErrorResponse, "description": "Namespace or draft not found"},
    },
)
async def discard_draft(namespace: str, draft_id: UUID, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.discard_draft(tenant_id, namespace, draft_id)
