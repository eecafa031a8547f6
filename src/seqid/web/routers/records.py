from typing import Annotated, Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from seqid.core.modules.record.models import Record, RecordPage, RecordStatus
from seqid.web.deps import AppDep, TenantDep
from seqid.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["records"])


class CreateRecordRequest(BaseModel):
    """Request to create a committed record."""

    fields: dict[str, Any] = Field(default_factory=dict, description="Record payload, stored as-is")
    status: RecordStatus = Field(RecordStatus.ACTIVE, description="Initial status of the committed record")

    model_config = {"json_schema_extra": {"examples": [{"fields": {"name": "Intro to Chess", "level": "beginner"}}]}}


class BulkCreateRecordsRequest(BaseModel):
    """Request to create several committed records at once."""

    items: list[dict[str, Any]] = Field(..., description="Payloads; identifiers are assigned in this order", min_length=1)
    status: RecordStatus = Field(RecordStatus.ACTIVE, description="Initial status of every created record")


@router.get(
    "/namespaces/{namespace}/records",
    summary="List records",
    description="Get paginated records of the tenant in this namespace, newest first.",
    operation_id="listRecords",
    responses={
        200: {"description": "Paginated list of records"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
    },
)
async def list_records(
    namespace: str,
    app: AppDep,
    tenant_id: TenantDep,
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
    status: Annotated[RecordStatus | None, Query(description="Only records with this status")] = None,
    include_deleted: Annotated[bool, Query(description="Include soft-deleted records")] = False,
) -> RecordPage:
    return await app.list_records(tenant_id, namespace, limit, offset, status, include_deleted)


@router.post(
    "/namespaces/{namespace}/records",
    summary="Create record",
    description=(
        "Create a committed record. An identifier is permanently assigned before the record is stored; "
        "if storing fails the identifier is lost and a retry receives a new one."
    ),
    operation_id="createRecord",
    status_code=201,
    responses={
        201: {"description": "Record created"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable or identifier burned"},
    },
)
async def create_record(namespace: str, request: CreateRecordRequest, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.create_record(tenant_id, namespace, request.fields, request.status)


@router.post(
    "/namespaces/{namespace}/records/bulk",
    summary="Create records in bulk",
    description="Create several committed records. Identifiers increase in request order.",
    operation_id="createRecords",
    status_code=201,
    responses={
        201: {"description": "Records created"},
        400: {"model": ErrorResponse, "description": "Tenant context missing or empty request"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
        503: {
            "model": ErrorResponse,
            "description": "Storage unavailable; if some records were stored, the message lists their identifiers",
        },
    },
)
async def create_records(
    namespace: str, request: BulkCreateRecordsRequest, app: AppDep, tenant_id: TenantDep
) -> list[Record]:
    return await app.create_records(tenant_id, namespace, request.items, request.status)


@router.get(
    "/namespaces/{namespace}/records/{identifier}",
    summary="Get record",
    description="Get a committed record by identifier, including soft-deleted records.",
    operation_id="getRecord",
    responses={
        200: {"description": "Record details"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace or record not found"},
    },
)
async def get_record(namespace: str, identifier: str, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.get_record(tenant_id, namespace, identifier)


@router.delete(
    "/namespaces/{namespace}/records/{identifier}",
    summary="Delete record",
    description="Soft-delete a record. Its identifier stays reserved and is never assigned again.",
    operation_id="deleteRecord",
    responses={
        200: {"description": "Record retired"},
        400: {"model": ErrorResponse, "description": "Tenant context missing or record already deleted"},
        404: {"model": ErrorResponse, "description": "Namespace or record not found"},
    },
)
async def delete_record(namespace: str, identifier: str, app: AppDep, tenant_id: TenantDep) -> Record:
    return await app.delete_record(tenant_id, namespace, identifier)
