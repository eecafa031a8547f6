from fastapi import APIRouter
from pydantic import BaseModel, Field

from seqid.core.modules.counter.models import Counter
from seqid.core.modules.namespace.models import Namespace
from seqid.web.deps import AppDep, TenantDep
from seqid.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["namespaces"])


class PreviewResponse(BaseModel):
    """Forecast of the next identifier."""

    identifier: str = Field(..., description="Identifier the next commit would receive; not reserved")


class RefreshPreviewsResponse(BaseModel):
    """Result of pushing the forecast to drafts."""

    updated: int = Field(..., description="Number of drafts whose stored preview changed", ge=0)


@router.get(
    "/namespaces",
    summary="List namespaces",
    description="Get all configured identifier namespaces with their prefix and minimum width.",
    operation_id="listNamespaces",
)
async def list_namespaces(app: AppDep) -> list[Namespace]:
    return app.get_namespaces()


@router.get(
    "/namespaces/{namespace}/preview",
    summary="Preview next identifier",
    description=(
        "Forecast the identifier the next commit in this namespace would receive. "
        "Never reserves it: another commit may take it first. Safe to call on every render."
    ),
    operation_id="previewIdentifier",
    responses={
        200: {"description": "Next identifier forecast"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
)
async def preview_identifier(namespace: str, app: AppDep, tenant_id: TenantDep) -> PreviewResponse:
    return PreviewResponse(identifier=await app.preview_identifier(tenant_id, namespace))


@router.post(
    "/namespaces/{namespace}/previews/refresh",
    summary="Refresh draft previews",
    description="Stamp the current forecast onto every live draft of the tenant in this namespace.",
    operation_id="refreshPreviews",
    responses={
        200: {"description": "Previews refreshed"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
)
async def refresh_previews(namespace: str, app: AppDep, tenant_id: TenantDep) -> RefreshPreviewsResponse:
    return RefreshPreviewsResponse(updated=await app.refresh_previews(tenant_id, namespace))


@router.get(
    "/namespaces/{namespace}/counter",
    summary="Get counter",
    description=(
        "Get the tenant's counter for this namespace. Before the first allocation the counter "
        "is reported with `persisted: false` and seeded from existing records."
    ),
    operation_id="getCounter",
    responses={
        200: {"description": "Counter state"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
)
async def get_counter(namespace: str, app: AppDep, tenant_id: TenantDep) -> Counter:
    return await app.get_counter(tenant_id, namespace)


@router.post(
    "/namespaces/{namespace}/counter/resync",
    summary="Resync counter",
    description=(
        "Raise the tenant's counter to at least the highest identifier bound to any record, "
        "including deleted ones. Never lowers the counter. Use after data migrations or collision alerts."
    ),
    operation_id="resyncCounter",
    responses={
        200: {"description": "Counter after resync"},
        400: {"model": ErrorResponse, "description": "Tenant context missing"},
        404: {"model": ErrorResponse, "description": "Namespace not found"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
)
async def resync_counter(namespace: str, app: AppDep, tenant_id: TenantDep) -> Counter:
    return await app.resync_counter(tenant_id, namespace)
