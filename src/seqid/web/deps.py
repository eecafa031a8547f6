from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from seqid.app import App
from seqid.logging import bind_request_context
from seqid.utils import TenantId, require_tenant

# Populated by the upstream tenant-resolution middleware; opaque to this service
tenant_scheme = APIKeyHeader(name="X-Tenant-ID", auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_tenant_id(tenant_header: Annotated[str | None, Depends(tenant_scheme)] = None) -> TenantId:
    """Get the resolved tenant from the X-Tenant-ID header. Never defaulted."""
    tenant_id = require_tenant(tenant_header)
    bind_request_context(tenant_id=tenant_id)
    return tenant_id


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
TenantDep = Annotated[TenantId, Depends(get_tenant_id)]
