from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="seqid API",
            version="0.1.0",
            summary="Tenant-scoped sequential identifier allocation",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "TenantHeader": {
                "type": "apiKey",
                "in": "header",
                "name": "X-Tenant-ID",
                "description": "Tenant resolved by upstream middleware (opaque string)",
            },
        }
        openapi_schema["security"] = [{"TenantHeader": []}]

        # Tenant-agnostic endpoints
        public_endpoints = {
            ("GET", "/health"),
            ("GET", "/api/v1/namespaces"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Tenant context is required", "type": "tenant_context_missing"},
                {"message": "Draft not found: 5f0c...", "type": "not_found"},
                {"message": "Identifier storage is unavailable.", "type": "storage_unavailable"},
            ]
        }
    }
