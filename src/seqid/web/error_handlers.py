import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from seqid.errors import (
    CollisionExhaustedError,
    DuplicateIdentifierError,
    IdentifierBurnedError,
    NotFoundError,
    PartialBulkCreateError,
    StorageUnavailableError,
    TenantContextMissingError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, TenantContextMissingError):
        status_code = 400
        error_type = "tenant_context_missing"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def allocation_error_handler(_: Request, exc: Exception) -> Response:
    """Handle AllocationError subclasses; these abort creation and are never defaulted."""
    if isinstance(exc, PartialBulkCreateError):
        logger.error("Bulk creation partially applied: %s", exc)
        return create_json_error_response(status_code=503, message=str(exc), error_type="partial_bulk_create")
    if isinstance(exc, IdentifierBurnedError):
        logger.warning("Identifier burned: %s", exc)
        return create_json_error_response(status_code=503, message=str(exc), error_type="identifier_burned")
    if isinstance(exc, StorageUnavailableError):
        logger.error("Storage unavailable: %s", exc)
        return create_json_error_response(
            status_code=503, message="Identifier storage is unavailable.", error_type="storage_unavailable"
        )
    if isinstance(exc, DuplicateIdentifierError):
        logger.error("Duplicate identifier: %s", exc)
        return create_json_error_response(status_code=409, message=str(exc), error_type="duplicate_identifier")
    if isinstance(exc, CollisionExhaustedError):
        logger.critical("Collision probing exhausted: %s", exc)
        return create_json_error_response(status_code=500, message=str(exc), error_type="collision_exhausted")

    logger.exception("Unexpected allocation error: %s", exc)
    return create_json_error_response(status_code=500, message="Identifier allocation failed.", error_type="allocation_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
