from seqid.web.routers.drafts import router as drafts_router
from seqid.web.routers.namespaces import router as namespaces_router
from seqid.web.routers.records import router as records_router

__all__ = [
    "drafts_router",
    "namespaces_router",
    "records_router",
]
