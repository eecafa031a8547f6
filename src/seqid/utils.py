import re
from datetime import UTC, datetime
from typing import NewType

from seqid.errors import TenantContextMissingError

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

TenantId = NewType("TenantId", str)


def is_slug(value: str) -> bool:
    return bool(SLUG_RE.fullmatch(value))


def now() -> datetime:
    return datetime.now(UTC)


def require_tenant(tenant_id: str | None) -> TenantId:
    """Return the tenant id unchanged, or raise if it is missing or blank.

    The value is opaque: it is never parsed, normalized or defaulted.
    """
    if tenant_id is None or not tenant_id.strip():
        raise TenantContextMissingError
    return TenantId(tenant_id)
