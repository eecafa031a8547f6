"""Per-tenant counters for sequential identifiers."""

from pydantic import BaseModel, ConfigDict, Field


def counter_key(namespace: str, tenant_id: str) -> str:
    """Storage key of the counter for a namespace and tenant, e.g. 'course_tenant42'."""
    return f"{namespace}_{tenant_id}"


class Counter(BaseModel):
    """Atomic counter holding the last sequence number handed out.

    One document per (namespace, tenant_id), keyed by counter_key().
    seq == 0 means nothing has been allocated yet; the next number is seq + 1.
    """

    key: str = Field(alias="_id", serialization_alias="key")
    namespace: str
    tenant_id: str
    seq: int = Field(0, ge=0)
    persisted: bool = True  # False for a view computed before the counter exists

    model_config = ConfigDict(populate_by_name=True)
