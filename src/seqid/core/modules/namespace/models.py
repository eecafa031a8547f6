"""Identifier namespaces: a prefix and counter shared by one kind of record."""

from pydantic import BaseModel, Field, field_validator

from seqid.utils import is_slug


class Namespace(BaseModel):
    """Logical category of identifiers sharing one counter per tenant and one prefix."""

    name: str = Field(..., description="Namespace slug, e.g. 'course'")
    prefix: str = Field(..., description="Identifier prefix, e.g. 'COURSE'")
    width: int = Field(4, ge=1, le=18, description="Minimum number of zero-padded digits")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not is_slug(value):
            raise ValueError(f"Invalid namespace name: '{value}'")
        return value

    @field_validator("prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        if not value:
            raise ValueError("Namespace prefix must not be empty")
        # A trailing digit would make the numeric suffix ambiguous
        if value[-1].isdigit():
            raise ValueError(f"Namespace prefix must not end with a digit: '{value}'")
        return value
