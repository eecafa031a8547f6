from abc import ABC


class UserError(ABC, Exception):
    """Base class for caller-facing errors.

    All errors that inherit from UserError will have their messages
    displayed to the client. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class TenantContextMissingError(UserError):
    """Raised when an operation is invoked without a resolved tenant."""

    def __init__(self, message: str = "Tenant context is required") -> None:
        super().__init__(message)


class DraftNotFoundError(NotFoundError):
    """Raised when a draft does not exist in the tenant's namespace."""


class InvalidStateTransitionError(ValidationError):
    """Raised when a record cannot move to the requested lifecycle state."""


class AllocationError(Exception):
    """Base class for identifier allocation faults that are not the caller's fault."""


class StorageUnavailableError(AllocationError):
    """Raised when the counter store or the record store cannot be reached."""


class IdentifierBurnedError(StorageUnavailableError):
    """Raised when an identifier was allocated but could not be persisted.

    The identifier is permanently lost. Retrying the operation allocates a new, higher one.
    """

    retryable = True

    def __init__(self, identifier: str, message: str | None = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"Identifier {identifier} was allocated but not persisted; retry to allocate a new one")


class PartialBulkCreateError(AllocationError):
    """Raised when bulk creation stops partway; earlier records stay stored.

    Retrying the whole batch would store the `created` records a second time.
    `burned` is the identifier lost by the failing item, if one was allocated.
    """

    retryable = False

    def __init__(self, created: list[str], burned: str | None, remaining: int) -> None:
        self.created = created
        self.burned = burned
        self.remaining = remaining
        stored = ", ".join(created)
        lost = f"; identifier {burned} was lost" if burned else ""
        super().__init__(
            f"Bulk creation stopped after {len(created)} records ({stored}){lost}; "
            f"{remaining} items were not created. Retry only the items not created."
        )


class DuplicateIdentifierError(AllocationError):
    """Raised when the record store rejects an identifier that is already bound."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Identifier {identifier} is already bound to a record")


class CollisionExhaustedError(AllocationError):
    """Raised when the collision guard cannot find a free identifier within its probe budget."""

    def __init__(self, namespace: str, tenant_id: str, candidate: str, probes: int) -> None:
        self.namespace = namespace
        self.tenant_id = tenant_id
        self.candidate = candidate
        self.probes = probes
        super().__init__(
            f"No free identifier found after {probes} probes from {candidate} "
            f"(namespace={namespace}, tenant={tenant_id}); counter needs resync"
        )
