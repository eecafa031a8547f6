import structlog

from seqid.core.core import Service
from seqid.core.modules.allocator.utils import format_identifier, parse_sequence
from seqid.core.modules.namespace.models import Namespace
from seqid.errors import CollisionExhaustedError, ValidationError

logger = structlog.get_logger(__name__)


class GuardService(Service):
    """Safety net confirming an allocated identifier is not already bound to a record.

    With a correctly seeded counter collisions cannot happen; they indicate
    migrated data, manual edits, or a restored backup behind the counter.
    """

    async def verify_or_advance(self, namespace: Namespace, tenant_id: str, candidate: str) -> str:
        """Return the candidate if it is free, otherwise the next free identifier above it.

        On the first collision the counter is resynced from the data. Replacement
        candidates are then drawn from the counter itself, so concurrent callers
        recovering from the same collision never converge on one number.

        Raises:
            CollisionExhaustedError: If no free identifier is found within the probe budget.
        """
        if parse_sequence(namespace, candidate) is None:
            raise ValidationError(f"Identifier '{candidate}' does not belong to namespace '{namespace.name}'")

        lookup = self.core.services.record.store
        if not await lookup.exists(namespace, tenant_id, candidate):
            return candidate

        max_probes = self.core.config.max_collision_probes
        logger.warning(
            "identifier_collision_skipped",
            namespace=namespace.name,
            tenant_id=tenant_id,
            identifier=candidate,
            probe=0,
        )
        await self.core.services.counter.resync(namespace, tenant_id)

        for probe in range(1, max_probes + 1):
            seq = await self.core.services.counter.increment_and_get(namespace, tenant_id)
            identifier = format_identifier(namespace, seq)
            if not await lookup.exists(namespace, tenant_id, identifier):
                logger.warning(
                    "identifier_collision_resolved",
                    namespace=namespace.name,
                    tenant_id=tenant_id,
                    candidate=candidate,
                    identifier=identifier,
                    probes=probe,
                )
                return identifier
            logger.warning(
                "identifier_collision_skipped",
                namespace=namespace.name,
                tenant_id=tenant_id,
                identifier=identifier,
                probe=probe,
            )

        logger.error(
            "identifier_collision_exhausted",
            namespace=namespace.name,
            tenant_id=tenant_id,
            candidate=candidate,
            probes=max_probes,
        )
        raise CollisionExhaustedError(namespace.name, tenant_id, candidate, max_probes)
