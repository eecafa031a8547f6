import structlog

from seqid.core.core import Service
from seqid.core.modules.namespace.models import Namespace
from seqid.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class NamespaceService(Service):
    """Registry of configured identifier namespaces, cached in memory."""

    _namespaces: dict[str, Namespace] | None = None

    async def on_start(self) -> None:
        """Validate the configured namespaces early so misconfiguration fails startup."""
        namespaces = self._load()
        logger.debug("namespace_service_started", namespaces=sorted(namespaces))

    def get_namespace(self, name: str) -> Namespace:
        """Get a namespace by name."""
        namespaces = self._load()
        if name not in namespaces:
            raise NotFoundError(f"Namespace '{name}' not found")
        return namespaces[name]

    def list_namespaces(self) -> list[Namespace]:
        """Get all configured namespaces in configuration order."""
        return list(self._load().values())

    def _load(self) -> dict[str, Namespace]:
        if self._namespaces is None:
            namespaces: dict[str, Namespace] = {}
            prefixes: set[str] = set()
            for namespace in self.core.config.namespaces:
                if namespace.name in namespaces:
                    raise ValidationError(f"Duplicate namespace name: '{namespace.name}'")
                if namespace.prefix in prefixes:
                    raise ValidationError(f"Duplicate namespace prefix: '{namespace.prefix}'")
                namespaces[namespace.name] = namespace
                prefixes.add(namespace.prefix)
            self._namespaces = namespaces
        return self._namespaces
