from pydantic import Field
from pydantic_settings import BaseSettings

from seqid.core.modules.namespace.models import Namespace


def default_namespaces() -> list[Namespace]:
    return [
        Namespace(name="course", prefix="COURSE", width=4),
        Namespace(name="event", prefix="EVT", width=4),
    ]


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    cors_origins: list[str] = []
    namespaces: list[Namespace] = Field(default_factory=default_namespaces)  # JSON list in SEQID_NAMESPACES
    max_collision_probes: int = Field(50, ge=1)  # Forward probes before CollisionExhaustedError
    push_draft_previews: bool = True  # Stamp preview_identifier on drafts after each commit/retire
    degraded_fallback: bool = False  # Issue PREFIX-TMP-<millis> ids when storage is unavailable

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SEQID_",
        "extra": "ignore",
    }
