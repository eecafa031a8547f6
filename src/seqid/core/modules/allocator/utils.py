"""Identifier formatting and parsing."""

import re
from datetime import datetime

from seqid.core.modules.namespace.models import Namespace

DIGITS_RE = re.compile(r"[0-9]+")


def format_identifier(namespace: Namespace, sequence: int) -> str:
    """Format a sequence number as PREFIX + zero-padded decimal.

    The width is a minimum: sequences that need more digits widen the
    identifier instead of wrapping (COURSE9999 -> COURSE10000).
    """
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    return f"{namespace.prefix}{sequence:0{namespace.width}d}"


def parse_sequence(namespace: Namespace, identifier: str) -> int | None:
    """Extract the numeric suffix of an identifier, or None if it is not PREFIX + digits."""
    if not identifier.startswith(namespace.prefix):
        return None
    suffix = identifier[len(namespace.prefix) :]
    if not DIGITS_RE.fullmatch(suffix):
        return None
    return int(suffix)


def identifier_pattern(namespace: Namespace) -> str:
    """Regex matching every sequential identifier of the namespace, at any width."""
    return f"^{re.escape(namespace.prefix)}[0-9]+$"


def degraded_identifier(namespace: Namespace, timestamp: datetime) -> str:
    """Non-sequential fallback identifier, e.g. COURSE-TMP-1729350000123.

    It never matches identifier_pattern, so it cannot influence counter seeding.
    """
    return f"{namespace.prefix}-TMP-{int(timestamp.timestamp() * 1000)}"
