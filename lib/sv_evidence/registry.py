"""Registry of the evidence record types that can be printed."""

from __future__ import annotations

from loguru import logger

from .errors import ConfigurationError
from .records import BafEvidence, DepthEvidence, DiscordantPairEvidence, SplitReadEvidence

SUPPORTED_EVIDENCE_TYPES: frozenset[type] = frozenset(
    {
        BafEvidence,
        DepthEvidence,
        DiscordantPairEvidence,
        SplitReadEvidence,
    },
)


def is_supported(kind: type) -> bool:
    """Check whether `kind` is exactly one of the supported evidence classes."""
    return kind in SUPPORTED_EVIDENCE_TYPES


def require_supported(kind: type) -> None:
    """
    Fail fast when a source resolves to a record type that cannot be printed.

    Subclasses are not accepted; the type must match a registered class exactly.

    Raises:
        ConfigurationError: If `kind` is not a supported evidence type.
    """
    if is_supported(kind):
        logger.debug(f"Evidence type {kind.__name__} is supported")
        return

    supported = ", ".join(sorted(t.__name__ for t in SUPPORTED_EVIDENCE_TYPES))
    msg = f"Unsupported record type {kind.__name__}. Supported types are: {supported}"
    raise ConfigurationError(msg)
