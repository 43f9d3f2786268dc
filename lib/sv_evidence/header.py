"""Copy an evidence source's header, if it has one, to the output sink."""

from __future__ import annotations

from loguru import logger

from .errors import InvariantViolation
from .sinks import FeatureSink
from .source import EvidenceSource


def propagate_header(source: EvidenceSource, sink: FeatureSink) -> bool:
    """
    Write the source header to the sink, unchanged, before any record.

    Args:
        source: Evidence source that may carry a header
        sink: Open sink that has not yet received records

    Returns:
        True if a header was written

    Raises:
        InvariantViolation: If the source reports a header that is not text.
    """
    header = source.header
    if header is None:
        logger.debug("Source has no header")
        return False

    if not isinstance(header, str):
        msg = f"Expected a text header from {type(source).__name__}, got {type(header).__name__}"
        raise InvariantViolation(msg)

    sink.write_header(header)
    logger.debug(f"Propagated header: {header[:80]!r}")
    return True
