"""
Interval-bounded traversal of an evidence source.

The traversal is a generator: records are decoded and handed on one at a
time, in source order. Overlap with the requested intervals is decided from
each line's locus alone, so lines outside the intervals are never fully
decoded. The source is assumed to be sorted; nothing is re-ordered.
"""

from __future__ import annotations

from collections.abc import Iterator

from loguru import logger

from .intervals import IntervalSet
from .records import EvidenceRecord
from .source import EvidenceSource

PROGRESS_INTERVAL = 1_000_000


def traverse(source: EvidenceSource, intervals: IntervalSet | None = None) -> Iterator[EvidenceRecord]:
    """
    Lazily yield the records of `source` that overlap `intervals`.

    Args:
        source: A single-pass evidence source
        intervals: Intervals to restrict to; None or empty means every record

    Yields:
        Decoded evidence records, in source order

    Raises:
        MalformedRecordError: If a line cannot be decoded.
        TraversalError: If the source was already traversed.
        OSError: If reading the source fails.
    """
    if intervals is None:
        intervals = IntervalSet()

    codec = source.codec
    lines = source.lines(intervals)
    restricted = not intervals.is_unrestricted

    seen = 0
    yielded = 0
    for line in lines:
        seen += 1
        if seen % PROGRESS_INTERVAL == 0:
            logger.debug(f"Traversed {seen:,} records, {yielded:,} in requested intervals")
        if restricted and not intervals.overlaps(*codec.locus(line)):
            continue
        yielded += 1
        yield codec.decode(line)

    logger.info(f"Traversal complete: {yielded:,} of {seen:,} records overlap the requested intervals")
