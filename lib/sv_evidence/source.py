"""
Evidence sources: where records come from.

`FileEvidenceSource` reads one evidence file, plain or gzip/BGZF compressed.
It hands out the file's raw lines to the traversal, which decides overlap
from each line's locus before paying for a full decode. When the file has a
tabix index and the traversal is restricted to intervals, only the indexed
blocks overlapping those intervals are read.

A source supports a single forward pass. Asking for its lines a second time
raises `TraversalError`.
"""

from __future__ import annotations

import gzip
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Protocol

import pysam
from loguru import logger

from .codecs import COMPRESSED_SUFFIX, FeatureCodec, resolve_codec
from .dictionary import TABIX_INDEX_SUFFIX
from .errors import ConfigurationError, TraversalError
from .intervals import IntervalSet
from .registry import require_supported


class EvidenceSource(Protocol):
    """What the printer needs from an evidence source."""

    @property
    def codec(self) -> FeatureCodec: ...

    @property
    def header(self) -> str | None: ...

    def lines(self, intervals: IntervalSet) -> Iterator[str]: ...


def _open_text(path: Path) -> IO[str]:
    if path.name.lower().endswith(COMPRESSED_SUFFIX):
        return gzip.open(path, "rt", encoding="utf8")
    return open(path, encoding="utf8")


class FileEvidenceSource:
    """
    Single-pass reader over one evidence file.

    Use `FileEvidenceSource.open`, which checks the record type before
    touching the file.
    """

    def __init__(self, path: Path, codec: FeatureCodec) -> None:
        self.path = path
        self.codec = codec
        self.header: str | None = self._read_header()
        self._consumed = False

    @classmethod
    def open(cls, path: str | Path) -> FileEvidenceSource:
        """
        Resolve the codec for `path`, check its record type, then read the header.

        Raises:
            ConfigurationError: If the file type is unknown or not a supported
                evidence type, or the file does not exist.
        """
        path = Path(path)
        codec = resolve_codec(path)
        require_supported(codec.feature_type)
        if not path.is_file():
            msg = f"Evidence file does not exist or is not a file: {path}"
            raise ConfigurationError(msg)
        logger.info(f"Reading {codec.feature_type.__name__} records from {path}")
        return cls(path, codec)

    @property
    def feature_type(self) -> type:
        return self.codec.feature_type

    @property
    def index_path(self) -> Path:
        return Path(f"{self.path}{TABIX_INDEX_SUFFIX}")

    @property
    def is_indexed(self) -> bool:
        return self.path.name.lower().endswith(COMPRESSED_SUFFIX) and self.index_path.is_file()

    def _read_header(self) -> str | None:
        with _open_text(self.path) as handle:
            first = handle.readline()
        if first and self.codec.is_column_header(first):
            return first.rstrip("\r\n")
        return None

    def lines(self, intervals: IntervalSet) -> Iterator[str]:
        """
        Yield the record lines of the file, in file order.

        With a tabix index and a restricted interval set, yields only lines
        from index queries. Lines are not otherwise filtered by interval; that
        is the traversal's job.

        Raises:
            TraversalError: If the source has already been traversed.
        """
        if self._consumed:
            msg = f"Evidence source {self.path} can only be traversed once"
            raise TraversalError(msg)
        self._consumed = True

        if self.is_indexed and not intervals.is_unrestricted:
            logger.debug(f"Querying {self.path} through its tabix index")
            return self._query_lines(intervals)
        return self._scan_lines()

    def _scan_lines(self) -> Iterator[str]:
        with _open_text(self.path) as handle:
            for line_number, line in enumerate(handle):
                if line_number == 0 and self.header is not None:
                    continue
                if not line.strip():
                    continue
                yield line.rstrip("\r\n")

    def _query_lines(self, intervals: IntervalSet) -> Iterator[str]:
        with pysam.TabixFile(str(self.path), index=str(self.index_path), encoding="utf-8") as tabix:
            # the index lists contigs in file order, which the output must keep
            file_order = {contig: i for i, contig in enumerate(tabix.contigs)}
            queries = sorted(
                (interval for interval in intervals if interval.contig in file_order),
                key=lambda interval: (file_order[interval.contig], interval.start),
            )
            previous = None
            for interval in queries:
                # tabix regions are 0-based and half-open
                for line in tabix.fetch(interval.contig, interval.start - 1, interval.end):
                    # a record spanning two intervals was already emitted for the previous one
                    if previous is not None:
                        contig, start, end = self.codec.locus(line)
                        if start < interval.start and previous.overlaps(contig, start, end):
                            continue
                    yield line
                previous = interval
