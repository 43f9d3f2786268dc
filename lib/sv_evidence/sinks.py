"""
Output sinks for encoded evidence records.

Two sinks share one interface (`write_header`, `add`, `close`):

    PlainFeatureSink    uncompressed text, one record per line
    IndexedFeatureSink  BGZF-compressed text plus a tabix index, built on close

`select_sink` picks one from the destination path, once, before anything is
written. Sinks are context managers: leaving the block normally closes and
finalizes the sink, leaving it with an exception only releases the file
handle. An aborted run therefore never gets an index.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import IO

import pysam
from Bio import bgzf
from loguru import logger

from .codecs import FeatureCodec, TabixFormat
from .dictionary import TABIX_INDEX_SUFFIX, SequenceDictionary
from .errors import ConfigurationError, IndexFinalizationError, SinkStateError
from .records import EvidenceRecord, encode

BLOCK_COMPRESSED_EXTENSIONS = (".gz", ".gzip", ".bgz", ".bgzf")

DEFAULT_COMPRESSION_LEVEL = 4
MIN_COMPRESSION_LEVEL = 0
MAX_COMPRESSION_LEVEL = 9


class SinkState(str, Enum):
    """Lifecycle of an output sink. CLOSED is terminal."""

    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


def has_block_compressed_extension(path: str | Path) -> bool:
    """Whether the path names a block-compressed file."""
    return Path(path).name.lower().endswith(BLOCK_COMPRESSED_EXTENSIONS)


def check_destination(path: Path) -> None:
    """
    Make sure an output file can be created at `path`.

    Raises:
        ConfigurationError: If the path is a directory or its directory is missing.
    """
    if path.is_dir():
        msg = f"Output path is a directory: {path}"
        raise ConfigurationError(msg)
    if not path.parent.is_dir():
        msg = f"Output directory does not exist: {path.parent}"
        raise ConfigurationError(msg)


class FeatureSink:
    """
    Base class for sinks that append encoded records to a file.

    Subclasses implement `_open`, `_write_line`, `_finalize` and `_release`.
    """

    def __init__(self, path: Path, dictionary: SequenceDictionary | None = None) -> None:
        self.path = path
        self.dictionary = dictionary
        self.state = SinkState.UNOPENED
        self.records_written = 0
        self.header_lines = 0
        self._open()
        self.state = SinkState.OPEN
        logger.debug(f"Opened {type(self).__name__} at {path}")

    def __enter__(self) -> FeatureSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        elif self.state is SinkState.OPEN:
            logger.warning(f"Run aborted; releasing {self.path} without finalizing it")
            self.release()

    @property
    def header_written(self) -> bool:
        return self.header_lines > 0

    def write_header(self, header: str) -> None:
        """
        Write the header text, once, before any record.

        Raises:
            SinkStateError: If the sink is not open, a header was already
                written, or records were already added.
        """
        self._require_open("write a header")
        if self.header_written:
            msg = f"A header was already written to {self.path}"
            raise SinkStateError(msg)
        if self.records_written:
            msg = f"Cannot write a header to {self.path} after {self.records_written} record(s)"
            raise SinkStateError(msg)

        text = header.removesuffix("\n")
        self._write_line(text)
        self.header_lines = text.count("\n") + 1

    def add(self, record: EvidenceRecord) -> None:
        """
        Append the encoded record as one line.

        Raises:
            SinkStateError: If the sink is not open.
            ConfigurationError: If the record's contig is missing from a
                complete sequence dictionary.
        """
        self._require_open("add a record")
        if (
            self.dictionary is not None
            and not self.dictionary.partial
            and record.contig not in self.dictionary
        ):
            msg = f"Record contig {record.contig} is not in the sequence dictionary"
            raise ConfigurationError(msg)
        self._write_line(encode(record))
        self.records_written += 1

    def close(self) -> None:
        """
        Flush, release and finalize the output. May only be called once.

        Raises:
            SinkStateError: If the sink is already closed.
        """
        self._require_open("close")
        self.state = SinkState.CLOSED
        self._finalize()
        logger.info(f"Wrote {self.records_written:,} record(s) to {self.path}")

    def release(self) -> None:
        """Release the file handle without finalizing. Used on failure paths."""
        if self.state is SinkState.CLOSED:
            return
        self.state = SinkState.CLOSED
        self._release()

    def _require_open(self, action: str) -> None:
        if self.state is not SinkState.OPEN:
            msg = f"Cannot {action}: sink for {self.path} is {self.state.value}"
            raise SinkStateError(msg)

    def _open(self) -> None:
        raise NotImplementedError

    def _write_line(self, text: str) -> None:
        raise NotImplementedError

    def _finalize(self) -> None:
        raise NotImplementedError

    def _release(self) -> None:
        raise NotImplementedError


class PlainFeatureSink(FeatureSink):
    """Uncompressed UTF-8 text output. No index is produced."""

    _handle: IO[str]

    def _open(self) -> None:
        self._handle = open(self.path, "w", encoding="utf8", newline="\n")  # noqa: SIM115

    def _write_line(self, text: str) -> None:
        self._handle.write(f"{text}\n")

    def _finalize(self) -> None:
        self._handle.close()

    def _release(self) -> None:
        self._handle.close()


class IndexedFeatureSink(FeatureSink):
    """
    BGZF-compressed output with a tabix index written next to it on close.

    Records must arrive sorted by contig and position for the index to be
    built; tabix rejects unsorted input, which surfaces as an
    `IndexFinalizationError` from `close`. Header lines are excluded from the
    index by count, so headers need not start with the meta character.
    """

    _handle: bgzf.BgzfWriter

    def __init__(
        self,
        path: Path,
        tabix_format: TabixFormat,
        dictionary: SequenceDictionary | None = None,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> None:
        if not MIN_COMPRESSION_LEVEL <= compression_level <= MAX_COMPRESSION_LEVEL:
            msg = (
                f"Compression level must be between {MIN_COMPRESSION_LEVEL} and "
                f"{MAX_COMPRESSION_LEVEL}, got {compression_level}"
            )
            raise ConfigurationError(msg)
        self.tabix_format = tabix_format
        self.compression_level = compression_level
        self.index_path: Path | None = None
        super().__init__(path, dictionary)

    def _open(self) -> None:
        # an index left by an earlier run would make a partial output look finalized
        Path(f"{self.path}{TABIX_INDEX_SUFFIX}").unlink(missing_ok=True)
        self._handle = bgzf.BgzfWriter(str(self.path), "wb", compresslevel=self.compression_level)

    def _write_line(self, text: str) -> None:
        self._handle.write(f"{text}\n".encode())

    def _finalize(self) -> None:
        # closing the writer flushes the last block and appends the BGZF EOF marker
        self._handle.close()

        fmt = self.tabix_format
        try:
            pysam.tabix_index(
                str(self.path),
                seq_col=fmt.seq_col,
                start_col=fmt.start_col,
                end_col=fmt.end_col,
                zerobased=fmt.zerobased,
                meta_char=fmt.meta_char,
                line_skip=self.header_lines,
                force=True,
            )
        except (OSError, ValueError) as e:
            msg = f"Could not build the tabix index for {self.path}: {e}"
            raise IndexFinalizationError(msg) from e

        self.index_path = Path(f"{self.path}{TABIX_INDEX_SUFFIX}")
        logger.info(f"Indexed {self.path} at {self.index_path}")

    def _release(self) -> None:
        self._handle.close()


def select_sink(
    path: str | Path,
    codec: FeatureCodec,
    dictionary: SequenceDictionary | None = None,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> FeatureSink:
    """
    Create the sink for `path`: indexed when block-compressed, plain otherwise.

    The compression level only applies to the indexed sink. The tabix column
    layout comes from the codec of the records being written, not from the
    destination name, so a depth subset written to `subset.txt.gz` is still
    indexed over its start and end columns.

    Args:
        path: Destination file
        codec: Codec of the records, which supplies the tabix column layout
        dictionary: Best available sequence dictionary, if any
        compression_level: BGZF compression level, 0-9

    Returns:
        An open sink

    Raises:
        ConfigurationError: If the destination is unusable or the compression
            level is out of range.
    """
    path = Path(path)
    check_destination(path)
    if has_block_compressed_extension(path):
        logger.info(f"Writing block-compressed, indexed output at level {compression_level}")
        return IndexedFeatureSink(path, codec.tabix_format, dictionary, compression_level)

    logger.info("Writing uncompressed output")
    return PlainFeatureSink(path, dictionary)
