"""
Line codecs for evidence files and codec resolution from a file path.

Each codec knows the file suffix of its record type, how to decode one line
into a record, how to pull just the locus out of a line (which is all the
interval filter needs), and the tabix column layout used when the records are
indexed. `resolve_codec` maps a path to its codec by suffix. It also knows the
plain BED feature codec, which is a valid feature type but not an evidence
type, so the type registry is the one that turns BED input away.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from .errors import ConfigurationError, MalformedRecordError
from .records import (
    DELIMITER,
    SPLIT_READ_MINUS,
    SPLIT_READ_PLUS,
    STRAND_MINUS,
    STRAND_PLUS,
    BafEvidence,
    DepthEvidence,
    DiscordantPairEvidence,
    EvidenceRecord,
    SplitReadEvidence,
)

COMPRESSED_SUFFIX = ".gz"


@dataclass(frozen=True, slots=True)
class TabixFormat:
    """Column layout handed to tabix. Column indices are 0-based."""

    seq_col: int
    start_col: int
    end_col: int
    zerobased: bool = True
    meta_char: str = "#"


@dataclass(frozen=True, slots=True)
class BedFeature:
    """A plain BED interval. Readable, but not a supported evidence type."""

    contig: str
    start: int
    end: int
    name: str | None = None


Feature = EvidenceRecord | BedFeature


def _split(line: str, min_fields: int, max_fields: int | None = None) -> list[str]:
    fields = line.rstrip("\r\n").split(DELIMITER)
    if len(fields) < min_fields or (max_fields is not None and len(fields) > max_fields):
        expected = min_fields if max_fields == min_fields else f"at least {min_fields}"
        msg = f"Expected {expected} tab-delimited fields, found {len(fields)}"
        raise MalformedRecordError(msg, line)
    return fields


def _parse_strand(value: str, line: str) -> bool:
    if value == STRAND_PLUS:
        return True
    if value == STRAND_MINUS:
        return False
    msg = f"Strand must be '{STRAND_PLUS}' or '{STRAND_MINUS}', found {value!r}"
    raise MalformedRecordError(msg, line)


class FeatureCodec:
    """
    Base class for the tab-delimited evidence codecs.

    Subclasses set `feature_type`, `suffix`, `field_count` and
    `tabix_format`, and implement `_build`. Positions in the text are
    0-based and are converted to 1-based record coordinates on decode.
    """

    feature_type: ClassVar[type]
    suffix: ClassVar[str]
    field_count: ClassVar[int]
    exact_field_count: ClassVar[bool] = True
    tabix_format: ClassVar[TabixFormat] = TabixFormat(seq_col=0, start_col=1, end_col=1)

    @classmethod
    def can_decode(cls, path: str | Path) -> bool:
        name = Path(path).name.lower()
        suffix = cls.suffix.lower()
        return name.endswith((suffix, suffix + COMPRESSED_SUFFIX))

    def decode(self, line: str) -> Feature:
        max_fields = self.field_count if self.exact_field_count else None
        fields = _split(line, self.field_count, max_fields)
        try:
            return self._build(fields, line)
        except ValueError as e:
            raise MalformedRecordError(str(e), line) from e

    def locus(self, line: str) -> tuple[str, int, int]:
        """
        Decode only the locus of a line, as a 1-based closed interval.

        Args:
            line: One line of the evidence file

        Returns:
            Tuple of (contig, start, end)
        """
        fields = line.rstrip("\r\n").split(DELIMITER, self.tabix_format.end_col + 1)
        fmt = self.tabix_format
        if len(fields) <= max(fmt.seq_col, fmt.start_col, fmt.end_col):
            msg = "Line is too short to contain a locus"
            raise MalformedRecordError(msg, line)
        try:
            start = int(fields[fmt.start_col]) + 1
            end = start if fmt.end_col == fmt.start_col else int(fields[fmt.end_col])
        except ValueError as e:
            msg = "Locus coordinates are not integers"
            raise MalformedRecordError(msg, line) from e
        return fields[fmt.seq_col], start, end

    def is_column_header(self, line: str) -> bool:
        """Whether a leading line is a header row rather than a record."""
        if line.startswith(self.tabix_format.meta_char):
            return True
        fields = line.split(DELIMITER)
        if len(fields) <= self.tabix_format.start_col:
            return False
        return not fields[self.tabix_format.start_col].strip().lstrip("-").isdigit()

    def _build(self, fields: list[str], line: str) -> Feature:
        raise NotImplementedError


class BafEvidenceCodec(FeatureCodec):
    feature_type = BafEvidence
    suffix = ".BAF.txt"
    field_count = 4

    def _build(self, fields: list[str], line: str) -> BafEvidence:
        contig, position, value, sample = fields
        return BafEvidence(contig, int(position) + 1, float(value), sample)


class DepthEvidenceCodec(FeatureCodec):
    feature_type = DepthEvidence
    suffix = ".RD.txt"
    field_count = 3
    exact_field_count = False
    tabix_format = TabixFormat(seq_col=0, start_col=1, end_col=2)

    def _build(self, fields: list[str], line: str) -> DepthEvidence:
        contig, start, end, *counts = fields
        return DepthEvidence(
            contig,
            int(start) + 1,
            int(end),
            tuple(int(count) for count in counts),
        )


class DiscordantPairEvidenceCodec(FeatureCodec):
    feature_type = DiscordantPairEvidence
    suffix = ".PE.txt"
    field_count = 7

    def _build(self, fields: list[str], line: str) -> DiscordantPairEvidence:
        contig, position, strand, end_contig, end_position, end_strand, sample = fields
        return DiscordantPairEvidence(
            contig,
            int(position) + 1,
            _parse_strand(strand, line),
            end_contig,
            int(end_position) + 1,
            _parse_strand(end_strand, line),
            sample,
        )


class SplitReadEvidenceCodec(FeatureCodec):
    feature_type = SplitReadEvidence
    suffix = ".SR.txt"
    field_count = 5

    def _build(self, fields: list[str], line: str) -> SplitReadEvidence:
        contig, position, direction, count, sample = fields
        if direction not in (SPLIT_READ_PLUS, SPLIT_READ_MINUS):
            msg = (
                f"Split-read direction must be '{SPLIT_READ_PLUS}' or "
                f"'{SPLIT_READ_MINUS}', found {direction!r}"
            )
            raise MalformedRecordError(msg, line)
        return SplitReadEvidence(
            contig,
            int(position) + 1,
            direction == SPLIT_READ_PLUS,
            int(count),
            sample,
        )


class BedFeatureCodec(FeatureCodec):
    feature_type = BedFeature
    suffix = ".bed"
    field_count = 3
    exact_field_count = False
    tabix_format = TabixFormat(seq_col=0, start_col=1, end_col=2)

    def _build(self, fields: list[str], line: str) -> BedFeature:
        contig, start, end, *rest = fields
        return BedFeature(contig, int(start) + 1, int(end), rest[0] if rest else None)


CODECS: tuple[type[FeatureCodec], ...] = (
    BafEvidenceCodec,
    DepthEvidenceCodec,
    DiscordantPairEvidenceCodec,
    SplitReadEvidenceCodec,
    BedFeatureCodec,
)


def resolve_codec(path: str | Path) -> FeatureCodec:
    """
    Find the codec able to decode the file at `path`, judged by its suffix.

    Args:
        path: Evidence file path, optionally gzipped

    Returns:
        A codec instance for the file

    Raises:
        ConfigurationError: If no known codec handles the file's suffix.
    """
    for codec in CODECS:
        if codec.can_decode(path):
            return codec()

    known = ", ".join(f"'{codec.suffix}[{COMPRESSED_SUFFIX}]'" for codec in CODECS)
    msg = f"No codec found for {path}. Recognized file suffixes are: {known}"
    raise ConfigurationError(msg)


def codec_for_type(feature_type: type) -> FeatureCodec:
    """Return the codec that encodes and decodes `feature_type` records."""
    for codec in CODECS:
        if codec.feature_type is feature_type:
            return codec()
    msg = f"No codec registered for feature type {feature_type.__name__}"
    raise ConfigurationError(msg)
