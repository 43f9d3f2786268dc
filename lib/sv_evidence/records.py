"""
Structural-variant evidence record types and their canonical text encoding.

Four record kinds are supported, one per evidence file type produced by SV
evidence collection:

    BafEvidence             B-allele frequency at a SNP site     (*.BAF.txt)
    DepthEvidence           binned read-depth counts              (*.RD.txt)
    DiscordantPairEvidence  a discordantly aligned read pair      (*.PE.txt)
    SplitReadEvidence       split-read support at a breakpoint    (*.SR.txt)

Records hold 1-based, closed coordinates. Their text encoding stores the
0-based start, so `encode` subtracts one and the codecs add it back. Encoded
fields are joined by a tab with no escaping, which is why text fields may not
contain the delimiter.
"""

from __future__ import annotations

from dataclasses import dataclass

DELIMITER = "\t"

STRAND_PLUS = "+"
STRAND_MINUS = "-"

# split-read direction of the clipped sequence; "right" is the plus strand
SPLIT_READ_PLUS = "right"
SPLIT_READ_MINUS = "left"


def _check_text(name: str, value: str) -> None:
    if not value:
        msg = f"{name} cannot be empty"
        raise ValueError(msg)
    if DELIMITER in value or "\n" in value:
        msg = f"{name} cannot contain tabs or newlines: {value!r}"
        raise ValueError(msg)


def _check_position(name: str, value: int) -> None:
    if value < 1:
        msg = f"{name} must be a 1-based position, got {value}"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class BafEvidence:
    """B-allele frequency of one sample at a single heterozygous site."""

    contig: str
    position: int
    value: float
    sample: str

    def __post_init__(self) -> None:
        _check_text("contig", self.contig)
        _check_position("position", self.position)
        _check_text("sample", self.sample)

    @property
    def start(self) -> int:
        return self.position

    @property
    def end(self) -> int:
        return self.position


@dataclass(frozen=True, slots=True)
class DepthEvidence:
    """
    Read counts over one genomic bin for every sample in the file.

    The sample names are not part of the record. They are carried by the
    `#Chr Start End <samples...>` header line of the depth file, in the same
    order as `counts`. A zero-length bin has `end == start - 1`.
    """

    contig: str
    start: int
    end: int
    counts: tuple[int, ...]

    def __post_init__(self) -> None:
        _check_text("contig", self.contig)
        _check_position("start", self.start)
        if self.end < self.start - 1:
            msg = f"End ({self.end}) must be >= start - 1 ({self.start - 1})"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class DiscordantPairEvidence:
    """A read pair whose mates align with unexpected distance or orientation."""

    contig: str
    position: int
    strand: bool
    end_contig: str
    end_position: int
    end_strand: bool
    sample: str

    def __post_init__(self) -> None:
        _check_text("contig", self.contig)
        _check_position("position", self.position)
        _check_text("end_contig", self.end_contig)
        _check_position("end_position", self.end_position)
        _check_text("sample", self.sample)

    # indexed at the first mate only
    @property
    def start(self) -> int:
        return self.position

    @property
    def end(self) -> int:
        return self.position


@dataclass(frozen=True, slots=True)
class SplitReadEvidence:
    """Number of reads of one sample soft-clipped at the same position."""

    contig: str
    position: int
    strand: bool
    count: int
    sample: str

    def __post_init__(self) -> None:
        _check_text("contig", self.contig)
        _check_position("position", self.position)
        _check_text("sample", self.sample)

    @property
    def start(self) -> int:
        return self.position

    @property
    def end(self) -> int:
        return self.position


EvidenceRecord = BafEvidence | DepthEvidence | DiscordantPairEvidence | SplitReadEvidence


def _strand(strand: bool) -> str:
    return STRAND_PLUS if strand else STRAND_MINUS


def encode(record: EvidenceRecord) -> str:
    """
    Encode a record as its canonical tab-delimited line, without a newline.

    Args:
        record: Any supported evidence record

    Returns:
        The encoded line

    Raises:
        TypeError: If the record is not one of the supported evidence kinds.
    """
    match record:
        case BafEvidence():
            fields = [
                record.contig,
                str(record.position - 1),
                repr(record.value),
                record.sample,
            ]
        case DepthEvidence():
            fields = [
                record.contig,
                str(record.start - 1),
                str(record.end),
                *(str(count) for count in record.counts),
            ]
        case DiscordantPairEvidence():
            fields = [
                record.contig,
                str(record.position - 1),
                _strand(record.strand),
                record.end_contig,
                str(record.end_position - 1),
                _strand(record.end_strand),
                record.sample,
            ]
        case SplitReadEvidence():
            fields = [
                record.contig,
                str(record.position - 1),
                SPLIT_READ_PLUS if record.strand else SPLIT_READ_MINUS,
                str(record.count),
                record.sample,
            ]
        case _:
            msg = f"Cannot encode record of type {type(record).__name__}"
            raise TypeError(msg)

    return DELIMITER.join(fields)
