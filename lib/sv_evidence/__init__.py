"""
SV evidence printing.

Streams structural-variant evidence records (split-read, discordant-pair,
B-allele frequency and read-depth files) from one evidence file, optionally
restricted to genomic intervals, into plain text or BGZF-compressed,
tabix-indexed output.

Modules:
    records: Evidence record types and their canonical text encoding
    codecs: Line codecs and codec resolution from file suffixes
    registry: The evidence types that may be printed
    dictionary: Sequence dictionaries from .dict, FASTA or tabix indexes
    intervals: Interval parsing, merging and overlap queries
    source: Single-pass evidence file reader
    traversal: Interval-bounded record traversal
    header: Header propagation
    sinks: Plain and indexed output sinks
    pipeline: Configuration and the end-to-end print run
"""

from .errors import (
    ConfigurationError,
    IndexFinalizationError,
    InvariantViolation,
    MalformedRecordError,
    SinkStateError,
    SvEvidenceError,
    TraversalError,
)
from .pipeline import PrintConfig, PrintSummary, print_evidence, write_evidence
from .records import (
    BafEvidence,
    DepthEvidence,
    DiscordantPairEvidence,
    EvidenceRecord,
    SplitReadEvidence,
    encode,
)

__version__ = "0.1.0"

__all__ = [
    "BafEvidence",
    "ConfigurationError",
    "DepthEvidence",
    "DiscordantPairEvidence",
    "EvidenceRecord",
    "IndexFinalizationError",
    "InvariantViolation",
    "MalformedRecordError",
    "PrintConfig",
    "PrintSummary",
    "SinkStateError",
    "SplitReadEvidence",
    "SvEvidenceError",
    "TraversalError",
    "encode",
    "print_evidence",
    "write_evidence",
]
