"""
The print pipeline: evidence source -> interval filter -> output sink.

`print_evidence` runs every configuration check (record type, sequence
dictionary, intervals, destination, compression level) before the output
file is created, then streams records one at a time into the sink. The sink
is finalized only when the whole traversal succeeded.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .dictionary import best_available
from .errors import ConfigurationError
from .header import propagate_header
from .intervals import IntervalSet
from .sinks import (
    DEFAULT_COMPRESSION_LEVEL,
    MAX_COMPRESSION_LEVEL,
    MIN_COMPRESSION_LEVEL,
    FeatureSink,
    IndexedFeatureSink,
    select_sink,
)
from .source import EvidenceSource, FileEvidenceSource
from .traversal import traverse


class PrintConfig(BaseModel):
    """Validated settings for one print run."""

    model_config = ConfigDict(frozen=True)

    evidence_file: Path
    output: Path
    intervals: tuple[str, ...] = ()
    exclude_intervals: tuple[str, ...] = ()
    interval_padding: Annotated[int, Field(ge=0)] = 0
    compression_level: Annotated[
        int,
        Field(ge=MIN_COMPRESSION_LEVEL, le=MAX_COMPRESSION_LEVEL),
    ] = DEFAULT_COMPRESSION_LEVEL
    reference: Path | None = None
    sequence_dictionary: Path | None = None

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: Path) -> Path:
        """Ensure the output can be created."""
        if v.is_dir():
            msg = f"Output path is a directory: {v}"
            raise ValueError(msg)
        if not v.parent.exists():
            msg = f"Output directory does not exist: {v.parent}"
            raise ValueError(msg)
        return v

    @field_validator("reference", "sequence_dictionary")
    @classmethod
    def validate_optional_file(cls, v: Path | None) -> Path | None:
        """Ensure optional reference inputs exist when given."""
        if v is not None and not v.is_file():
            msg = f"File does not exist: {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_distinct_paths(self) -> PrintConfig:
        """Refuse to overwrite the input with the output."""
        if self.output.resolve() == self.evidence_file.resolve():
            msg = f"Output would overwrite the evidence file: {self.output}"
            raise ValueError(msg)
        return self

    @classmethod
    def from_options(cls, **options: object) -> PrintConfig:
        """
        Build a config, reporting validation problems as a ConfigurationError.

        Raises:
            ConfigurationError: If any option is invalid.
        """
        try:
            return cls.model_validate(options)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
                for error in e.errors()
            )
            msg = f"Invalid configuration: {problems}"
            raise ConfigurationError(msg) from e


class PrintSummary(BaseModel):
    """What a completed run wrote."""

    output: Path
    records_written: int = Field(ge=0)
    header_written: bool
    index_path: Path | None = None


def write_evidence(
    source: EvidenceSource,
    sink: FeatureSink,
    intervals: IntervalSet | None = None,
) -> int:
    """
    Stream a source into an open sink: header first, then every overlapping record.

    Does not close the sink.

    Returns:
        Number of records added to the sink
    """
    propagate_header(source, sink)
    before = sink.records_written
    for record in traverse(source, intervals):
        sink.add(record)
    return sink.records_written - before


def print_evidence(config: PrintConfig) -> PrintSummary:
    """
    Print the evidence records of one file, optionally restricted to intervals.

    Args:
        config: Validated run configuration

    Returns:
        Summary of the written output

    Raises:
        ConfigurationError: Before any output exists, for an unsupported or
            unknown record type, a missing input, malformed intervals or an
            unusable destination.
        MalformedRecordError: If an input line cannot be decoded.
        IndexFinalizationError: If the index cannot be built on close.
        OSError: On read or write failures.
    """
    source = FileEvidenceSource.open(config.evidence_file)
    dictionary = best_available(
        reference=config.reference,
        sequence_dictionary=config.sequence_dictionary,
        evidence_file=config.evidence_file,
    )
    intervals = IntervalSet.build(
        config.intervals,
        config.exclude_intervals,
        config.interval_padding,
        dictionary,
    )

    with select_sink(config.output, source.codec, dictionary, config.compression_level) as sink:
        write_evidence(source, sink, intervals)

    logger.success(f"Printed {sink.records_written:,} record(s) to {config.output}")
    return PrintSummary(
        output=config.output,
        records_written=sink.records_written,
        header_written=sink.header_written,
        index_path=sink.index_path if isinstance(sink, IndexedFeatureSink) else None,
    )
