# ruff: noqa: PLR0913, UP006, UP045
"""
The print command.

Typer reads the option annotations at runtime, so this module keeps them as
real objects (no `from __future__ import annotations`).
"""

from pathlib import Path
from typing import Annotated, List, Optional

import typer
from loguru import logger
from sv_evidence import PrintConfig, SvEvidenceError, print_evidence
from sv_evidence.sinks import DEFAULT_COMPRESSION_LEVEL, MAX_COMPRESSION_LEVEL, MIN_COMPRESSION_LEVEL

from sv_evidence_cli.app import app
from sv_evidence_cli.utils import INTERRUPTED_EXIT_CODE, configure_logging, error, success

# --help sections
PANEL_INPUT = "Input & Output"
PANEL_INTERVALS = "Intervals"
PANEL_REFERENCE = "Reference"
PANEL_LOGGING = "Logging"


@app.command("print")
def print_sv_evidence(
    evidence_file: Annotated[
        Path,
        typer.Option(
            "--evidence-file",
            help=(
                "Input file with extension '.SR.txt', '.PE.txt', '.BAF.txt', or '.RD.txt' "
                "(may be gzipped)."
            ),
            dir_okay=False,
            rich_help_panel=PANEL_INPUT,
        ),
    ],
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-O",
            help=(
                "Output file. Filenames ending in '.gz', '.bgz' or '.bgzf' "
                "are block compressed and indexed."
            ),
            dir_okay=False,
            rich_help_panel=PANEL_INPUT,
        ),
    ],
    compression_level: Annotated[
        int,
        typer.Option(
            "--compression-level",
            min=MIN_COMPRESSION_LEVEL,
            max=MAX_COMPRESSION_LEVEL,
            help="Output compression level. Ignored for uncompressed output.",
            rich_help_panel=PANEL_INPUT,
        ),
    ] = DEFAULT_COMPRESSION_LEVEL,
    intervals: Annotated[
        Optional[List[str]],
        typer.Option(
            "--intervals",
            "-L",
            help="Genomic interval or interval file (.bed, .interval_list) to restrict to. Repeatable.",
            rich_help_panel=PANEL_INTERVALS,
        ),
    ] = None,
    exclude_intervals: Annotated[
        Optional[List[str]],
        typer.Option(
            "--exclude-intervals",
            "-XL",
            help="Genomic interval or interval file to leave out. Repeatable.",
            rich_help_panel=PANEL_INTERVALS,
        ),
    ] = None,
    interval_padding: Annotated[
        int,
        typer.Option(
            "--interval-padding",
            "-ip",
            min=0,
            help="Bases of padding to add on each side of every included interval.",
            rich_help_panel=PANEL_INTERVALS,
        ),
    ] = 0,
    reference: Annotated[
        Optional[Path],
        typer.Option(
            "--reference",
            "-R",
            help="Reference FASTA, used as the sequence dictionary.",
            exists=True,
            dir_okay=False,
            readable=True,
            rich_help_panel=PANEL_REFERENCE,
        ),
    ] = None,
    sequence_dictionary: Annotated[
        Optional[Path],
        typer.Option(
            "--sequence-dictionary",
            help="Sequence dictionary (.dict); takes precedence over the reference.",
            exists=True,
            dir_okay=False,
            readable=True,
            rich_help_panel=PANEL_REFERENCE,
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v, -vv, -vvv)",
            rich_help_panel=PANEL_LOGGING,
        ),
    ] = 0,
) -> None:
    """
    [bold cyan]Print[/bold cyan] SV evidence records.

    Can be used with -L to retrieve records on a set of intervals.

    [bold cyan]Examples:[/bold cyan]

    Subset a split-read file to one contig:
    [green]$ print-sv-evidence --evidence-file batch.SR.txt.gz -L chr1 -O chr1.SR.txt.gz[/green]

    Decompress a depth file:
    [green]$ print-sv-evidence --evidence-file batch.RD.txt.gz -O batch.RD.txt[/green]
    """
    configure_logging(verbose)

    try:
        config = PrintConfig.from_options(
            evidence_file=evidence_file,
            output=output,
            intervals=tuple(intervals or ()),
            exclude_intervals=tuple(exclude_intervals or ()),
            interval_padding=interval_padding,
            compression_level=compression_level,
            reference=reference,
            sequence_dictionary=sequence_dictionary,
        )
        logger.debug(f"Configuration: {config}")
        summary = print_evidence(config)
    except (SvEvidenceError, OSError) as e:
        error(str(e), exit_code=0)
        raise typer.Exit(1) from e
    except KeyboardInterrupt as e:
        error(f"Interrupted; {output} is incomplete", exit_code=0)
        raise typer.Exit(INTERRUPTED_EXIT_CODE) from e

    success(f"Wrote {summary.records_written:,} record(s) to {summary.output}")
    if summary.index_path is not None:
        success(f"Index written to {summary.index_path}")
