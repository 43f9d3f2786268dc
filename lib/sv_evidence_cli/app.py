"""The Typer app that the print command registers itself on."""

import typer

app = typer.Typer(
    name="print-sv-evidence",
    help="Print SV evidence records, optionally restricted to genomic intervals.",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
