"""
print-sv-evidence command-line interface.

Reads one split-read, discordant-pair, B-allele frequency or read-depth
evidence file and writes its records, optionally restricted to intervals,
as plain text or as BGZF-compressed, tabix-indexed text.

Usage:
    print-sv-evidence --evidence-file batch.SR.txt.gz -L chr1 -O chr1.SR.txt.gz
    print-sv-evidence --help
"""

from sv_evidence_cli.app import app

# registers the print command on the app
from sv_evidence_cli.commands import print_evidence  # noqa: F401

__all__ = ["app", "main"]


def main() -> None:
    """Console script entry point."""
    app()
