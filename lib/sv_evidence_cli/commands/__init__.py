"""Commands of the print-sv-evidence CLI. Importing a module registers its command."""

from sv_evidence_cli.commands import print_evidence

__all__ = ["print_evidence"]
