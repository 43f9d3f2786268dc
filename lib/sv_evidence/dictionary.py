"""
Sequence dictionaries: the ordered contig names (and lengths) of a reference.

The dictionary orders intervals, clips padded intervals to contig ends and
lets the output sinks reject records on contigs the reference does not know.
`best_available` picks the most authoritative source the user supplied.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

import pysam
from Bio import SeqIO
from loguru import logger

from .errors import ConfigurationError

FASTA_INDEX_SUFFIX = ".fai"
TABIX_INDEX_SUFFIX = ".tbi"


class SequenceDictionary:
    """
    Ordered mapping of contig name to length. Lengths may be unknown.

    A partial dictionary only lists the contigs some file happens to contain,
    so a contig missing from it is not an error.
    """

    def __init__(
        self,
        contigs: Iterable[tuple[str, int | None]],
        *,
        partial: bool = False,
    ) -> None:
        self.partial = partial
        self._lengths: dict[str, int | None] = {}
        for name, length in contigs:
            if name in self._lengths:
                msg = f"Contig {name} appears more than once in the sequence dictionary"
                raise ConfigurationError(msg)
            self._lengths[name] = length

    def __contains__(self, contig: object) -> bool:
        return contig in self._lengths

    def __iter__(self) -> Iterator[str]:
        return iter(self._lengths)

    def __len__(self) -> int:
        return len(self._lengths)

    def __repr__(self) -> str:
        return f"SequenceDictionary({len(self)} contigs, partial={self.partial})"

    @property
    def names(self) -> list[str]:
        return list(self._lengths)

    def length_of(self, contig: str) -> int | None:
        return self._lengths[contig]

    def index_of(self, contig: str) -> int:
        """Position of `contig` in dictionary order."""
        if contig in self._lengths:
            return list(self._lengths).index(contig)
        msg = f"Contig {contig} is not in the sequence dictionary"
        raise ConfigurationError(msg)

    @classmethod
    def from_fai(cls, fai_path: Path) -> SequenceDictionary:
        """Read contig names and lengths from a samtools FASTA index."""
        contigs = []
        with open(fai_path, encoding="utf8") as fai:
            for line in fai:
                if not line.strip():
                    continue
                name, length, *_ = line.rstrip("\n").split("\t")
                contigs.append((name, int(length)))
        return cls(contigs)

    @classmethod
    def from_fasta(cls, fasta_path: Path) -> SequenceDictionary:
        """
        Build a dictionary from a reference FASTA.

        Uses the `.fai` index next to the FASTA when there is one, and
        otherwise parses every record.
        """
        fai_path = Path(f"{fasta_path}{FASTA_INDEX_SUFFIX}")
        if fai_path.is_file():
            return cls.from_fai(fai_path)
        return cls(
            (record.id, len(record.seq)) for record in SeqIO.parse(str(fasta_path), "fasta")
        )

    @classmethod
    def from_sam_dict(cls, dict_path: Path) -> SequenceDictionary:
        """Read the `@SQ` lines of a Picard-style `.dict` file."""
        contigs = []
        with open(dict_path, encoding="utf8") as handle:
            for line in handle:
                if not line.startswith("@SQ"):
                    continue
                tags = dict(
                    field.split(":", 1) for field in line.rstrip("\n").split("\t")[1:] if ":" in field
                )
                if "SN" not in tags:
                    msg = f"@SQ line without a sequence name in {dict_path}: {line.strip()}"
                    raise ConfigurationError(msg)
                length = tags.get("LN")
                contigs.append((tags["SN"], int(length) if length is not None else None))
        return cls(contigs)

    @classmethod
    def from_tabix(cls, indexed_path: Path) -> SequenceDictionary:
        """Contig names listed in a tabix index, in index order, without lengths."""
        with pysam.TabixFile(str(indexed_path)) as tabix:
            return cls(((contig, None) for contig in tabix.contigs), partial=True)


def best_available(
    reference: Path | None = None,
    sequence_dictionary: Path | None = None,
    evidence_file: Path | None = None,
) -> SequenceDictionary | None:
    """
    Pick the best sequence dictionary from what the user provided.

    Preference order is an explicit `.dict` file, then the reference FASTA,
    then the contigs of the evidence file's tabix index.

    Args:
        reference: Optional reference FASTA
        sequence_dictionary: Optional Picard `.dict` file
        evidence_file: The evidence file, which may be tabix-indexed

    Returns:
        The sequence dictionary, or None when nothing describes the contigs
    """
    if sequence_dictionary is not None:
        logger.info(f"Using sequence dictionary {sequence_dictionary}")
        return SequenceDictionary.from_sam_dict(sequence_dictionary)

    if reference is not None:
        logger.info(f"Using sequence dictionary from reference {reference}")
        return SequenceDictionary.from_fasta(reference)

    if evidence_file is not None and Path(f"{evidence_file}{TABIX_INDEX_SUFFIX}").is_file():
        logger.info(f"Using contigs from the tabix index of {evidence_file}")
        return SequenceDictionary.from_tabix(evidence_file)

    logger.debug("No sequence dictionary available")
    return None
