"""
Genomic intervals used to restrict which evidence records are printed.

Intervals can be given on the command line as `contig`, `contig:pos`,
`contig:start-end` or `contig:start+` (1-based, closed, commas allowed in
numbers), or as files: BED files (0-based, half-open) and interval lists
(one interval per line, or Picard `.interval_list` rows after the `@` header).

`IntervalSet.build` pads, merges, subtracts exclusions and orders the result.
The merged set answers overlap queries by bisection, one sorted list of
starts and ends per contig.
"""

from __future__ import annotations

import re
from bisect import bisect_left
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from pathlib import Path

import polars as pl
from loguru import logger

from .dictionary import SequenceDictionary
from .errors import ConfigurationError

# upper bound for whole-contig intervals when the contig length is unknown
MAX_POSITION = 2**31 - 1

BED_SUFFIXES = (".bed", ".bed.gz")
INTERVAL_LIST_SUFFIXES = (".interval_list", ".intervals", ".list")
BED_MIN_COLUMNS = 3

COORDINATE_PATTERN = re.compile(
    r"^(?P<start>[\d,]+)(?:(?P<to_end>\+)|-(?P<end>[\d,]+))?$",
)


@dataclass(frozen=True, slots=True)
class Interval:
    """A 1-based, closed genomic interval."""

    contig: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if not self.contig:
            msg = "Interval contig cannot be empty"
            raise ConfigurationError(msg)
        if self.start < 1:
            msg = f"Interval start must be >= 1, got {self.start} on {self.contig}"
            raise ConfigurationError(msg)
        if self.end < self.start:
            msg = f"Interval end ({self.end}) must be >= start ({self.start}) on {self.contig}"
            raise ConfigurationError(msg)

    def overlaps(self, contig: str, start: int, end: int) -> bool:
        return contig == self.contig and start <= self.end and end >= self.start

    def __str__(self) -> str:
        return f"{self.contig}:{self.start}-{self.end}"


def _parse_position(text: str, spec: str) -> int:
    try:
        return int(text.replace(",", ""))
    except ValueError as e:
        msg = f"Malformed position {text!r} in interval {spec!r}"
        raise ConfigurationError(msg) from e


def parse_interval(spec: str, dictionary: SequenceDictionary | None = None) -> Interval:
    """
    Parse a single interval string.

    A whole-contig interval ends at the contig length when the dictionary
    knows it. Contig names may contain colons; only a trailing `:coordinates`
    suffix is treated as coordinates.

    Args:
        spec: Interval string, e.g. "chr1", "chr1:100", "chr1:100-200", "chr1:100+"
        dictionary: Optional sequence dictionary for contig lengths

    Returns:
        The parsed Interval

    Raises:
        ConfigurationError: If the string is not a valid interval.
    """
    spec = spec.strip()
    if not spec:
        msg = "Empty interval specification"
        raise ConfigurationError(msg)

    contig, coordinates = spec, None
    if ":" in spec and (dictionary is None or spec not in dictionary):
        head, tail = spec.rsplit(":", 1)
        coordinates = COORDINATE_PATTERN.match(tail)
        if coordinates is None:
            msg = f"Malformed interval {spec!r}: expected contig, contig:pos or contig:start-end"
            raise ConfigurationError(msg)
        contig = head

    contig_end = MAX_POSITION
    if dictionary is not None and contig in dictionary:
        contig_end = dictionary.length_of(contig) or MAX_POSITION

    if coordinates is None:
        return Interval(contig, 1, contig_end)

    start = _parse_position(coordinates["start"], spec)
    if coordinates["to_end"]:
        end = contig_end
    elif coordinates["end"] is not None:
        end = _parse_position(coordinates["end"], spec)
    else:
        end = start
    return Interval(contig, start, end)


def load_bed(bed_path: Path) -> list[Interval]:
    """
    Load intervals from a BED file.

    Args:
        bed_path: Path to a BED file, optionally gzipped

    Returns:
        Intervals converted to 1-based closed coordinates, in file order
    """
    try:
        bed = pl.read_csv(
            bed_path,
            separator="\t",
            has_header=False,
            comment_prefix="#",
            infer_schema_length=0,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.NoDataError:
        return []

    if bed.height == 0:
        return []
    if bed.width < BED_MIN_COLUMNS:
        msg = f"BED file {bed_path} has fewer than the required 3 columns"
        raise ConfigurationError(msg)

    bed = bed.select(bed.columns[:3]).rename(
        dict(zip(bed.columns[:3], ["contig", "start", "end"], strict=True)),
    )
    try:
        bed = bed.with_columns(
            (pl.col("start").cast(pl.Int64) + 1).alias("start"),
            pl.col("end").cast(pl.Int64),
        )
    except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError) as e:
        msg = f"BED file {bed_path} has non-integer coordinates"
        raise ConfigurationError(msg) from e

    return [Interval(contig, start, end) for contig, start, end in bed.iter_rows()]


def load_interval_list(
    list_path: Path,
    dictionary: SequenceDictionary | None = None,
) -> list[Interval]:
    """Load a file with one interval string or Picard interval row per line."""
    intervals = []
    with open(list_path, encoding="utf8") as handle:
        for line in handle:
            line = line.strip()  # noqa: PLW2901
            if not line or line.startswith(("@", "#")):
                continue
            fields = line.split("\t")
            if len(fields) >= BED_MIN_COLUMNS and fields[1].isdigit() and fields[2].isdigit():
                intervals.append(Interval(fields[0], int(fields[1]), int(fields[2])))
            else:
                intervals.append(parse_interval(line, dictionary))
    return intervals


def load_intervals(spec: str, dictionary: SequenceDictionary | None = None) -> list[Interval]:
    """
    Resolve one `-L`/`-XL` argument into intervals.

    Arguments naming an existing BED or interval-list file are read from
    disk; anything else is parsed as a single interval string.
    """
    path = Path(spec)
    name = path.name.lower()
    if name.endswith(BED_SUFFIXES) and path.is_file():
        logger.debug(f"Reading intervals from BED file {path}")
        return load_bed(path)
    if name.endswith(INTERVAL_LIST_SUFFIXES) and path.is_file():
        logger.debug(f"Reading intervals from interval list {path}")
        return load_interval_list(path, dictionary)
    return [parse_interval(spec, dictionary)]


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Merge overlapping and abutting intervals on the same contig."""
    merged: list[Interval] = []
    for interval in sorted(intervals, key=lambda i: (i.contig, i.start, i.end)):
        if merged and merged[-1].contig == interval.contig and interval.start <= merged[-1].end + 1:
            last = merged[-1]
            merged[-1] = replace(last, end=max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def subtract_intervals(intervals: Iterable[Interval], excluded: Sequence[Interval]) -> list[Interval]:
    """Remove every position covered by `excluded` from `intervals`."""
    result: list[Interval] = []
    for interval in intervals:
        pieces = [interval]
        for cut in excluded:
            next_pieces = []
            for piece in pieces:
                if not piece.overlaps(cut.contig, cut.start, cut.end):
                    next_pieces.append(piece)
                    continue
                if piece.start < cut.start:
                    next_pieces.append(replace(piece, end=cut.start - 1))
                if piece.end > cut.end:
                    next_pieces.append(replace(piece, start=cut.end + 1))
            pieces = next_pieces
        result.extend(pieces)
    return result


class IntervalSet:
    """
    An ordered set of non-overlapping intervals.

    An empty set places no restriction: `overlaps` is always true.
    """

    def __init__(self, intervals: Iterable[Interval] = ()) -> None:
        self.intervals: tuple[Interval, ...] = tuple(intervals)
        self._starts: dict[str, list[int]] = {}
        self._ends: dict[str, list[int]] = {}
        for interval in self.intervals:
            self._starts.setdefault(interval.contig, []).append(interval.start)
            self._ends.setdefault(interval.contig, []).append(interval.end)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    def __repr__(self) -> str:
        return f"IntervalSet({len(self)} intervals)"

    @property
    def is_unrestricted(self) -> bool:
        return not self.intervals

    def overlaps(self, contig: str, start: int, end: int) -> bool:
        """
        Check whether a 1-based closed locus overlaps any interval in the set.

        Args:
            contig: Contig of the locus
            start: 1-based start of the locus
            end: 1-based end of the locus

        Returns:
            True when the locus overlaps an interval, or when the set is empty
        """
        if self.is_unrestricted:
            return True
        ends = self._ends.get(contig)
        if ends is None:
            return False
        # intervals are disjoint and sorted, so their ends are sorted as well
        i = bisect_left(ends, start)
        return i < len(ends) and self._starts[contig][i] <= end

    @classmethod
    def build(
        cls,
        includes: Sequence[str] = (),
        excludes: Sequence[str] = (),
        padding: int = 0,
        dictionary: SequenceDictionary | None = None,
    ) -> IntervalSet:
        """
        Build the traversal intervals from `-L` and `-XL` style arguments.

        Included intervals are padded on both sides (clipped at position 1 and
        at the contig end when known), merged, and have the excluded intervals
        removed. The result is ordered by the sequence dictionary when there is
        one, otherwise by order of first appearance of each contig.

        Args:
            includes: Interval strings or interval files to restrict to
            excludes: Interval strings or interval files to leave out
            padding: Bases of padding added around each included interval
            dictionary: Optional sequence dictionary to validate and order contigs

        Returns:
            The resulting IntervalSet; empty when `includes` is empty

        Raises:
            ConfigurationError: On malformed intervals, negative padding, or
                contigs missing from a complete sequence dictionary.
        """
        if padding < 0:
            msg = f"Interval padding must be >= 0, got {padding}"
            raise ConfigurationError(msg)

        if not includes:
            if excludes:
                logger.warning("Excluded intervals are ignored without included intervals")
            return cls()

        included = [interval for spec in includes for interval in load_intervals(spec, dictionary)]
        excluded = [interval for spec in excludes for interval in load_intervals(spec, dictionary)]

        for interval in (*included, *excluded):
            _check_contig(interval.contig, dictionary)

        if padding:
            included = [_pad(interval, padding, dictionary) for interval in included]

        contig_order = _contig_order(included, dictionary)
        intervals = subtract_intervals(merge_intervals(included), merge_intervals(excluded))
        intervals.sort(key=lambda i: (contig_order[i.contig], i.start))

        logger.info(
            f"Restricting traversal to {len(intervals)} interval(s) "
            f"from {len(included)} included and {len(excluded)} excluded",
        )
        if not intervals:
            logger.warning("No intervals remain after exclusion; no records will be printed")
            return EMPTY_AFTER_EXCLUSION
        return cls(intervals)


class _EmptyIntervalSet(IntervalSet):
    """Result of excluding everything that was included. Matches nothing."""

    @property
    def is_unrestricted(self) -> bool:
        return False


EMPTY_AFTER_EXCLUSION = _EmptyIntervalSet()


def _check_contig(contig: str, dictionary: SequenceDictionary | None) -> None:
    if dictionary is None or contig in dictionary:
        return
    if dictionary.partial:
        logger.warning(f"Contig {contig} does not appear in the evidence file index")
        return
    msg = f"Interval contig {contig} is not in the sequence dictionary"
    raise ConfigurationError(msg)


def _pad(interval: Interval, padding: int, dictionary: SequenceDictionary | None) -> Interval:
    end = min(interval.end + padding, MAX_POSITION)
    if dictionary is not None and interval.contig in dictionary:
        length = dictionary.length_of(interval.contig)
        if length is not None:
            end = min(end, length)
    return Interval(interval.contig, max(1, interval.start - padding), max(end, interval.start))


def _contig_order(
    intervals: Iterable[Interval],
    dictionary: SequenceDictionary | None,
) -> dict[str, int]:
    known = dictionary.names if dictionary is not None else []
    order = {name: i for i, name in enumerate(known)}
    for interval in intervals:
        order.setdefault(interval.contig, len(order))
    return order
