"""End-to-end tests for the print pipeline."""

import gzip
from pathlib import Path

import pysam
import pytest

from sv_evidence import (
    ConfigurationError,
    MalformedRecordError,
    PrintConfig,
    print_evidence,
    write_evidence,
)
from sv_evidence.intervals import IntervalSet
from sv_evidence.sinks import PlainFeatureSink
from sv_evidence.source import FileEvidenceSource

SPLIT_READ_LINES = [
    "chr1\t99\tright\t3\ts1",
    "chr1\t199\tleft\t1\ts1",
    "chr1\t299\tright\t5\ts2",
    "chr2\t49\tleft\t2\ts1",
    "chr2\t149\tright\t4\ts2",
]

BAF_HEADER = "contig\tstart\tend\tsample\tvalue"
BAF_LINES = [
    "chr1\t999\t0.5\ts1",
    "chr1\t1999\t0.25\ts1",
    "chr2\t499\t0.75\ts2",
]


@pytest.fixture
def split_read_file(tmp_path: Path) -> Path:
    """Five sorted split-read records on chr1 and chr2."""
    path = tmp_path / "batch.SR.txt"
    path.write_text("\n".join(SPLIT_READ_LINES) + "\n")
    return path


@pytest.fixture
def baf_file(tmp_path: Path) -> Path:
    """A gzipped BAF file with a column-name header."""
    path = tmp_path / "batch.BAF.txt.gz"
    with gzip.open(path, "wt") as handle:
        handle.write("\n".join([BAF_HEADER, *BAF_LINES]) + "\n")
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """A separate directory for outputs."""
    out = tmp_path / "out"
    out.mkdir()
    return out


class TestPrintEvidence:
    """Test complete print runs."""

    def test_contig_subset(self, split_read_file: Path, output_dir: Path) -> None:
        """Test printing only the records of one contig, in order and without a header."""
        output = output_dir / "chr1.SR.txt"
        summary = print_evidence(
            PrintConfig(evidence_file=split_read_file, output=output, intervals=("chr1",)),
        )
        assert output.read_text().splitlines() == SPLIT_READ_LINES[:3]
        assert summary.records_written == 3
        assert not summary.header_written
        assert summary.index_path is None

    def test_compressed_output_with_header(self, baf_file: Path, output_dir: Path) -> None:
        """Test that .gz output is compressed, indexed and keeps header and records unchanged."""
        output = output_dir / "local.BAF.txt.gz"
        summary = print_evidence(PrintConfig(evidence_file=baf_file, output=output))

        assert summary.header_written
        assert summary.index_path == Path(f"{output}.tbi")
        assert summary.index_path.exists()
        with gzip.open(output, "rt") as handle:
            assert handle.read().splitlines() == [BAF_HEADER, *BAF_LINES]
        with pysam.TabixFile(str(output)) as tabix:
            assert list(tabix.fetch("chr2")) == BAF_LINES[2:]

    def test_plain_output(self, baf_file: Path, output_dir: Path) -> None:
        """Test that output without a compression suffix is plain text with no index."""
        output = output_dir / "local.BAF.txt"
        summary = print_evidence(PrintConfig(evidence_file=baf_file, output=output))

        assert output.read_text().splitlines() == [BAF_HEADER, *BAF_LINES]
        assert summary.index_path is None
        assert not Path(f"{output}.tbi").exists()

    def test_unregistered_type(self, tmp_path: Path, output_dir: Path) -> None:
        """Test that a readable but unsupported type fails before output is created."""
        bed = tmp_path / "regions.bed"
        bed.write_text("chr1\t0\t100\n")
        output = output_dir / "regions.out.bed"

        with pytest.raises(ConfigurationError, match="Unsupported record type"):
            print_evidence(PrintConfig(evidence_file=bed, output=output))
        assert not output.exists()

    def test_unknown_interval_contig(self, split_read_file: Path, output_dir: Path, tmp_path: Path) -> None:
        """Test that intervals are validated before output is created."""
        dict_file = tmp_path / "ref.dict"
        dict_file.write_text("@SQ\tSN:chr1\tLN:10000\n@SQ\tSN:chr2\tLN:10000\n")
        output = output_dir / "out.SR.txt"

        with pytest.raises(ConfigurationError, match="chr9"):
            print_evidence(
                PrintConfig(
                    evidence_file=split_read_file,
                    output=output,
                    intervals=("chr9:1-100",),
                    sequence_dictionary=dict_file,
                ),
            )
        assert not output.exists()

    def test_exclusions_and_padding(self, split_read_file: Path, output_dir: Path) -> None:
        """Test padding and exclusions together."""
        output = output_dir / "out.SR.txt"
        print_evidence(
            PrintConfig(
                evidence_file=split_read_file,
                output=output,
                intervals=("chr1:150", "chr2:100"),
                exclude_intervals=("chr1:1-190",),
                interval_padding=50,
            ),
        )
        # chr1:100-200 minus chr1:1-190 leaves chr1:191-200; chr2 becomes 50-150
        assert output.read_text().splitlines() == [
            SPLIT_READ_LINES[1],
            SPLIT_READ_LINES[3],
            SPLIT_READ_LINES[4],
        ]

    def test_indexed_input_to_indexed_output(self, split_read_file: Path, output_dir: Path) -> None:
        """Test querying an indexed input and indexing the subset."""
        indexed = Path(
            pysam.tabix_index(str(split_read_file), seq_col=0, start_col=1, end_col=1, zerobased=True),
        )
        output = output_dir / "chr2.SR.txt.gz"
        summary = print_evidence(
            PrintConfig(evidence_file=indexed, output=output, intervals=("chr2",)),
        )
        assert summary.records_written == 2
        with pysam.TabixFile(str(output)) as tabix:
            assert list(tabix.contigs) == ["chr2"]

    def test_indexed_input_keeps_file_order(self, tmp_path: Path, split_read_file: Path, output_dir: Path) -> None:
        """Test that indexed queries follow the file's contig order rather than the dictionary's."""
        indexed = Path(
            pysam.tabix_index(str(split_read_file), seq_col=0, start_col=1, end_col=1, zerobased=True),
        )
        dict_file = tmp_path / "reversed.dict"
        dict_file.write_text("@SQ\tSN:chr2\tLN:10000\n@SQ\tSN:chr1\tLN:10000\n")
        output = output_dir / "both.SR.txt"

        print_evidence(
            PrintConfig(
                evidence_file=indexed,
                output=output,
                intervals=("chr2", "chr1"),
                sequence_dictionary=dict_file,
            ),
        )
        assert output.read_text().splitlines() == SPLIT_READ_LINES

    def test_malformed_record_leaves_no_index(self, tmp_path: Path, output_dir: Path) -> None:
        """Test that a malformed line aborts the run without building an index."""
        evidence = tmp_path / "bad.SR.txt"
        evidence.write_text("chr1\t99\tright\t3\ts1\nchr1\t199\tsideways\t1\ts1\n")
        output = output_dir / "bad.SR.txt.gz"

        with pytest.raises(MalformedRecordError, match="sideways"):
            print_evidence(PrintConfig(evidence_file=evidence, output=output))
        assert not Path(f"{output}.tbi").exists()

    def test_failed_rerun_removes_stale_index(self, tmp_path: Path, split_read_file: Path, output_dir: Path) -> None:
        """Test that an index from an earlier successful run does not survive a failed rerun."""
        output = output_dir / "rerun.SR.txt.gz"
        first = print_evidence(PrintConfig(evidence_file=split_read_file, output=output))
        assert first.index_path is not None
        assert first.index_path.exists()

        evidence = tmp_path / "bad.SR.txt"
        evidence.write_text("chr1\t99\tright\t3\ts1\nchr1\t199\tsideways\t1\ts1\n")
        with pytest.raises(MalformedRecordError, match="sideways"):
            print_evidence(PrintConfig(evidence_file=evidence, output=output))
        assert not Path(f"{output}.tbi").exists()

    def test_empty_input(self, tmp_path: Path, output_dir: Path) -> None:
        """Test that an empty evidence file produces an empty, indexed output."""
        evidence = tmp_path / "empty.PE.txt"
        evidence.write_text("")
        output = output_dir / "empty.PE.txt.gz"

        summary = print_evidence(PrintConfig(evidence_file=evidence, output=output))
        assert summary.records_written == 0
        assert summary.index_path is not None


class TestWriteEvidence:
    """Test streaming a source into a caller-owned sink."""

    def test_sink_left_open(self, split_read_file: Path, output_dir: Path) -> None:
        """Test that write_evidence does not close the sink."""
        sink = PlainFeatureSink(output_dir / "out.SR.txt")
        written = write_evidence(
            FileEvidenceSource.open(split_read_file),
            sink,
            IntervalSet.build(["chr2"]),
        )
        assert written == 2
        sink.add(FileEvidenceSource.open(split_read_file).codec.decode(SPLIT_READ_LINES[0]))
        sink.close()
        assert len((output_dir / "out.SR.txt").read_text().splitlines()) == 3


class TestPrintConfig:
    """Test run configuration validation."""

    def test_defaults(self, split_read_file: Path, output_dir: Path) -> None:
        """Test default option values."""
        config = PrintConfig(evidence_file=split_read_file, output=output_dir / "o.SR.txt")
        assert config.compression_level == 4
        assert config.interval_padding == 0
        assert config.intervals == ()

    def test_output_overwrites_input(self, split_read_file: Path) -> None:
        """Test that the input cannot be the output."""
        with pytest.raises(ConfigurationError, match="overwrite"):
            PrintConfig.from_options(evidence_file=split_read_file, output=split_read_file)

    @pytest.mark.parametrize(
        ("option", "value"),
        [("compression_level", 10), ("compression_level", -1), ("interval_padding", -5)],
    )
    def test_out_of_range(self, split_read_file: Path, output_dir: Path, option: str, value: int) -> None:
        """Test that numeric options are range checked."""
        with pytest.raises(ConfigurationError, match=option):
            PrintConfig.from_options(
                evidence_file=split_read_file,
                output=output_dir / "o.SR.txt",
                **{option: value},
            )

    def test_missing_output_directory(self, split_read_file: Path, tmp_path: Path) -> None:
        """Test that the output directory must exist."""
        with pytest.raises(ConfigurationError, match="does not exist"):
            PrintConfig.from_options(evidence_file=split_read_file, output=tmp_path / "a" / "o.SR.txt")

    def test_missing_reference(self, split_read_file: Path, output_dir: Path) -> None:
        """Test that a named reference must exist."""
        with pytest.raises(ConfigurationError, match="reference"):
            PrintConfig.from_options(
                evidence_file=split_read_file,
                output=output_dir / "o.SR.txt",
                reference=output_dir / "missing.fasta",
            )

    def test_config_is_frozen(self, split_read_file: Path, output_dir: Path) -> None:
        """Test that a validated config cannot be changed."""
        config = PrintConfig(evidence_file=split_read_file, output=output_dir / "o.SR.txt")
        with pytest.raises(ValueError):
            config.interval_padding = 3  # type: ignore[misc]
