"""Tests for evidence codecs, codec resolution and the type registry."""

import pytest

from sv_evidence.codecs import (
    BafEvidenceCodec,
    BedFeature,
    BedFeatureCodec,
    DepthEvidenceCodec,
    DiscordantPairEvidenceCodec,
    SplitReadEvidenceCodec,
    codec_for_type,
    resolve_codec,
)
from sv_evidence.errors import ConfigurationError, MalformedRecordError
from sv_evidence.records import (
    BafEvidence,
    DepthEvidence,
    DiscordantPairEvidence,
    SplitReadEvidence,
    encode,
)
from sv_evidence.registry import SUPPORTED_EVIDENCE_TYPES, is_supported, require_supported


class TestResolveCodec:
    """Test codec resolution from file names."""

    @pytest.mark.parametrize(
        ("filename", "codec_type"),
        [
            ("batch.SR.txt", SplitReadEvidenceCodec),
            ("batch.SR.txt.gz", SplitReadEvidenceCodec),
            ("batch.PE.txt.gz", DiscordantPairEvidenceCodec),
            ("batch.BAF.txt.gz", BafEvidenceCodec),
            ("batch.RD.txt", DepthEvidenceCodec),
            ("regions.bed", BedFeatureCodec),
        ],
    )
    def test_known_suffixes(self, filename: str, codec_type: type) -> None:
        """Test that each known suffix resolves to its codec."""
        assert isinstance(resolve_codec(filename), codec_type)

    def test_suffix_is_case_insensitive(self) -> None:
        """Test that lowercase suffixes resolve too."""
        assert isinstance(resolve_codec("batch.sr.txt.gz"), SplitReadEvidenceCodec)

    def test_unknown_suffix(self) -> None:
        """Test that an unrecognized suffix is a configuration error."""
        with pytest.raises(ConfigurationError, match="No codec found"):
            resolve_codec("batch.vcf.gz")

    def test_codec_for_type(self) -> None:
        """Test looking up a codec by record type."""
        assert isinstance(codec_for_type(DepthEvidence), DepthEvidenceCodec)
        with pytest.raises(ConfigurationError):
            codec_for_type(dict)


class TestDecode:
    """Test decoding lines into records."""

    def test_decode_split_read(self) -> None:
        """Test a split-read line decodes to 1-based coordinates."""
        record = SplitReadEvidenceCodec().decode("chr1\t99\tleft\t4\ts1\n")
        assert record == SplitReadEvidence("chr1", 100, False, 4, "s1")

    def test_decode_discordant_pair(self) -> None:
        """Test a discordant-pair line decodes both mates."""
        record = DiscordantPairEvidenceCodec().decode("chr1\t0\t+\tchr2\t9\t-\ts1")
        assert record == DiscordantPairEvidence("chr1", 1, True, "chr2", 10, False, "s1")

    def test_decode_baf(self) -> None:
        """Test a BAF line decodes its value as a float."""
        record = BafEvidenceCodec().decode("chrX\t500\t0.4\ts2")
        assert record == BafEvidence("chrX", 501, 0.4, "s2")

    def test_decode_depth_with_counts(self) -> None:
        """Test a depth line keeps every count in order."""
        record = DepthEvidenceCodec().decode("chr1\t0\t100\t5\t0\t9")
        assert record == DepthEvidence("chr1", 1, 100, (5, 0, 9))

    def test_decode_bed(self) -> None:
        """Test that BED lines decode even though BED is not an evidence type."""
        feature = BedFeatureCodec().decode("chr1\t10\t20\tpeak1")
        assert feature == BedFeature("chr1", 11, 20, "peak1")

    @pytest.mark.parametrize(
        "line",
        [
            "chr1\t0\t+\tchr2\t9\t-\ts1",
            "chr1\t0\tright\t4",
            "chr1\t0\tup\t4\ts1",
            "chr1\tzero\tright\t4\ts1",
            "chr1\t0\tright\tfour\ts1",
        ],
    )
    def test_malformed_split_read(self, line: str) -> None:
        """Test that malformed split-read lines raise MalformedRecordError."""
        with pytest.raises(MalformedRecordError):
            SplitReadEvidenceCodec().decode(line)

    def test_malformed_strand(self) -> None:
        """Test that a strand other than + or - is rejected."""
        with pytest.raises(MalformedRecordError, match="Strand"):
            DiscordantPairEvidenceCodec().decode("chr1\t0\t*\tchr2\t9\t-\ts1")

    def test_error_keeps_line(self) -> None:
        """Test that the offending line is attached to the error."""
        with pytest.raises(MalformedRecordError) as excinfo:
            BafEvidenceCodec().decode("chr1\t-5\t0.5\ts1")
        assert excinfo.value.line == "chr1\t-5\t0.5\ts1"

    @pytest.mark.parametrize(
        "record",
        [
            BafEvidence("chr1", 1, 0.125, "s1"),
            DepthEvidence("chr1", 1, 100, (3, 4)),
            DiscordantPairEvidence("chr1", 20, False, "chr1", 900, True, "s1"),
            SplitReadEvidence("chr2", 3, True, 12, "s9"),
            DepthEvidence("chr1", 101, 100, (0,)),
            DepthEvidence("chr1", 1, 2**31 - 1, (2**31 - 1, 0)),
            SplitReadEvidence("chrUn_KI270742v1", 2**31 - 1, False, 0, "s1"),
            BafEvidence("chrM", 1, 1.0, "sample.with.dots"),
        ],
    )
    def test_encoded_records_decode_unchanged(self, record: object) -> None:
        """Test that decoding an encoded record returns an equal record."""
        codec = codec_for_type(type(record))
        assert codec.decode(encode(record)) == record  # type: ignore[arg-type]


class TestLocusAndHeader:
    """Test locus extraction and header detection."""

    def test_point_locus(self) -> None:
        """Test that point evidence has a single-base locus."""
        assert SplitReadEvidenceCodec().locus("chr1\t99\tleft\t4\ts1") == ("chr1", 100, 100)

    def test_depth_locus(self) -> None:
        """Test that depth loci span the bin."""
        assert DepthEvidenceCodec().locus("chr1\t100\t200\t5") == ("chr1", 101, 200)

    def test_locus_of_garbage(self) -> None:
        """Test that a line without coordinates raises MalformedRecordError."""
        with pytest.raises(MalformedRecordError):
            SplitReadEvidenceCodec().locus("garbage")

    def test_comment_header(self) -> None:
        """Test that a line starting with '#' is a header."""
        assert DepthEvidenceCodec().is_column_header("#Chr\tStart\tEnd\ts1\ts2")

    def test_column_name_header(self) -> None:
        """Test that a line with a non-numeric start column is a header."""
        assert BafEvidenceCodec().is_column_header("contig\tstart\tend\tsample\tvalue")

    def test_record_is_not_header(self) -> None:
        """Test that a record line is not mistaken for a header."""
        assert not BafEvidenceCodec().is_column_header("chr1\t10\t0.5\ts1")


class TestRegistry:
    """Test the supported evidence type registry."""

    def test_exactly_four_supported_types(self) -> None:
        """Test the registered evidence kinds."""
        assert SUPPORTED_EVIDENCE_TYPES == {
            BafEvidence,
            DepthEvidence,
            DiscordantPairEvidence,
            SplitReadEvidence,
        }

    def test_bed_is_not_supported(self) -> None:
        """Test that a resolvable but unregistered type is rejected."""
        assert not is_supported(BedFeature)
        with pytest.raises(ConfigurationError, match="Unsupported record type BedFeature"):
            require_supported(BedFeature)

    def test_subclass_is_not_supported(self) -> None:
        """Test that only exact registered classes are accepted."""

        class CustomSplitRead(SplitReadEvidence):
            __slots__ = ()

        assert not is_supported(CustomSplitRead)

    def test_supported_type_passes(self) -> None:
        """Test that a registered type passes the check."""
        require_supported(SplitReadEvidence)
