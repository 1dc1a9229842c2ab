"""
Tests for the streaming FASTQ extractor.
"""

import gzip
import io

import pytest

from instrumeta.core.exceptions import FormatError
from instrumeta.metadata.extractors.fastq_extractor import (
    FASTQ_SAMPLE_SIZE,
    FastqExtractor,
    detect_paired_end,
)
from tests.builders import fastq_record


@pytest.fixture
def extractor():
    return FastqExtractor()


def extract_text(extractor, text, name="sample.fastq"):
    return extractor.extract_from_stream(io.BytesIO(text.encode("ascii")), name)


class TestFastqStatistics:
    """Read statistics over the sampled records."""

    def test_read_lengths(self, extractor, fastq_text):
        metadata = extract_text(extractor, fastq_text)

        assert metadata["total_reads"] == 3
        assert metadata["total_bases"] == 98
        assert metadata["mean_read_length"] == pytest.approx(98 / 3)
        assert metadata["min_read_length"] == 14
        assert metadata["max_read_length"] == 60

    def test_gc_content(self, extractor):
        metadata = extract_text(extractor, fastq_record("r1", "GCGCATAA"))
        assert metadata["gc_content_percent"] == 50.0

    def test_gc_content_is_case_insensitive(self, extractor):
        metadata = extract_text(extractor, fastq_record("r1", "gcGCatAA"))
        assert metadata["gc_content_percent"] == 50.0

    def test_gc_content_across_reads(self, extractor, fastq_text):
        metadata = extract_text(extractor, fastq_text)
        assert metadata["gc_content_percent"] == pytest.approx(42 / 98 * 100)

    def test_quality_scores(self, extractor):
        # '!' is Phred 0, '5' is 20 and 'I' is 40
        metadata = extract_text(extractor, fastq_record("r1", "ACGT", "!5II"))

        assert metadata["mean_quality_score"] == pytest.approx(25.0)
        assert metadata["min_quality_score"] == 0
        assert metadata["max_quality_score"] == 40

    def test_quality_below_offset_floors_at_zero(self, extractor):
        metadata = extract_text(extractor, fastq_record("r1", "AC", "  "))
        assert metadata["min_quality_score"] == 0
        assert metadata["mean_quality_score"] == 0.0

    def test_mismatched_quality_length_is_ignored(self, extractor):
        text = fastq_record("r1", "ACGT", "II") + fastq_record("r2", "AC", "!!")
        metadata = extract_text(extractor, text)

        assert metadata["total_reads"] == 2
        assert metadata["mean_quality_score"] == 0.0
        assert metadata["max_quality_score"] == 0

    def test_no_usable_quality(self, extractor):
        metadata = extract_text(extractor, fastq_record("r1", "ACGT", "I"))
        assert "mean_quality_score" not in metadata

    def test_fixed_fields(self, extractor, fastq_text):
        metadata = extract_text(extractor, fastq_text)

        assert metadata["format"] == "FASTQ"
        assert metadata["extractor_name"] == "fastq"
        assert metadata["schema_name"] == "fastq_v1"
        assert metadata["instrument_type"] == "sequencing"
        assert metadata["data_type"] == "nucleotide_sequence"
        assert metadata["compression"] == "none"

    def test_crlf_line_endings(self, extractor, fastq_text):
        metadata = extract_text(extractor, fastq_text.replace("\n", "\r\n"))
        assert metadata["total_bases"] == 98

    def test_sequencing_view(self, extractor, fastq_text):
        sequencing = extract_text(extractor, fastq_text).sequencing
        assert sequencing.total_reads == 3
        assert sequencing.max_read_length == 60
        assert sequencing.sample_truncated is False


class TestFastqSampling:
    """Bounded sampling of large inputs."""

    def test_stops_at_sample_size(self, extractor):
        text = fastq_record("r", "ACGT") * (FASTQ_SAMPLE_SIZE + 5)
        metadata = extract_text(extractor, text)

        assert metadata["total_reads"] == FASTQ_SAMPLE_SIZE
        assert metadata["total_bases"] == FASTQ_SAMPLE_SIZE * 4
        assert metadata["read_sample_limit"] == FASTQ_SAMPLE_SIZE
        assert metadata["read_sample_truncated"] is True
        assert str(FASTQ_SAMPLE_SIZE) in metadata["extraction_note"]

    def test_exact_sample_size_is_not_truncated(self, extractor):
        text = fastq_record("r", "ACGT") * FASTQ_SAMPLE_SIZE
        metadata = extract_text(extractor, text)

        assert metadata["total_reads"] == FASTQ_SAMPLE_SIZE
        assert metadata["read_sample_truncated"] is False
        assert "extraction_note" not in metadata

    def test_trailing_blank_lines_are_not_truncation(self, extractor):
        text = fastq_record("r", "ACGT") * FASTQ_SAMPLE_SIZE + "\n\r\n"
        metadata = extract_text(extractor, text)

        assert metadata["read_sample_truncated"] is False
        assert "extraction_note" not in metadata

    def test_records_after_bound_are_not_validated(self, extractor):
        text = fastq_record("r", "ACGT") * FASTQ_SAMPLE_SIZE + "garbage\n"
        metadata = extract_text(extractor, text)
        assert metadata["read_sample_truncated"] is True


class TestFastqErrors:
    def test_missing_at_sign(self, extractor):
        with pytest.raises(FormatError, match="line 1"):
            extract_text(extractor, "r1\nACGT\n+\nIIII\n")

    def test_missing_plus_sign(self, extractor):
        with pytest.raises(FormatError, match="line 3"):
            extract_text(extractor, "@r1\nACGT\n-\nIIII\n")

    def test_error_in_second_record(self, extractor):
        text = fastq_record("r1", "ACGT") + "r2\nACGT\n+\nIIII\n"
        with pytest.raises(FormatError, match="line 5"):
            extract_text(extractor, text)

    def test_empty_input(self, extractor):
        with pytest.raises(FormatError, match="no reads"):
            extract_text(extractor, "")

    def test_partial_record_only(self, extractor):
        with pytest.raises(FormatError, match="no reads"):
            extract_text(extractor, "@r1\nACGT\n")

    def test_corrupt_gzip(self, extractor):
        with pytest.raises(FormatError, match="gzip"):
            extractor.extract_from_stream(io.BytesIO(b"not gzip data"), "x.fastq.gz")


class TestFastqInputs:
    def test_gzip_file(self, extractor, temp_dir, fastq_text):
        path = temp_dir / "sample_R1_001.fastq.gz"
        with gzip.open(path, "wt") as f:
            f.write(fastq_text)

        metadata = extractor.extract(path)

        assert metadata["compression"] == "gzip"
        assert metadata["total_bases"] == 98
        assert metadata["is_paired_end"] is True
        assert metadata["read_pair"] == "R1"
        assert metadata["file_size"] == path.stat().st_size

    def test_plain_file_has_size(self, extractor, fastq_file):
        metadata = extractor.extract(fastq_file)
        assert metadata["file_size"] == fastq_file.stat().st_size
        assert metadata["file_name"] == "sample.fastq"

    def test_text_stream(self, extractor, fastq_text):
        metadata = extractor.extract_from_stream(io.StringIO(fastq_text), "s.fq")
        assert metadata["total_reads"] == 3
        assert "file_size" not in metadata

    def test_caller_stream_stays_open(self, extractor, fastq_text):
        stream = io.BytesIO(gzip.compress(fastq_text.encode("ascii")))
        extractor.extract_from_stream(stream, "s.fq.gz")
        assert not stream.closed

    def test_determinism(self, extractor, fastq_text):
        assert extract_text(extractor, fastq_text) == extract_text(
            extractor, fastq_text
        )


class TestPairedEndDetection:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("sample_R1_001.fastq.gz", (True, "R1")),
            ("sample_R2_001.fastq.gz", (True, "R2")),
            ("sample.R1.fastq", (True, "R1")),
            ("sample-r2.fq", (True, "R2")),
            ("sample_1.fastq", (True, "1")),
            ("sample.2.fq.gz", (True, "2")),
            ("/data/run1/SAMPLE_R2_001.FASTQ", (True, "R2")),
            ("sample.fastq", (False, None)),
            ("r1sample.fastq", (False, None)),
        ],
    )
    def test_detect(self, name, expected):
        assert detect_paired_end(name) == expected

    def test_single_end_has_no_read_pair(self, extractor, fastq_text):
        metadata = extract_text(extractor, fastq_text, "sample.fastq")
        assert metadata["is_paired_end"] is False
        assert "read_pair" not in metadata


class TestFastqCanHandle:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("a.fastq", True),
            ("a.FQ", True),
            ("a.fastq.gz", True),
            ("a.fq.gz", True),
            ("a.gz", False),
            ("a.fasta", False),
        ],
    )
    def test_can_handle(self, extractor, name, expected):
        assert extractor.can_handle(name) is expected
