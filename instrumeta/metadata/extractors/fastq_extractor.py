# instrumeta/metadata/extractors/fastq_extractor.py
import gzip
import io
import logging
import os
import re
import zlib
from pathlib import PurePath
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Tuple

import numpy as np

from ...core.base_extractor import BaseExtractor
from ...core.exceptions import FormatError
from ..types import NormalizedMetadata, SequencingMetadata

logger = logging.getLogger(__name__)

# Statistics are computed from at most this many leading records
FASTQ_SAMPLE_SIZE = 10_000
PHRED_OFFSET = 33

# Evaluated in order, first match wins
PAIRED_END_PATTERNS: Tuple[Tuple["re.Pattern", str], ...] = tuple(
    (re.compile(pattern), read_pair)
    for pattern, read_pair in (
        (r"[._-]r1[._-]", "R1"),
        (r"[._-]r2[._-]", "R2"),
        (r"[._-]r1\.", "R1"),
        (r"[._-]r2\.", "R2"),
        (r"[._-]r1_", "R1"),
        (r"[._-]r2_", "R2"),
        (r"[._-]1\.f(ast)?q", "1"),
        (r"[._-]2\.f(ast)?q", "2"),
        (r"\.1\.f(ast)?q", "1"),
        (r"\.2\.f(ast)?q", "2"),
        (r"_1\.f(ast)?q", "1"),
        (r"_2\.f(ast)?q", "2"),
    )
)


def detect_paired_end(file_name: str) -> Tuple[bool, Optional[str]]:
    """
    Guess the mate of a paired-end run from its file name.

    Args:
        file_name: File name or path; only the base name is inspected

    Returns:
        Tuple of (is_paired_end, read_pair) where read_pair is None for
        single-end files
    """
    base = PurePath(file_name).name.lower()
    for pattern, read_pair in PAIRED_END_PATTERNS:
        if pattern.search(base):
            return True, read_pair
    return False, None


class _ReadStats:
    def __init__(self):
        self.total_reads = 0
        self.total_bases = 0
        self.gc_count = 0
        self.min_read_length: Optional[int] = None
        self.max_read_length = 0
        self.quality_sum = 0
        self.quality_count = 0
        self.min_quality: Optional[int] = None
        self.max_quality = 0
        self.truncated = False

    def add(self, sequence: bytes, quality: bytes) -> None:
        length = len(sequence)
        self.total_reads += 1
        self.total_bases += length
        self.min_read_length = (
            length if self.min_read_length is None else min(self.min_read_length, length)
        )
        self.max_read_length = max(self.max_read_length, length)
        self.gc_count += self._gc(sequence)

        if length and len(quality) == length:
            scores = np.frombuffer(quality, dtype=np.uint8).astype(np.int64) - PHRED_OFFSET
            np.maximum(scores, 0, out=scores)
            self.quality_sum += int(scores.sum())
            self.quality_count += length
            low = int(scores.min())
            self.min_quality = low if self.min_quality is None else min(self.min_quality, low)
            self.max_quality = max(self.max_quality, int(scores.max()))

    @staticmethod
    def _gc(sequence: bytes) -> int:
        return (
            sequence.count(b"G")
            + sequence.count(b"C")
            + sequence.count(b"g")
            + sequence.count(b"c")
        )


class FastqExtractor(BaseExtractor):
    """Streaming FASTQ extractor computing read statistics over a bounded sample."""

    name = "fastq"
    schema_name = "fastq_v1"

    def supported_formats(self) -> List[str]:
        return [".fastq", ".fq", ".fastq.gz", ".fq.gz"]

    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        is_gzipped = file_name.lower().endswith(".gz")
        fields: Dict[str, Any] = {
            "format": "FASTQ",
            "file_name": file_name,
            "compression": "gzip" if is_gzipped else "none",
        }
        file_size = self._stream_size(stream)
        if file_size is not None:
            fields["file_size"] = file_size

        is_paired, read_pair = detect_paired_end(file_name)
        fields["is_paired_end"] = is_paired
        if is_paired:
            fields["read_pair"] = read_pair

        stats = self._read_stats(stream, file_name, is_gzipped)
        fields.update(self._summarize(stats))
        fields["instrument_type"] = "sequencing"
        fields["data_type"] = "nucleotide_sequence"

        return self._build_metadata(
            fields, sequencing=SequencingMetadata.from_fields(fields)
        )

    def _read_stats(self, stream, file_name: str, is_gzipped: bool) -> _ReadStats:
        if is_gzipped:
            if isinstance(stream, io.TextIOBase):
                raise FormatError(file_name, "gzip input requires a binary stream")
            gz_stream = gzip.GzipFile(fileobj=stream, mode="rb")
            try:
                return self._parse_records(self._lines(gz_stream), file_name)
            except (OSError, EOFError, zlib.error) as e:
                raise FormatError(file_name, f"corrupt gzip data: {e}") from e
            finally:
                # Leaves the caller's stream open
                gz_stream.close()
        return self._parse_records(self._lines(stream), file_name)

    @staticmethod
    def _lines(stream) -> Iterator[bytes]:
        text_mode = isinstance(stream, io.TextIOBase)
        for line in stream:
            if text_mode:
                line = line.encode("utf-8", errors="replace")
            yield line.rstrip(b"\r\n")

    def _parse_records(self, lines: Iterator[bytes], file_name: str) -> _ReadStats:
        stats = _ReadStats()
        sequence = b""
        for line_number, line in enumerate(lines, start=1):
            position = line_number % 4
            if position == 1:
                if not line.startswith(b"@"):
                    raise FormatError(
                        file_name,
                        f"invalid FASTQ format: line {line_number} should start "
                        f"with '@', got {line[:40]!r}",
                    )
            elif position == 2:
                sequence = line
            elif position == 3:
                if not line.startswith(b"+"):
                    raise FormatError(
                        file_name,
                        f"invalid FASTQ format: line {line_number} should start "
                        f"with '+', got {line[:40]!r}",
                    )
            else:
                stats.add(sequence, line)
                if stats.total_reads >= FASTQ_SAMPLE_SIZE:
                    # Trailing blank lines are not further records
                    stats.truncated = any(rest.strip() for rest in lines)
                    break

        if stats.total_reads == 0:
            raise FormatError(file_name, "no reads found in FASTQ file")
        if stats.truncated:
            logger.debug(
                f"{file_name}: statistics sampled from first {FASTQ_SAMPLE_SIZE} reads"
            )
        return stats

    @staticmethod
    def _summarize(stats: _ReadStats) -> Dict[str, Any]:
        summary: Dict[str, Any] = {
            "total_reads": stats.total_reads,
            "total_bases": stats.total_bases,
            "mean_read_length": stats.total_bases / stats.total_reads,
            "min_read_length": stats.min_read_length,
            "max_read_length": stats.max_read_length,
            "gc_content_percent": (
                stats.gc_count / stats.total_bases * 100 if stats.total_bases else 0.0
            ),
            "read_sample_limit": FASTQ_SAMPLE_SIZE,
            "read_sample_truncated": stats.truncated,
        }
        if stats.quality_count:
            summary["mean_quality_score"] = stats.quality_sum / stats.quality_count
            summary["min_quality_score"] = stats.min_quality
            summary["max_quality_score"] = stats.max_quality
        if stats.truncated:
            summary["extraction_note"] = (
                f"Statistics computed from the first {FASTQ_SAMPLE_SIZE} reads; "
                f"total_reads counts sampled reads only"
            )
        return summary

    @staticmethod
    def _stream_size(stream) -> Optional[int]:
        try:
            return os.fstat(stream.fileno()).st_size
        except (AttributeError, OSError):
            return None
