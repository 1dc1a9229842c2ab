"""
Common test fixtures for instrumeta tests.
"""

import tempfile
from pathlib import Path

import pytest

from tests.builders import (
    CZI_XML,
    OME_XML,
    build_czi,
    build_ome_tiff,
    czi_segment,
    fastq_record,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def czi_bytes():
    """A CZI container with a directory segment followed by the metadata."""
    return build_czi(
        czi_segment("ZISRAWDIRECTORY", b"\x01" * 64),
        czi_segment("ZISRAWMETADATA", CZI_XML, allocated=len(CZI_XML) + 32),
    )


@pytest.fixture
def czi_file(temp_dir, czi_bytes):
    path = temp_dir / "experiment.czi"
    path.write_bytes(czi_bytes)
    return path


@pytest.fixture
def fastq_text():
    """Three reads of 60, 24 and 14 bases carrying 42 G/C bases."""
    return (
        fastq_record("read1", "ACGT" * 15)
        + fastq_record("read2", "GCGCATAA" * 3)
        + fastq_record("read3", "AAAAAAAAAATTTT")
    )


@pytest.fixture
def fastq_file(temp_dir, fastq_text):
    path = temp_dir / "sample.fastq"
    path.write_text(fastq_text)
    return path


@pytest.fixture
def ome_tiff_bytes():
    return build_ome_tiff(OME_XML)
