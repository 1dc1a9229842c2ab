from .czi_extractor import CziExtractor
from .fastq_extractor import FastqExtractor
from .generic_extractor import GenericExtractor
from .ome_tiff_extractor import OmeTiffExtractor
from .stub_extractor import FormatStubExtractor, default_stub_extractors

__all__ = [
    "CziExtractor",
    "FastqExtractor",
    "FormatStubExtractor",
    "GenericExtractor",
    "OmeTiffExtractor",
    "default_stub_extractors",
]
