from .types import (
    FileDescriptor,
    MicroscopyChannel,
    MicroscopyMetadata,
    NormalizedMetadata,
    SequencingMetadata,
)

__all__ = [
    "FileDescriptor",
    "MicroscopyChannel",
    "MicroscopyMetadata",
    "NormalizedMetadata",
    "SequencingMetadata",
]
