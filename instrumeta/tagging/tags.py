# instrumeta/tagging/tags.py
"""Projection of metadata onto the small flat tag sets object stores allow."""
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..metadata.types import NormalizedMetadata

logger = logging.getLogger(__name__)

MAX_TAGS = 10
MAX_KEY_LENGTH = 128
MAX_VALUE_LENGTH = 256

# Highest priority first; the first MAX_TAGS present fields become tags
PRIORITY_FIELDS = (
    "instrument_type",
    "format",
    "manufacturer",
    "instrument_model",
    "acquisition_date",
    "operator",
    "extractor_name",
    "schema_name",
    "data_type",
    "sample_id",
    "organism",
    "compression",
    "is_paired_end",
    "read_pair",
    "num_channels",
    "image_width",
    "image_height",
    "objective_magnification",
    "software_name",
    "software_version",
)

_INVALID_KEY_CHARS = re.compile(r"[^A-Za-z0-9.:/@_-]")
_INVALID_VALUE_CHARS = re.compile(r"[^A-Za-z0-9 .:/@+=_-]")


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


def sanitize_key(key: str) -> str:
    cleaned = _INVALID_KEY_CHARS.sub("", key.replace("_", "-"))
    return (cleaned or "unknown")[:MAX_KEY_LENGTH]


def sanitize_value(value: str) -> str:
    cleaned = _INVALID_VALUE_CHARS.sub("", value).strip()
    return (cleaned or "unknown")[:MAX_VALUE_LENGTH]


def _render(value: Any) -> Optional[str]:
    """String form of a scalar, or None for values that cannot be a tag."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        text = str(value)
        return text if text else None
    return None


def metadata_to_tags(
    metadata: Union[NormalizedMetadata, Mapping[str, Any]],
    priority_fields: Iterable[str] = PRIORITY_FIELDS,
) -> List[Tag]:
    """
    Choose at most MAX_TAGS fields by priority and sanitize them into tags.

    Missing, empty and nested values are skipped. Invalid characters are
    removed rather than rejected.
    """
    fields = metadata.fields if isinstance(metadata, NormalizedMetadata) else metadata
    tags: List[Tag] = []
    for name in priority_fields:
        if len(tags) >= MAX_TAGS:
            break
        rendered = _render(fields.get(name))
        if rendered is None:
            continue
        tags.append(Tag(sanitize_key(name), sanitize_value(rendered)))
    logger.debug(f"Projected {len(tags)} tags from {len(fields)} fields")
    return tags


def tags_to_fields(tags: Iterable[Tag]) -> Dict[str, str]:
    """Reverse key mapping; values stay strings, so the round trip is lossy."""
    return {tag.key.replace("-", "_").lower(): tag.value for tag in tags}


def to_tag_set(tags: Iterable[Tag]) -> List[Dict[str, str]]:
    """Tags in the ``[{"Key": ..., "Value": ...}]`` shape storage SDKs expect."""
    return [{"Key": tag.key, "Value": tag.value} for tag in tags]


def from_tag_set(tag_set: Iterable[Mapping[str, Any]]) -> List[Tag]:
    return [
        Tag(str(item["Key"]), str(item["Value"]))
        for item in tag_set
        if item.get("Key") is not None and item.get("Value") is not None
    ]
