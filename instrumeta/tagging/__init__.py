from .tags import (
    MAX_KEY_LENGTH,
    MAX_TAGS,
    MAX_VALUE_LENGTH,
    PRIORITY_FIELDS,
    Tag,
    from_tag_set,
    metadata_to_tags,
    sanitize_key,
    sanitize_value,
    tags_to_fields,
    to_tag_set,
)

__all__ = [
    "MAX_KEY_LENGTH",
    "MAX_TAGS",
    "MAX_VALUE_LENGTH",
    "PRIORITY_FIELDS",
    "Tag",
    "from_tag_set",
    "metadata_to_tags",
    "sanitize_key",
    "sanitize_value",
    "tags_to_fields",
    "to_tag_set",
]
