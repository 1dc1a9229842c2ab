# instrumeta/metadata/extractors/xml_helpers.py
"""Small lxml helpers shared by the XML-bearing extractors."""
import logging
from datetime import datetime
from typing import Optional

from lxml import etree

logger = logging.getLogger(__name__)


def safe_parser() -> etree.XMLParser:
    # Embedded metadata is untrusted input
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def local_name(element) -> str:
    return etree.QName(element).localname


def text(element, path: str) -> Optional[str]:
    if element is None:
        return None
    found = element.find(path)
    if found is None or found.text is None:
        return None
    value = found.text.strip()
    return value or None


def attr(element, name: str) -> Optional[str]:
    if element is None:
        return None
    value = element.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def to_float(raw: Optional[str], field_name: str) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value {raw!r} for {field_name}")
        return None


def to_int(raw: Optional[str], field_name: str) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        number = to_float(raw, field_name)
        if number is None or not number.is_integer():
            return None
        return int(number)


def normalize_timestamp(raw: str) -> str:
    """ISO-8601 timestamps are normalized; anything else is kept verbatim."""
    candidate = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return raw
    if parsed.tzinfo is None:
        return raw
    rendered = parsed.isoformat()
    if rendered.endswith("+00:00"):
        rendered = rendered[:-6] + "Z"
    return rendered
