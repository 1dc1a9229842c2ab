# instrumeta/validation/quality.py
from typing import Any, Mapping

from ..schema.model import Schema
from .types import QualityScore


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict)) or hasattr(value, "keys"):
        return len(value) > 0
    return True


def _percent(part: int, whole: int, empty: float) -> float:
    return part / whole * 100 if whole else empty


def compute_quality_score(schema: Schema, fields: Mapping[str, Any]) -> QualityScore:
    """
    Score how well ``fields`` use ``schema``.

    Completeness is the share of schema fields that are filled in. The other
    three sub-scores are heuristics: consistency counts vocabulary-conformant
    values, richness counts filled optional fields and interoperability counts
    filled fields carrying an ontology term.
    """
    present = [name for name in schema.fields if is_present(fields.get(name))]
    required = set(schema.required_names())
    optional = [name for name in schema.fields if name not in required]
    optional_present = [name for name in optional if name in present]

    vocabulary_fields = [name for name in present if schema.fields[name].vocabulary]
    conformant = [
        name
        for name in vocabulary_fields
        if str(fields[name]) in schema.fields[name].vocabulary
    ]

    mapped = [
        name
        for name in present
        if schema.fields[name].ontology or name in schema.ontology_mappings
    ]

    details = [
        f"{len(present)} of {len(schema.fields)} schema fields present",
        f"{len(optional_present)} of {len(optional)} optional fields present",
    ]
    if vocabulary_fields:
        details.append(
            f"{len(conformant)} of {len(vocabulary_fields)} controlled values "
            f"use the vocabulary"
        )
    details.append(f"{len(mapped)} present fields carry an ontology term")

    return QualityScore(
        completeness=_percent(len(present), len(schema.fields), 100.0),
        consistency=_percent(len(conformant), len(vocabulary_fields), 100.0),
        richness=_percent(len(optional_present), len(optional), 100.0),
        interoperability=_percent(len(mapped), len(present), 0.0),
        details=details,
    )
