# instrumeta/schema/model.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..core.exceptions import SchemaDefinitionError

FIELD_TYPES = ("string", "number", "integer", "boolean", "array", "object", "date")
TYPE_ALIASES = {"datetime": "date", "float": "number", "int": "integer", "bool": "boolean"}

# Keys that belong to the schema itself rather than to inline field definitions
SCHEMA_KEYS = {
    "schema_version",
    "version",
    "name",
    "description",
    "domain",
    "ontology_base",
    "extends",
    "required_fields",
    "fields",
    "validation",
    "ontology_mappings",
    "file_formats",
    "facets",
}


def _bound(value: Any, where: str) -> Optional[float]:
    # YAML reads exponents without a dot, such as 1e-3, as strings
    if value is None:
        return None
    if isinstance(value, bool):
        raise SchemaDefinitionError(f"'{where}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SchemaDefinitionError(
            f"'{where}' must be a number, got {value!r}"
        ) from None


@dataclass
class Range:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass
class FieldSchema:
    """Type and constraints of a single metadata field."""

    type: str = "string"
    required: bool = False
    required_if: Optional[str] = None
    default: Any = None
    description: str = ""
    examples: List[Any] = field(default_factory=list)
    vocabulary: List[str] = field(default_factory=list)
    pattern: Optional[str] = None
    units: Optional[str] = None
    range: Optional[Range] = None
    fields: Dict[str, "FieldSchema"] = field(default_factory=dict)
    items: Optional["FieldSchema"] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    auto: Optional[str] = None
    ontology: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "FieldSchema":
        if not isinstance(data, Mapping):
            raise SchemaDefinitionError(f"field '{path}' must be a mapping")

        field_type = str(data.get("type", "string")).lower()
        field_type = TYPE_ALIASES.get(field_type, field_type)
        if field_type not in FIELD_TYPES:
            raise SchemaDefinitionError(
                f"field '{path}' has unknown type '{data.get('type')}'"
            )

        range_data = data.get("range")
        value_range = None
        if range_data is not None:
            if not isinstance(range_data, Mapping):
                raise SchemaDefinitionError(f"field '{path}' range must be a mapping")
            value_range = Range(
                min=_bound(range_data.get("min"), f"{path}.range.min"),
                max=_bound(range_data.get("max"), f"{path}.range.max"),
            )

        items = data.get("items")
        return cls(
            type=field_type,
            required=bool(data.get("required", False)),
            required_if=data.get("required_if"),
            default=data.get("default"),
            description=data.get("description", ""),
            examples=list(data.get("examples") or []),
            vocabulary=[str(term) for term in data.get("vocabulary") or []],
            pattern=data.get("pattern"),
            units=data.get("units"),
            range=value_range,
            fields={
                name: cls.from_dict(spec, f"{path}.{name}" if path else name)
                for name, spec in (data.get("fields") or {}).items()
            },
            items=cls.from_dict(items, f"{path}[]") if items is not None else None,
            min_items=data.get("min_items"),
            max_items=data.get("max_items"),
            auto=data.get("auto"),
            ontology=data.get("ontology"),
        )


@dataclass
class ValidationRule:
    rule: str
    message: str
    field: Optional[str] = None


@dataclass
class Schema:
    """A named, versioned metadata schema, possibly extending others."""

    name: str
    version: str = "1.0"
    description: str = ""
    domain: str = ""
    ontology_base: Optional[str] = None
    extends: List[str] = field(default_factory=list)
    required_fields: List[str] = field(default_factory=list)
    fields: Dict[str, FieldSchema] = field(default_factory=dict)
    validation_rules: List[ValidationRule] = field(default_factory=list)
    ontology_mappings: Dict[str, str] = field(default_factory=dict)
    file_formats: Dict[str, List[str]] = field(default_factory=dict)
    facets: List[Dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        """
        Build a schema from a parsed YAML or JSON document.

        Field definitions may sit under a ``fields`` key or inline at the top
        level of the document.

        Args:
            data: Parsed schema document

        Returns:
            The schema, without inheritance applied

        Raises:
            SchemaDefinitionError: If the document is malformed
        """
        if not isinstance(data, Mapping):
            raise SchemaDefinitionError("schema document must be a mapping")
        name = data.get("name")
        if not name:
            raise SchemaDefinitionError("schema document has no name")

        raw_fields = dict(data.get("fields") or {})
        for key, value in data.items():
            if key not in SCHEMA_KEYS and isinstance(value, Mapping):
                raw_fields.setdefault(key, value)

        extends = data.get("extends") or []
        if isinstance(extends, str):
            extends = [extends]

        rules = []
        for index, rule in enumerate(data.get("validation") or []):
            if not isinstance(rule, Mapping) or "rule" not in rule:
                raise SchemaDefinitionError(
                    f"schema '{name}' validation rule {index} has no 'rule'"
                )
            rules.append(
                ValidationRule(
                    rule=str(rule["rule"]),
                    message=str(rule.get("message") or f"rule failed: {rule['rule']}"),
                    field=rule.get("field"),
                )
            )

        return cls(
            name=str(name),
            version=str(data.get("schema_version") or data.get("version") or "1.0"),
            description=data.get("description", ""),
            domain=data.get("domain", ""),
            ontology_base=data.get("ontology_base"),
            extends=[str(parent) for parent in extends],
            required_fields=[str(item) for item in data.get("required_fields") or []],
            fields={
                field_name: FieldSchema.from_dict(spec, field_name)
                for field_name, spec in raw_fields.items()
            },
            validation_rules=rules,
            ontology_mappings=dict(data.get("ontology_mappings") or {}),
            file_formats={
                key: list(value)
                for key, value in (data.get("file_formats") or {}).items()
            },
            facets=[dict(facet) for facet in data.get("facets") or []],
        )

    def required_names(self) -> List[str]:
        """Required list plus fields flagged ``required: true``, in order."""
        names = list(self.required_fields)
        names.extend(
            name
            for name, spec in self.fields.items()
            if spec.required and name not in names
        )
        return names
