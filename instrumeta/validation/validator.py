# instrumeta/validation/validator.py
import difflib
import logging
import re
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from ..core.exceptions import RuleEvaluationError, SchemaError, SchemaNotFoundError
from ..metadata.types import NormalizedMetadata
from ..schema.model import FieldSchema, Schema
from ..schema.resolver import SchemaResolver
from .quality import compute_quality_score, is_present
from .rules import ExpressionRuleEvaluator, RuleEvaluator
from .types import ValidationResult

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str):
        return False
    candidate = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        datetime.fromisoformat(candidate)
        return True
    except ValueError:
        pass
    try:
        date.fromisoformat(value)
        return True
    except ValueError:
        return False


def matches_type(value: Any, field_type: str) -> bool:
    if field_type == "string":
        return isinstance(value, str)
    if field_type == "number":
        return _is_number(value)
    if field_type == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (
            isinstance(value, float) and value.is_integer()
        )
    if field_type == "boolean":
        return isinstance(value, bool)
    if field_type == "array":
        return isinstance(value, (list, tuple))
    if field_type == "object":
        return isinstance(value, Mapping)
    if field_type == "date":
        return _is_date(value)
    return True


def suggest_terms(value: str, vocabulary: List[str], limit: int = 3) -> List[str]:
    """Closest vocabulary terms, case-insensitive matches first."""
    exact = [term for term in vocabulary if term.lower() == value.lower()]
    if exact:
        return exact[:limit]
    by_lower = {term.lower(): term for term in vocabulary}
    close = difflib.get_close_matches(value.lower(), list(by_lower), n=limit, cutoff=0.6)
    return [by_lower[term] for term in close]


class SchemaValidator:
    """
    Validates field maps against resolved schemas.

    Validation runs in three passes: required presence (including
    conditional ``required_if`` fields), per-field constraints and finally the
    schema's custom rules. A quality score is attached only when no error was
    found.
    """

    def __init__(
        self, resolver: SchemaResolver, rule_evaluator: Optional[RuleEvaluator] = None
    ):
        self.resolver = resolver
        self.rule_evaluator = rule_evaluator or ExpressionRuleEvaluator()

    def validate_metadata(
        self, metadata: NormalizedMetadata, schema_name: Optional[str] = None
    ) -> ValidationResult:
        return self.validate(metadata.fields, schema_name or metadata.schema_name)

    def validate(self, fields: Mapping[str, Any], schema_name: str) -> ValidationResult:
        result = ValidationResult()
        try:
            schema = self.resolver.resolve(schema_name)
        except SchemaNotFoundError:
            result.add_error(
                "schema", f"Schema not found: {schema_name}", "schema_not_found"
            )
            return result
        except SchemaError as e:
            result.add_error("schema", str(e), "invalid_schema")
            return result

        self._check_required(schema, fields, result)
        for name, value in fields.items():
            field_schema = schema.fields.get(name)
            if field_schema is None:
                result.add_warning(name, f"Field '{name}' not defined in schema")
                continue
            self._check_field(name, value, field_schema, result)
        self._check_rules(schema, fields, result)

        if result.valid:
            result.score = compute_quality_score(schema, fields)
        logger.debug(
            f"Validated against '{schema_name}': {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings"
        )
        return result

    def _check_required(
        self, schema: Schema, fields: Mapping[str, Any], result: ValidationResult
    ) -> None:
        for name in schema.required_names():
            if name not in fields:
                result.add_error(
                    name, f"Required field '{name}' is missing", "missing_field"
                )

        for name, field_schema in schema.fields.items():
            if not field_schema.required_if or name in fields:
                continue
            try:
                needed = self.rule_evaluator.evaluate(field_schema.required_if, fields)
            except RuleEvaluationError as e:
                result.add_error(name, str(e), "invalid_rule")
                continue
            if needed:
                result.add_error(
                    name,
                    f"Field '{name}' is required when {field_schema.required_if}",
                    "missing_field",
                )

    def _check_field(
        self, name: str, value: Any, spec: FieldSchema, result: ValidationResult
    ) -> None:
        if not matches_type(value, spec.type):
            result.add_error(
                name, f"Invalid type for '{name}': expected {spec.type}", "invalid_type"
            )
            return

        if spec.vocabulary and isinstance(value, str) and value not in spec.vocabulary:
            result.add_warning(
                name,
                f"Value '{value}' not in controlled vocabulary",
                suggest_terms(value, spec.vocabulary),
            )

        if spec.pattern and isinstance(value, str):
            try:
                matched = re.search(spec.pattern, value) is not None
            except re.error as e:
                result.add_error(
                    name, f"Invalid pattern {spec.pattern!r}: {e}", "invalid_pattern"
                )
            else:
                if not matched:
                    result.add_error(
                        name,
                        f"Value does not match pattern: {spec.pattern}",
                        "pattern_mismatch",
                    )

        if spec.range is not None and _is_number(value):
            low, high = spec.range.min, spec.range.max
            if (low is not None and value < low) or (high is not None and value > high):
                result.add_error(
                    name,
                    f"Value {value} out of range [{low}, {high}]",
                    "out_of_range",
                )

        if spec.type == "array":
            self._check_items(name, value, spec, result)
        elif spec.type == "object" and spec.fields:
            self._check_object(name, value, spec, result)

    def _check_items(
        self, name: str, value: Any, spec: FieldSchema, result: ValidationResult
    ) -> None:
        count = len(value)
        if spec.min_items is not None and count < spec.min_items:
            result.add_error(
                name, f"Expected at least {spec.min_items} items, got {count}",
                "invalid_length",
            )
        if spec.max_items is not None and count > spec.max_items:
            result.add_error(
                name, f"Expected at most {spec.max_items} items, got {count}",
                "invalid_length",
            )
        if spec.items is not None:
            for index, item in enumerate(value):
                self._check_field(f"{name}[{index}]", item, spec.items, result)

    def _check_object(
        self, name: str, value: Mapping[str, Any], spec: FieldSchema,
        result: ValidationResult,
    ) -> None:
        for child_name, child_spec in spec.fields.items():
            if child_spec.required and child_name not in value:
                result.add_error(
                    f"{name}.{child_name}",
                    f"Required field '{name}.{child_name}' is missing",
                    "missing_field",
                )
        for child_name, child_value in value.items():
            child_spec = spec.fields.get(child_name)
            if child_spec is None:
                result.add_warning(
                    f"{name}.{child_name}",
                    f"Field '{name}.{child_name}' not defined in schema",
                )
                continue
            self._check_field(f"{name}.{child_name}", child_value, child_spec, result)

    def _check_rules(
        self, schema: Schema, fields: Mapping[str, Any], result: ValidationResult
    ) -> None:
        for rule in schema.validation_rules:
            # Rules scoped to a field only apply once that field is filled in
            if rule.field and not is_present(fields.get(rule.field)):
                continue
            target = rule.field or "rule"
            try:
                holds = self.rule_evaluator.evaluate(rule.rule, fields)
            except RuleEvaluationError as e:
                result.add_error(target, str(e), "invalid_rule")
                continue
            if not holds:
                result.add_error(target, rule.message, "rule_failed")
