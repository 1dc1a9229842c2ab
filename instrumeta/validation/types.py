# instrumeta/validation/types.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ValidationIssue:
    """A validation error; ``kind`` is a stable machine-readable code."""

    field: str
    message: str
    kind: str


@dataclass(frozen=True)
class ValidationWarning:
    field: str
    message: str
    suggestions: List[str] = field(default_factory=list)


@dataclass
class QualityScore:
    """Heuristic quality sub-scores, each between 0 and 100."""

    completeness: float
    consistency: float
    richness: float
    interoperability: float
    details: List[str] = field(default_factory=list)

    @property
    def overall(self) -> float:
        return (
            self.completeness
            + self.consistency
            + self.richness
            + self.interoperability
        ) / 4


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)
    score: Optional[QualityScore] = None

    def add_error(self, field_name: str, message: str, kind: str) -> None:
        self.valid = False
        self.errors.append(ValidationIssue(field_name, message, kind))

    def add_warning(
        self, field_name: str, message: str, suggestions: Optional[List[str]] = None
    ) -> None:
        self.warnings.append(ValidationWarning(field_name, message, suggestions or []))

    def errors_for(self, field_name: str) -> List[ValidationIssue]:
        return [error for error in self.errors if error.field == field_name]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "valid": self.valid,
            "errors": [
                {"field": e.field, "message": e.message, "type": e.kind}
                for e in self.errors
            ],
            "warnings": [
                {"field": w.field, "message": w.message, "suggestions": w.suggestions}
                for w in self.warnings
            ],
        }
        if self.score is not None:
            result["score"] = {
                "overall": self.score.overall,
                "completeness": self.score.completeness,
                "consistency": self.score.consistency,
                "richness": self.score.richness,
                "interoperability": self.score.interoperability,
                "details": list(self.score.details),
            }
        return result
