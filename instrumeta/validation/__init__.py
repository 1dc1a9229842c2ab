from .quality import compute_quality_score
from .readiness import ReadinessConfig, ReadinessResult, ReadinessValidator, quality_level
from .rules import ExpressionRuleEvaluator, RuleEvaluator
from .types import QualityScore, ValidationIssue, ValidationResult, ValidationWarning
from .validator import SchemaValidator

__all__ = [
    "ExpressionRuleEvaluator",
    "QualityScore",
    "ReadinessConfig",
    "ReadinessResult",
    "ReadinessValidator",
    "RuleEvaluator",
    "SchemaValidator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationWarning",
    "compute_quality_score",
    "quality_level",
]
