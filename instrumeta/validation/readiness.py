# instrumeta/validation/readiness.py
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, List, Mapping, Optional

from .quality import is_present
from .types import ValidationIssue, ValidationWarning

logger = logging.getLogger(__name__)

PLACEHOLDER_CREATORS = ("Unknown Creator", "Unknown")
PLACEHOLDER_PUBLISHER = "Unknown Publisher"
MIN_PUBLICATION_YEAR = 1900
SHORT_DESCRIPTION_LENGTH = 50

DATACITE_RESOURCE_TYPES = frozenset(
    [
        "Audiovisual",
        "Book",
        "BookChapter",
        "Collection",
        "ComputationalNotebook",
        "ConferencePaper",
        "ConferenceProceeding",
        "DataPaper",
        "Dataset",
        "Dissertation",
        "Event",
        "Image",
        "Instrument",
        "InteractiveResource",
        "Journal",
        "JournalArticle",
        "Model",
        "OutputManagementPlan",
        "PeerReview",
        "PhysicalObject",
        "Preprint",
        "Report",
        "Software",
        "Sound",
        "Standard",
        "StudyRegistration",
        "Text",
        "Workflow",
        "Other",
    ]
)

# (field, points) awarded when a list-valued optional field is non-empty
LIST_BONUSES = (
    ("related_identifiers", 3.0),
    ("dates", 2.0),
    ("contributors", 2.0),
    ("funding_references", 3.0),
)


@dataclass
class ReadinessConfig:
    require_real_authors: bool = True
    require_description: bool = True
    require_license: bool = False
    min_quality_score: float = 60.0
    current_year: Callable[[], int] = field(default=lambda: date.today().year)


@dataclass(frozen=True)
class Creator:
    name: str
    given_name: str = ""
    family_name: str = ""
    orcid: str = ""
    affiliation: str = ""

    @classmethod
    def from_value(cls, value: Any) -> "Creator":
        if isinstance(value, Mapping):
            return cls(
                name=str(value.get("name") or "").strip(),
                given_name=str(value.get("given_name") or ""),
                family_name=str(value.get("family_name") or ""),
                orcid=str(value.get("orcid") or ""),
                affiliation=str(value.get("affiliation") or ""),
            )
        return cls(name=str(value or "").strip())

    @property
    def is_placeholder(self) -> bool:
        return self.name in PLACEHOLDER_CREATORS


@dataclass
class ReadinessResult:
    is_ready: bool = True
    score: float = 0.0
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)

    def error(self, field_name: str, message: str, kind: str = "missing_field") -> None:
        self.errors.append(ValidationIssue(field_name, message, kind))

    def warn(self, field_name: str, message: str) -> None:
        self.warnings.append(ValidationWarning(field_name, message))

    def errors_for(self, field_name: str) -> List[ValidationIssue]:
        return [issue for issue in self.errors if issue.field == field_name]


def quality_level(score: float) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Moderate"
    if score >= 20:
        return "Poor"
    return "Very Poor"


class ReadinessValidator:
    """
    Scores whether a metadata field map is complete enough to publish.

    Five required categories are worth 60 points together and recommended
    fields add up to 40 more. Every error costs 10 points and the score is
    clamped to 0..100. A map is ready when it has no errors and reaches
    ``min_quality_score``.
    """

    def __init__(self, config: Optional[ReadinessConfig] = None):
        self.config = config or ReadinessConfig()

    def validate(self, fields: Mapping[str, Any]) -> ReadinessResult:
        result = ReadinessResult()
        creators = self._creators(fields)
        self._check_required(fields, creators, result)
        self._check_optional(fields, creators, result)

        result.score = self._score(fields, creators, result)
        if result.errors:
            result.is_ready = False
        if result.score < self.config.min_quality_score:
            result.is_ready = False
            result.warn(
                "score",
                f"Quality score {result.score:.1f} is below minimum threshold "
                f"{self.config.min_quality_score:.1f}",
            )
        logger.debug(
            f"Readiness score {result.score:.1f} with {len(result.errors)} errors"
        )
        return result

    def recommendations(self, result: ReadinessResult) -> List[str]:
        lines: List[str] = []
        if result.errors:
            lines.append("Fix all errors before publishing:")
            lines.extend(f"  - {issue.message}" for issue in result.errors)

        if result.score < 40:
            lines.extend(
                [
                    "Metadata quality is low. Consider adding:",
                    "  - Complete author information (names, ORCIDs, affiliations)",
                    "  - Detailed description (at least 100 words)",
                    "  - Keywords for discoverability",
                    "  - License information",
                    "  - Related identifiers (publications, datasets)",
                ]
            )
        elif result.score < 60:
            lines.extend(
                [
                    "Metadata quality is moderate. To improve:",
                    "  - Add missing recommended fields",
                    "  - Enhance description with methods and context",
                    "  - Include author ORCIDs for proper attribution",
                ]
            )
        elif result.score < 80:
            lines.extend(
                [
                    "Metadata quality is good. Optional improvements:",
                    "  - Add funding information",
                    "  - Include temporal/spatial context if applicable",
                    "  - Link to related publications",
                ]
            )
        else:
            lines.append("Metadata quality is excellent. Ready for publication.")
        return lines

    @staticmethod
    def _creators(fields: Mapping[str, Any]) -> List[Creator]:
        raw = fields.get("creators")
        if raw is None:
            raw = fields.get("authors")
        if raw is None:
            return []
        if not isinstance(raw, (list, tuple)):
            raw = [raw]
        return [Creator.from_value(item) for item in raw]

    def _publication_year(self, fields: Mapping[str, Any]) -> Optional[int]:
        value = fields.get("publication_year")
        if isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def _year_in_range(self, year: Optional[int]) -> bool:
        return (
            year is not None
            and MIN_PUBLICATION_YEAR <= year <= self.config.current_year() + 1
        )

    def _check_required(
        self, fields: Mapping[str, Any], creators: List[Creator], result: ReadinessResult
    ) -> None:
        if not creators:
            result.error("creators", "at least one creator is required")
            result.missing.append("creators")
        else:
            has_valid = False
            for creator in creators:
                if not creator.name:
                    result.error("creators", "creator name cannot be empty")
                    continue
                if self.config.require_real_authors and creator.is_placeholder:
                    result.error(
                        "creators",
                        f"creator must be specified (currently set to "
                        f"'{creator.name}')",
                        "placeholder_value",
                    )
                    result.missing.append("real creator names")
                    continue
                has_valid = True
            if has_valid:
                result.present.append("creators")

        title = str(fields.get("title") or "").strip()
        if not title:
            result.error("title", "title is required")
            result.missing.append("title")
        else:
            result.present.append("title")
            lowered = title.lower()
            if "untitled" in lowered or "unnamed" in lowered:
                result.warn(
                    "title",
                    "title appears to be a placeholder, consider providing a "
                    "descriptive title",
                )

        publisher = str(fields.get("publisher") or "").strip()
        if not publisher:
            result.error("publisher", "publisher is required")
            result.missing.append("publisher")
        else:
            result.present.append("publisher")
            if publisher == PLACEHOLDER_PUBLISHER:
                result.warn(
                    "publisher",
                    f"publisher should be specified (currently set to "
                    f"'{PLACEHOLDER_PUBLISHER}')",
                )

        year = self._publication_year(fields)
        if not is_present(fields.get("publication_year")):
            result.error("publication_year", "publication year is required")
            result.missing.append("publication_year")
        elif not self._year_in_range(year):
            result.error(
                "publication_year",
                f"publication year {fields.get('publication_year')} is outside valid "
                f"range ({MIN_PUBLICATION_YEAR}-{self.config.current_year() + 1})",
                "out_of_range",
            )
        else:
            result.present.append("publication_year")

        resource_type = str(fields.get("resource_type") or "").strip()
        if not resource_type:
            result.error("resource_type", "resource type is required")
            result.missing.append("resource_type")
        else:
            result.present.append("resource_type")
            if resource_type not in DATACITE_RESOURCE_TYPES:
                result.warn(
                    "resource_type",
                    f"resource type '{resource_type}' may not be in the DataCite "
                    f"controlled vocabulary",
                )

    def _check_optional(
        self, fields: Mapping[str, Any], creators: List[Creator], result: ReadinessResult
    ) -> None:
        description = str(fields.get("description") or "")
        if not description:
            result.missing.append("description")
            if self.config.require_description:
                result.error("description", "description is required")
            else:
                result.warn(
                    "description", "description is recommended for better discoverability"
                )
        else:
            result.present.append("description")
            if len(description) < SHORT_DESCRIPTION_LENGTH:
                result.warn(
                    "description", "description is very short, consider adding more detail"
                )

        if not is_present(fields.get("license")):
            result.missing.append("license")
            if self.config.require_license:
                result.error("license", "license is required")
            else:
                result.warn("license", "license/rights information is recommended")
        else:
            result.present.append("license")

        url = str(fields.get("url") or "")
        if not url:
            result.missing.append("url")
            result.warn("url", "landing page URL is recommended")
        else:
            result.present.append("url")
            if not url.startswith(("http://", "https://")):
                result.warn("url", "URL should start with http:// or https://")

        if not is_present(fields.get("keywords")):
            result.missing.append("keywords")
            result.warn("keywords", "keywords/subjects are recommended for discoverability")
        else:
            result.present.append("keywords")

        for name in (
            "version",
            "language",
            "dates",
            "related_identifiers",
            "contributors",
            "funding_references",
            "geo_locations",
        ):
            if is_present(fields.get(name)):
                result.present.append(name)
            else:
                result.missing.append(name)

        if not any(creator.orcid for creator in creators):
            result.warn("creators", "author ORCIDs are recommended for attribution")
        if not any(creator.affiliation for creator in creators):
            result.warn("creators", "author affiliations are recommended")

    def _score(
        self, fields: Mapping[str, Any], creators: List[Creator], result: ReadinessResult
    ) -> float:
        score = 0.0
        if creators and not any(creator.is_placeholder for creator in creators):
            score += 15.0
        if str(fields.get("title") or "").strip():
            score += 10.0
        publisher = str(fields.get("publisher") or "").strip()
        if publisher and publisher != PLACEHOLDER_PUBLISHER:
            score += 10.0
        if self._year_in_range(self._publication_year(fields)):
            score += 10.0
        if str(fields.get("resource_type") or "").strip():
            score += 15.0

        description = str(fields.get("description") or "")
        if len(description) >= SHORT_DESCRIPTION_LENGTH:
            score += 10.0
        elif description:
            score += 5.0
        if is_present(fields.get("license")):
            score += 5.0
        if str(fields.get("url") or "").startswith(("http://", "https://")):
            score += 5.0

        keywords = fields.get("keywords")
        if is_present(keywords):
            score += 5.0
            if isinstance(keywords, (list, tuple)) and len(keywords) >= 5:
                score += 2.0

        for name, points in LIST_BONUSES:
            if is_present(fields.get(name)):
                score += points
        if is_present(fields.get("version")):
            score += 2.0
        if is_present(fields.get("language")):
            score += 1.0

        if any(creator.orcid for creator in creators):
            score += 3.0
        if any(creator.affiliation for creator in creators):
            score += 2.0
        # Holds vacuously when there are no creators
        if all(creator.given_name and creator.family_name for creator in creators):
            score += 2.0

        score -= 10.0 * len(result.errors)
        return max(0.0, min(100.0, score))
