import pytest

from instrumeta.schema.model import Schema
from instrumeta.validation.quality import compute_quality_score, is_present


@pytest.fixture
def schema():
    return Schema.from_dict(
        {
            "name": "demo",
            "required_fields": ["format"],
            "ontology_mappings": {"format": "edam:format_1915"},
            "fields": {
                "format": {"type": "string"},
                "immersion": {"type": "string", "vocabulary": ["Oil", "Water"]},
                "operator": {"type": "string", "ontology": "obo:NCIT_C25936"},
                "notes": {"type": "string"},
            },
        }
    )


def test_sub_scores(schema):
    score = compute_quality_score(
        schema, {"format": "CZI", "immersion": "oil", "operator": "Jane"}
    )

    assert score.completeness == 75.0
    assert score.consistency == 0.0
    assert score.richness == pytest.approx(200 / 3)
    assert score.interoperability == pytest.approx(200 / 3)
    assert score.overall == pytest.approx((75.0 + 0.0 + 200 / 3 + 200 / 3) / 4)
    assert "3 of 4 schema fields present" in score.details


def test_empty_values_are_not_present(schema):
    score = compute_quality_score(schema, {"format": "", "notes": []})
    assert score.completeness == 0.0
    assert score.interoperability == 0.0
    assert score.consistency == 100.0


def test_schema_without_fields():
    score = compute_quality_score(Schema(name="empty"), {"a": 1})
    assert score.completeness == 100.0
    assert score.richness == 100.0


@pytest.mark.parametrize(
    "value,expected",
    [(None, False), ("", False), ([], False), ({}, False), (0, True), (False, True)],
)
def test_is_present(value, expected):
    assert is_present(value) is expected
