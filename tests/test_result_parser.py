"""Tests for strict, embedded-object and heuristic parsing of model output."""

import json

import pytest

from geo_audit.modules.schema_audit.result_parser import (
    MAX_IMPROVEMENTS,
    MAX_ISSUES,
    ResultParser,
    ShapeErrorKind,
    analysis_from_dict,
    parse_strict,
)
from geo_audit.modules.schema_audit.types import (
    AnalysisTier,
    FindingStatus,
    SchemaStatus,
    WebsiteTarget,
)

TARGET = WebsiteTarget("https://example.com")


# ===================================================================
# Strict shape check
# ===================================================================

class TestParseStrict:

    def test_valid_payload(self, valid_payload):
        result = parse_strict(json.dumps(valid_payload, ensure_ascii=False))
        assert result.ok
        analysis = result.analysis
        assert analysis.schema_status is SchemaStatus.PRESENT
        assert analysis.tier is AnalysisTier.STRICT
        assert analysis.score == 85
        assert analysis.geo_schemas[0].status is FindingStatus.VALID
        assert analysis.to_dict() == valid_payload

    def test_invalid_json(self):
        result = parse_strict("not json at all")
        assert not result.ok
        assert result.error.kind is ShapeErrorKind.INVALID_JSON

    def test_top_level_array_rejected(self):
        result = parse_strict("[1, 2, 3]")
        assert result.error.kind is ShapeErrorKind.INVALID_SHAPE

    def test_unknown_status_rejected(self):
        result = parse_strict(json.dumps({"schemaStatus": "maybe", "geoSchemas": []}))
        assert result.error.kind is ShapeErrorKind.INVALID_SHAPE
        assert "schemaStatus" in result.error.message

    def test_missing_geo_schemas_rejected(self):
        result = parse_strict(json.dumps({"schemaStatus": "Có"}))
        assert not result.ok
        assert "geoSchemas" in result.error.message

    def test_untyped_finding_skipped(self):
        data = {
            "schemaStatus": "Có",
            "score": 88,
            "geoSchemas": [
                {"status": "valid"},
                {"type": "LocalBusiness", "status": "valid", "properties": {"name": "Bakery"}},
            ],
        }
        result = parse_strict(json.dumps(data, ensure_ascii=False))
        assert result.ok
        analysis = result.analysis
        assert analysis.tier is AnalysisTier.STRICT
        assert analysis.schema_status is SchemaStatus.PRESENT
        assert analysis.score == 88
        assert [f.type for f in analysis.geo_schemas] == ["LocalBusiness"]

    def test_deeply_nested_json(self):
        result = parse_strict("[" * 5000)
        assert not result.ok
        assert result.error.kind is ShapeErrorKind.INVALID_JSON

    def test_non_list_field_rejected(self):
        data = {"schemaStatus": "Có", "geoSchemas": [], "issues": "none"}
        result = analysis_from_dict(data)
        assert "issues" in result.error.message

    def test_boolean_score_rejected(self):
        data = {"schemaStatus": "Có", "geoSchemas": [], "score": True}
        assert not analysis_from_dict(data).ok

    def test_numeric_string_score_accepted(self):
        data = {"schemaStatus": "Có", "geoSchemas": [], "score": "72.4"}
        assert analysis_from_dict(data).analysis.score == 72

    def test_missing_optional_fields_default_empty(self):
        analysis = analysis_from_dict({"schemaStatus": "Không", "geoSchemas": []}).analysis
        assert analysis.schema_status is SchemaStatus.ABSENT
        assert analysis.issues == ()
        assert analysis.improvements == ()
        assert analysis.detailed_info == ()
        assert analysis.score == 0

    @pytest.mark.parametrize("raw,expected", [(150, 100), (-20, 0), (99.6, 100)])
    def test_score_clamped(self, raw, expected):
        data = {"schemaStatus": "Có", "geoSchemas": [], "score": raw}
        assert analysis_from_dict(data).analysis.score == expected

    def test_english_status_alias(self):
        data = {"schemaStatus": "Partial", "geoSchemas": [{"@type": "Place"}]}
        analysis = analysis_from_dict(data).analysis
        assert analysis.schema_status is SchemaStatus.PARTIAL
        assert analysis.geo_schemas[0].type == "Place"
        assert analysis.geo_schemas[0].status is FindingStatus.WARNING


# ===================================================================
# Embedded object
# ===================================================================

class TestEmbeddedObject:

    def test_object_inside_prose(self):
        text = 'some prose { "schemaStatus":"Một phần", "geoSchemas":[] } trailing'
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.tier is AnalysisTier.EXTRACTED
        assert analysis.schema_status is SchemaStatus.PARTIAL
        assert analysis.geo_schemas == ()

    def test_markdown_fence(self, valid_payload):
        text = "Here you go:\n```json\n" + json.dumps(valid_payload, ensure_ascii=False) + "\n```"
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.tier is AnalysisTier.EXTRACTED
        assert analysis.score == 85

    def test_bad_embedded_object_falls_through_to_mining(self):
        text = "Result: { broken json } but the LocalBusiness schema is present."
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.tier is AnalysisTier.HEURISTIC
        assert analysis.schema_status is SchemaStatus.PRESENT


# ===================================================================
# Heuristic mining
# ===================================================================

class TestHeuristicMining:

    def test_article_and_missing_property(self):
        text = "Trang có dùng Article nhưng thiếu mainEntityOfPage và author."
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.tier is AnalysisTier.HEURISTIC
        assert any(f.type == "Article" for f in analysis.geo_schemas)
        assert any("mainEntityOfPage" in issue for issue in analysis.issues)

    def test_partial_takes_precedence(self):
        text = "Schema is partially implemented and not found on some pages."
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.schema_status is SchemaStatus.PARTIAL

    def test_negative_before_affirmative(self):
        text = "Website không có schema nào. Nothing declared."
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.schema_status is SchemaStatus.ABSENT

    @pytest.mark.parametrize("text", [
        "The LocalBusiness schema does not exist on this page.",
        "Organization schema is not declared.",
        "Schema isn't present.",
        "Schema isn’t present.",
    ])
    def test_negated_affirmatives_are_absent(self, text):
        analysis = ResultParser(language="en").parse(text, TARGET)
        assert analysis.tier is AnalysisTier.HEURISTIC
        assert analysis.schema_status is SchemaStatus.ABSENT

    def test_unsupported_language_rejected(self):
        with pytest.raises(ValueError):
            ResultParser(language="fr")

    def test_no_signal_defaults_to_absent(self):
        analysis = ResultParser().parse("Hello there.", TARGET)
        assert analysis.schema_status is SchemaStatus.ABSENT

    def test_default_finding_when_no_types(self):
        analysis = ResultParser().parse("Nothing useful here.", TARGET)
        assert len(analysis.geo_schemas) == 1
        finding = analysis.geo_schemas[0]
        assert finding.type == "Organization"
        assert finding.status is FindingStatus.WARNING
        assert finding.properties["url"] == TARGET.url

    def test_present_status_marks_findings_valid(self):
        text = "LocalBusiness schema is present. Missing telephone. You should add openingHours."
        analysis = ResultParser(language="en").parse(text, TARGET)
        assert analysis.schema_status is SchemaStatus.PRESENT
        assert [f.type for f in analysis.geo_schemas] == ["LocalBusiness"]
        assert analysis.geo_schemas[0].status is FindingStatus.VALID
        assert analysis.issues == ("Missing telephone",)
        assert analysis.improvements == ("should add openingHours",)
        # base 30 + type 20 + present 30 + few issues 10 + improvement 10
        assert analysis.score == 100
        assert analysis.detailed_info[0] == "Analysis performed by the AI model"

    def test_heuristic_score_without_signal(self):
        analysis = ResultParser().parse("Hello there.", TARGET)
        assert analysis.score == 40

    def test_issue_and_improvement_caps(self):
        issues = ". ".join("missing field" + str(i) for i in range(10))
        improvements = ". ".join("should add field" + str(i) for i in range(10))
        analysis = ResultParser().parse(issues + ". " + improvements + ".", TARGET)
        assert len(analysis.issues) == MAX_ISSUES
        assert len(analysis.improvements) == MAX_IMPROVEMENTS

    def test_duplicate_clauses_collapsed(self):
        text = "Missing address. missing address. Missing address."
        analysis = ResultParser().parse(text, TARGET)
        assert analysis.issues == ("Missing address",)

    def test_empty_text(self):
        analysis = ResultParser().parse_loose("", TARGET)
        assert analysis.tier is AnalysisTier.HEURISTIC
        assert 0 <= analysis.score <= 100
