"""Turn raw model output into an :class:`AuditAnalysis`.

Two strategies of decreasing fidelity:

* ``parse_strict`` decodes the whole text as JSON and shape-checks it.
* ``parse_loose`` first retries on the outermost ``{...}`` substring and,
  failing that, mines the prose for schema types, issues and suggestions.

``parse_loose`` never fails, so neither does :meth:`ResultParser.parse`.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from geo_audit.modules.schema_audit.types import (
    AnalysisTier,
    AuditAnalysis,
    AuditTarget,
    FindingStatus,
    SchemaFinding,
    SchemaStatus,
    check_language,
    clamp_score,
)

logger = logging.getLogger(__name__)

KNOWN_SCHEMA_TYPES = (
    "LocalBusiness",
    "Organization",
    "Article",
    "Person",
    "PostalAddress",
    "GeoCoordinates",
    "Place",
)

MAX_ISSUES = 5
MAX_IMPROVEMENTS = 6
_MAX_CLAUSE_LEN = 200

# Checked in this order: partial, then negative, then affirmative.
_PARTIAL_PATTERNS = (
    r"một phần",
    r"\bpartial(?:ly)?\b",
    r"chưa đầy đủ",
    r"\bincomplete\b",
)
_NEGATIVE_PATTERNS = (
    r"không (?:có|tồn tại|tìm thấy)",
    r"chưa có schema",
    r"\bno (?:schema|structured data)\b",
    r"\bnot (?:found|present|detected|declared|exist(?:s|ing)?)\b",
    r"\b(?:does|do|did) not (?:have|contain|include)\b",
    r"\b(?:is|are|was|were|does|do|did|has|have)n[’']t\b",
)
_AFFIRMATIVE_PATTERNS = (
    r"(?<!không )\bcó schema",
    r"(?<!không )tồn tại",
    r"đã (?:có|khai báo)",
    r"\b(?:is|are) present\b",
    r"\bfound\b",
    r"\bexists?\b",
    r"\bdeclared\b",
)

_CLAUSE_TAIL = r"[^.\n;!?]+"
_ISSUE_RE = re.compile(
    r"(?:thiếu|chưa có|chưa khai báo|lỗi|\bmissing\b|\black(?:s|ing)?\b|\berrors? in\b)"
    + _CLAUSE_TAIL,
    re.IGNORECASE,
)
_IMPROVEMENT_RE = re.compile(
    r"(?:nên thêm|cần thêm|nên bổ sung|cần bổ sung|bổ sung|nên cập nhật"
    r"|\bshould add\b|\bshould include\b|\bconsider adding\b|\brecommend(?:ed)? adding\b"
    r"|\badd (?:a|an|the)\b)"
    + _CLAUSE_TAIL,
    re.IGNORECASE,
)

_HEURISTIC_DETAILS = {
    "vi": (
        "Phân tích được thực hiện bởi AI",
        "Kết quả dựa trên nội dung phản hồi dạng văn bản từ AI",
    ),
    "en": (
        "Analysis performed by the AI model",
        "Result mined from the model's free-text response",
    ),
}


class ShapeErrorKind(Enum):
    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"


@dataclass(frozen=True)
class ShapeError:
    kind: ShapeErrorKind
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Tagged result: exactly one of ``analysis`` / ``error`` is set."""

    analysis: Optional[AuditAnalysis] = None
    error: Optional[ShapeError] = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None

    @classmethod
    def success(cls, analysis: AuditAnalysis) -> "ParseResult":
        return cls(analysis=analysis)

    @classmethod
    def failure(cls, kind: ShapeErrorKind, message: str) -> "ParseResult":
        return cls(error=ShapeError(kind, message))


def _invalid(message: str) -> ParseResult:
    return ParseResult.failure(ShapeErrorKind.INVALID_SHAPE, message)


def _string_list(data: dict, key: str) -> Optional[tuple[str, ...]]:
    """Absent -> empty tuple, non-list -> None, items coerced to str."""
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        return None
    return tuple(str(item) for item in value if item is not None)


def _finding_from_dict(item: Any) -> Optional[SchemaFinding]:
    if not isinstance(item, dict):
        return None
    schema_type = item.get("type", item.get("@type"))
    if not isinstance(schema_type, str) or not schema_type.strip():
        return None
    properties = item.get("properties")
    return SchemaFinding(
        type=schema_type.strip(),
        status=FindingStatus.from_wire(item.get("status")),
        properties=dict(properties) if isinstance(properties, dict) else {},
    )


def analysis_from_dict(
    data: Any, tier: AnalysisTier = AnalysisTier.STRICT
) -> ParseResult:
    """Shape-check a decoded JSON value."""
    if not isinstance(data, dict):
        return _invalid("top-level value is " + type(data).__name__ + ", not an object")

    status = SchemaStatus.from_wire(data.get("schemaStatus"))
    if status is None:
        return _invalid("schemaStatus missing or unrecognised: " + repr(data.get("schemaStatus")))

    raw_schemas = data.get("geoSchemas")
    if not isinstance(raw_schemas, list):
        return _invalid("geoSchemas is not a list")
    findings = []
    for index, item in enumerate(raw_schemas):
        finding = _finding_from_dict(item)
        if finding is None:
            logger.debug("Skipping geoSchemas[%d]: no string type", index)
            continue
        findings.append(finding)

    fields: dict[str, tuple[str, ...]] = {}
    for key in ("detailedInfo", "improvements", "issues"):
        values = _string_list(data, key)
        if values is None:
            return _invalid(key + " is not a list")
        fields[key] = values

    score = data.get("score")
    if score is None:
        score = 0
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        try:
            score = float(score)
        except (TypeError, ValueError):
            return _invalid("score is not numeric: " + repr(score))

    return ParseResult.success(AuditAnalysis(
        schema_status=status,
        detailed_info=fields["detailedInfo"],
        improvements=fields["improvements"],
        geo_schemas=tuple(findings),
        issues=fields["issues"],
        score=clamp_score(score),
        tier=tier,
    ))


def parse_strict(text: str, tier: AnalysisTier = AnalysisTier.STRICT) -> ParseResult:
    """Decode *text* as a JSON object with the audit shape; never raises."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as exc:
        return ParseResult.failure(ShapeErrorKind.INVALID_JSON, str(exc))
    return analysis_from_dict(data, tier=tier)


def _extract_object(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _matches_any(patterns: tuple[str, ...], text: str) -> bool:
    return any(re.search(p, text, re.IGNORECASE) for p in patterns)


def _detect_status(text: str) -> SchemaStatus:
    if _matches_any(_PARTIAL_PATTERNS, text):
        return SchemaStatus.PARTIAL
    if _matches_any(_NEGATIVE_PATTERNS, text):
        return SchemaStatus.ABSENT
    if _matches_any(_AFFIRMATIVE_PATTERNS, text):
        return SchemaStatus.PRESENT
    return SchemaStatus.ABSENT


def _extract_clauses(pattern: re.Pattern, text: str, limit: int) -> list[str]:
    clauses: list[str] = []
    seen: set[str] = set()
    for match in pattern.finditer(text):
        clause = " ".join(match.group(0).split()).strip(" ,:-*")
        if not clause:
            continue
        clause = clause[:_MAX_CLAUSE_LEN]
        key = clause.lower()
        if key in seen:
            continue
        seen.add(key)
        clauses.append(clause)
        if len(clauses) >= limit:
            break
    return clauses


class ResultParser:
    """Parse model responses into audit analyses.

    Usage::

        parser = ResultParser()
        analysis = parser.parse(response_text, target)
        print(analysis.tier, analysis.score)
    """

    def __init__(self, language: str = "vi") -> None:
        self._language = check_language(language)

    def parse_strict(self, text: str) -> ParseResult:
        return parse_strict(text)

    def parse_loose(self, text: str, target: AuditTarget) -> AuditAnalysis:
        """Best-effort parse; always returns an analysis."""
        embedded = _extract_object(text or "")
        if embedded is not None:
            result = parse_strict(embedded, tier=AnalysisTier.EXTRACTED)
            if result.ok:
                logger.info("Recovered embedded JSON object for %s", target.url)
                return result.analysis
            logger.debug("Embedded object rejected: %s", result.error.message)
        return self._mine_text(text or "", target)

    def parse(self, text: str, target: AuditTarget) -> AuditAnalysis:
        result = parse_strict(text)
        if result.ok:
            return result.analysis
        logger.warning(
            "Strict parse failed for %s (%s: %s); falling back to loose parse",
            target.url, result.error.kind.value, result.error.message,
        )
        return self.parse_loose(text, target)

    # ------------------------------------------------------------------
    # Heuristic text mining
    # ------------------------------------------------------------------

    def _mine_text(self, text: str, target: AuditTarget) -> AuditAnalysis:
        status = _detect_status(text)

        matched_types = [
            name for name in KNOWN_SCHEMA_TYPES
            if re.search(r"\b" + name + r"\b", text)
        ]
        finding_status = (
            FindingStatus.VALID if status is SchemaStatus.PRESENT else FindingStatus.WARNING
        )
        if matched_types:
            findings = tuple(
                SchemaFinding(type=name, status=finding_status, properties={"url": target.url})
                for name in matched_types
            )
        else:
            findings = (
                SchemaFinding(
                    type="Organization",
                    status=FindingStatus.WARNING,
                    properties={"name": "Website Name", "url": target.url},
                ),
            )

        issues = _extract_clauses(_ISSUE_RE, text, MAX_ISSUES)
        improvements = _extract_clauses(_IMPROVEMENT_RE, text, MAX_IMPROVEMENTS)

        score = 30
        if matched_types:
            score += 20
        if status is SchemaStatus.PRESENT:
            score += 30
        elif status is SchemaStatus.PARTIAL:
            score += 15
        if len(issues) < 3:
            score += 10
        if improvements:
            score += 10

        logger.warning(
            "Heuristic analysis for %s: status=%s types=%s issues=%d improvements=%d",
            target.url, status.name, matched_types, len(issues), len(improvements),
        )
        return AuditAnalysis(
            schema_status=status,
            detailed_info=_HEURISTIC_DETAILS[self._language],
            improvements=tuple(improvements),
            geo_schemas=findings,
            issues=tuple(issues),
            score=clamp_score(score),
            tier=AnalysisTier.HEURISTIC,
        )
