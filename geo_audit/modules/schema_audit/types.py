"""Value types shared by the audit pipeline, parser and schema generator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class SchemaStatus(Enum):
    """Whether the audited page carries the expected structured data."""

    PRESENT = "Có"
    ABSENT = "Không"
    PARTIAL = "Một phần"

    @classmethod
    def from_wire(cls, value: Any) -> Optional["SchemaStatus"]:
        """Map a status string returned by the model onto the enum.

        Accepts the Vietnamese source strings and their English names,
        case-insensitively.  Returns ``None`` for anything else.
        """
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        return _STATUS_ALIASES.get(key)


_STATUS_ALIASES: dict[str, SchemaStatus] = {
    "có": SchemaStatus.PRESENT,
    "present": SchemaStatus.PRESENT,
    "yes": SchemaStatus.PRESENT,
    "không": SchemaStatus.ABSENT,
    "absent": SchemaStatus.ABSENT,
    "no": SchemaStatus.ABSENT,
    "một phần": SchemaStatus.PARTIAL,
    "partial": SchemaStatus.PARTIAL,
}


class FindingStatus(Enum):
    VALID = "valid"
    INVALID = "invalid"
    WARNING = "warning"

    @classmethod
    def from_wire(cls, value: Any) -> "FindingStatus":
        """Lenient mapping; unknown values become WARNING."""
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return cls.WARNING


class AnalysisTier(Enum):
    """Which source produced an analysis, best to worst."""

    STRICT = "strict"          # whole response was a well-formed object
    EXTRACTED = "extracted"    # object embedded in surrounding prose
    HEURISTIC = "heuristic"    # mined from free text
    MOCK = "mock"              # transport failed, static placeholder

    @property
    def degraded(self) -> bool:
        return self is not AnalysisTier.STRICT


@dataclass(frozen=True)
class WebsiteTarget:
    url: str

    @property
    def kind(self) -> str:
        return "website"


@dataclass(frozen=True)
class PostTarget:
    url: str
    title: str
    content_html: str

    @property
    def kind(self) -> str:
        return "post"


AuditTarget = Union[WebsiteTarget, PostTarget]


@dataclass(frozen=True)
class SchemaFinding:
    """One detected or hypothesised schema.org entity."""

    type: str
    status: FindingStatus
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "status": self.status.value,
            "properties": dict(self.properties),
        }


def clamp_score(value: Any) -> int:
    """Coerce *value* to an int in [0, 100]."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, score))


@dataclass(frozen=True)
class AuditAnalysis:
    """Result of one audit run.

    ``tier`` records where the result came from and is excluded from
    equality, so two analyses with the same content compare equal whatever
    produced them.
    """

    schema_status: SchemaStatus
    detailed_info: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()
    geo_schemas: tuple[SchemaFinding, ...] = ()
    issues: tuple[str, ...] = ()
    score: int = 0
    tier: AnalysisTier = field(default=AnalysisTier.STRICT, compare=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "detailed_info", tuple(self.detailed_info or ()))
        object.__setattr__(self, "improvements", tuple(self.improvements or ()))
        object.__setattr__(self, "geo_schemas", tuple(self.geo_schemas or ()))
        object.__setattr__(self, "issues", tuple(self.issues or ()))
        object.__setattr__(self, "score", clamp_score(self.score))

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase shape the model is asked to produce."""
        return {
            "schemaStatus": self.schema_status.value,
            "detailedInfo": list(self.detailed_info),
            "improvements": list(self.improvements),
            "geoSchemas": [finding.to_dict() for finding in self.geo_schemas],
            "issues": list(self.issues),
            "score": self.score,
        }


@dataclass(frozen=True)
class PostMetadata:
    """Post fields the schema generator needs, supplied by the caller."""

    post_id: int
    title: str
    link: str
    date: str
    domain: str
    modified: Optional[str] = None
    author_name: Optional[str] = None
    publisher_name: Optional[str] = None
    image_url: Optional[str] = None


SUPPORTED_LANGUAGES = ("vi", "en")


def check_language(language: str) -> str:
    """Return *language* if prompts and placeholder text exist for it."""
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language {language!r}; expected one of {SUPPORTED_LANGUAGES}"
        )
    return language
