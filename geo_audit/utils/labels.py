"""Presentation labels for audit enums (vi / en)."""

from geo_audit.modules.schema_audit.types import AnalysisTier, FindingStatus, SchemaStatus

STATUS_LABELS = {
    "vi": {
        SchemaStatus.PRESENT: "Có",
        SchemaStatus.ABSENT: "Không",
        SchemaStatus.PARTIAL: "Một phần",
    },
    "en": {
        SchemaStatus.PRESENT: "Present",
        SchemaStatus.ABSENT: "Absent",
        SchemaStatus.PARTIAL: "Partial",
    },
}

FINDING_LABELS = {
    "vi": {
        FindingStatus.VALID: "Hợp lệ",
        FindingStatus.INVALID: "Không hợp lệ",
        FindingStatus.WARNING: "Cảnh báo",
    },
    "en": {
        FindingStatus.VALID: "Valid",
        FindingStatus.INVALID: "Invalid",
        FindingStatus.WARNING: "Warning",
    },
}

TIER_LABELS = {
    "vi": {
        AnalysisTier.STRICT: "AI",
        AnalysisTier.EXTRACTED: "AI (trích xuất)",
        AnalysisTier.HEURISTIC: "AI (suy luận từ văn bản)",
        AnalysisTier.MOCK: "Dữ liệu mẫu",
    },
    "en": {
        AnalysisTier.STRICT: "AI",
        AnalysisTier.EXTRACTED: "AI (extracted)",
        AnalysisTier.HEURISTIC: "AI (text-mined)",
        AnalysisTier.MOCK: "Placeholder",
    },
}


def _table(tables: dict, language: str) -> dict:
    return tables.get(language, tables["en"])


def status_label(status: SchemaStatus, language: str = "en") -> str:
    return _table(STATUS_LABELS, language)[status]


def finding_label(status: FindingStatus, language: str = "en") -> str:
    return _table(FINDING_LABELS, language)[status]


def tier_label(tier: AnalysisTier, language: str = "en") -> str:
    return _table(TIER_LABELS, language)[tier]
