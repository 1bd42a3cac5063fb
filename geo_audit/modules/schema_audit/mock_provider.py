"""Static last-resort analysis used when the model cannot be reached."""

from geo_audit.modules.schema_audit.types import (
    AnalysisTier,
    AuditAnalysis,
    AuditTarget,
    FindingStatus,
    SchemaFinding,
    SchemaStatus,
    check_language,
)

MOCK_SCORE = 60

_CONTENT = {
    "vi": {
        "details": (
            "Website có một số schema cơ bản",
            "Thiếu schema GEO quan trọng cho SEO địa phương",
            "Cần bổ sung thông tin LocalBusiness",
        ),
        "improvements": (
            "Thêm schema LocalBusiness với thông tin đầy đủ",
            "Bổ sung PostalAddress với địa chỉ cụ thể",
            "Thêm GeoCoordinates cho vị trí chính xác",
            "Cập nhật openingHours cho giờ hoạt động",
            "Thêm telephone và email liên hệ",
        ),
        "issues": (
            "Thiếu schema LocalBusiness cho SEO địa phương",
            "Chưa có thông tin địa chỉ PostalAddress",
            "Thiếu tọa độ địa lý GeoCoordinates",
            "Chưa khai báo giờ hoạt động openingHours",
        ),
        "org_description": "Thông tin tổ chức cơ bản",
    },
    "en": {
        "details": (
            "The website has some basic schema",
            "Important GEO schema for local SEO is missing",
            "LocalBusiness information should be added",
        ),
        "improvements": (
            "Add a LocalBusiness schema with complete information",
            "Add a PostalAddress with the exact address",
            "Add GeoCoordinates for the precise location",
            "Declare openingHours for business hours",
            "Add telephone and contact email",
        ),
        "issues": (
            "Missing LocalBusiness schema for local SEO",
            "No PostalAddress information",
            "Missing GeoCoordinates",
            "openingHours not declared",
        ),
        "org_description": "Basic organisation information",
    },
}


class MockAnalysisProvider:
    """Deterministic placeholder analysis; a pure function of ``target.url``."""

    def __init__(self, language: str = "vi") -> None:
        self._content = _CONTENT[check_language(language)]

    def get(self, target: AuditTarget) -> AuditAnalysis:
        content = self._content
        return AuditAnalysis(
            schema_status=SchemaStatus.PARTIAL,
            detailed_info=content["details"],
            improvements=content["improvements"],
            geo_schemas=(
                SchemaFinding(
                    type="Organization",
                    status=FindingStatus.WARNING,
                    properties={
                        "name": "Website Organization",
                        "url": target.url,
                        "description": content["org_description"],
                    },
                ),
            ),
            issues=content["issues"],
            score=MOCK_SCORE,
            tier=AnalysisTier.MOCK,
        )
