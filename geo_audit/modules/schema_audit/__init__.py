"""Schema audit module: LLM-backed analysis with tiered fallback, and Article schema generation."""

from geo_audit.modules.schema_audit.mock_provider import MockAnalysisProvider
from geo_audit.modules.schema_audit.pipeline import AuditPipeline, PipelineState
from geo_audit.modules.schema_audit.request_builder import AnalysisRequestBuilder, RequestSpec
from geo_audit.modules.schema_audit.result_parser import ParseResult, ResultParser
from geo_audit.modules.schema_audit.schema_generator import SchemaGenerator
from geo_audit.modules.schema_audit.types import (
    AnalysisTier,
    AuditAnalysis,
    FindingStatus,
    PostMetadata,
    PostTarget,
    SchemaFinding,
    SchemaStatus,
    WebsiteTarget,
)

__all__ = [
    "AnalysisRequestBuilder",
    "AnalysisTier",
    "AuditAnalysis",
    "AuditPipeline",
    "FindingStatus",
    "MockAnalysisProvider",
    "ParseResult",
    "PipelineState",
    "PostMetadata",
    "PostTarget",
    "RequestSpec",
    "ResultParser",
    "SchemaFinding",
    "SchemaGenerator",
    "SchemaStatus",
    "WebsiteTarget",
]
