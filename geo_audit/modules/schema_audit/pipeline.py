"""Audit pipeline: request, parse, and degrade gracefully.

Every call to :meth:`AuditPipeline.analyze` ends with a usable
:class:`AuditAnalysis`.  Transport failures resolve to the static mock
result; malformed responses resolve through the loose parser.  The tier
that produced the result is recorded on ``AuditAnalysis.tier``.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from geo_audit.modules.schema_audit.events import AUDIT_COMPLETED, EventSink, emit
from geo_audit.modules.schema_audit.mock_provider import MockAnalysisProvider
from geo_audit.modules.schema_audit.request_builder import AnalysisRequestBuilder
from geo_audit.modules.schema_audit.result_parser import ResultParser
from geo_audit.modules.schema_audit.types import AnalysisTier, AuditAnalysis, AuditTarget

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class PipelineState(Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FAILED = "failed"


class AuditPipeline:
    """Run one schema audit against the LLM.

    *llm_client* needs a single coroutine method ``complete(request)``
    returning the response text (see
    :class:`geo_audit.integrations.llm_client.LLMClient`).

    Usage::

        pipeline = AuditPipeline(LLMClient())
        analysis = await pipeline.analyze(WebsiteTarget("https://example.com"))
    """

    def __init__(
        self,
        llm_client: Any,
        builder: Optional[AnalysisRequestBuilder] = None,
        parser: Optional[ResultParser] = None,
        mock_provider: Optional[MockAnalysisProvider] = None,
        event_sink: Optional[EventSink] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        language: str = "vi",
    ) -> None:
        self._llm = llm_client
        self._builder = builder or AnalysisRequestBuilder(language=language)
        self._parser = parser or ResultParser(language=language)
        self._mock = mock_provider or MockAnalysisProvider(language=language)
        self._events = event_sink
        self._timeout = timeout
        self.last_state = PipelineState.IDLE

    async def analyze(self, target: AuditTarget) -> AuditAnalysis:
        request = self._builder.build(target)

        self.last_state = PipelineState.REQUESTING
        logger.info("Requesting %s audit for %s", target.kind, target.url)
        try:
            text = await self._request(request)
        except asyncio.CancelledError:
            self.last_state = PipelineState.IDLE
            raise
        except Exception as exc:
            self.last_state = PipelineState.FAILED
            logger.warning(
                "Audit request for %s failed (%s: %s); using mock analysis",
                target.url, type(exc).__name__, exc,
            )
            return self._finish(target, self._mock.get(target))

        analysis = self._parser.parse(text, target)
        if analysis.tier is AnalysisTier.STRICT:
            self.last_state = PipelineState.SUCCEEDED
            logger.info("Audit for %s succeeded: score=%d", target.url, analysis.score)
        else:
            self.last_state = PipelineState.DEGRADED
            logger.warning(
                "Audit for %s degraded to %s parse: score=%d",
                target.url, analysis.tier.value, analysis.score,
            )
        return self._finish(target, analysis)

    async def _request(self, request) -> str:
        call = self._llm.complete(request)
        if self._timeout:
            text = await asyncio.wait_for(call, timeout=self._timeout)
        else:
            text = await call
        if not isinstance(text, str) or not text.strip():
            raise ValueError("No content received from the model")
        return text

    def _finish(self, target: AuditTarget, analysis: AuditAnalysis) -> AuditAnalysis:
        emit(
            self._events,
            AUDIT_COMPLETED,
            url=target.url,
            target=target.kind,
            tier=analysis.tier.value,
            score=analysis.score,
        )
        return analysis
