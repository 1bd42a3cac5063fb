"""OpenAI chat-completion transport for the schema audit pipeline."""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import openai

from geo_audit.modules.schema_audit.request_builder import RequestSpec

logger = logging.getLogger(__name__)


class LLMTransportError(RuntimeError):
    """The completion call could not produce response text."""


@dataclass
class UsageStats:
    """Tracks token usage and estimated cost."""
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_requests: int = 0
    failed_requests: int = 0
    total_cost_usd: float = 0.0
    started_at: float = field(default_factory=time.time)

    def add_usage(self, input_tokens: int, output_tokens: int,
                  cost_per_1k_input: float = 0.03,
                  cost_per_1k_output: float = 0.06) -> float:
        """Record token usage and return cost for this call."""
        cost = (input_tokens / 1000) * cost_per_1k_input + \
               (output_tokens / 1000) * cost_per_1k_output
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_requests += 1
        self.total_cost_usd += cost
        return cost


class LLMClient:
    """Async OpenAI client sending exactly one request per call.

    SDK retries are disabled: the audit pipeline degrades through its own
    fallbacks rather than re-sending.

    Usage::

        client = LLMClient()
        text = await client.complete(builder.build(target))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
    ):
        self._api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self._timeout = timeout

        self._client: Optional[openai.AsyncOpenAI] = None
        if self._api_key:
            self._client = openai.AsyncOpenAI(
                api_key=self._api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )
        else:
            logger.warning("No OPENAI_API_KEY set; audits will use the placeholder analysis.")

        self.usage = UsageStats()

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete(self, request: RequestSpec) -> str:
        """Send *request* and return ``choices[0].message.content``."""
        if self._client is None:
            raise LLMTransportError("No LLM provider configured. Set OPENAI_API_KEY.")

        payload = request.to_payload()
        try:
            response = await self._client.chat.completions.create(**payload)
        except openai.OpenAIError as exc:
            self.usage.failed_requests += 1
            raise LLMTransportError(f"OpenAI API error: {exc}") from exc

        content = None
        if response.choices:
            message = response.choices[0].message
            content = message.content if message is not None else None
        if not content:
            self.usage.failed_requests += 1
            raise LLMTransportError("No content received from OpenAI")

        usage = response.usage
        if usage:
            cost = self.usage.add_usage(usage.prompt_tokens, usage.completion_tokens)
            logger.info(
                "OpenAI call (%s): %d in / %d out tokens, $%.6f",
                request.model, usage.prompt_tokens, usage.completion_tokens, cost,
            )
        return content

    def get_usage_summary(self) -> dict[str, Any]:
        """Return a summary of token usage and costs."""
        return {
            "configured": self.configured,
            "total_requests": self.usage.total_requests,
            "failed_requests": self.usage.failed_requests,
            "total_input_tokens": self.usage.total_input_tokens,
            "total_output_tokens": self.usage.total_output_tokens,
            "total_cost_usd": round(self.usage.total_cost_usd, 6),
        }
