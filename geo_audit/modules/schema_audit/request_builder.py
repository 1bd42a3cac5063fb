"""Prompt construction for the schema audit LLM call.

Two prompt variants exist: a whole-site GEO audit focused on
LocalBusiness-family markup, and a single WordPress post audit focused on
Article markup.  Both end with the JSON skeleton the model is asked to
mimic so that the response can be parsed by :mod:`result_parser`.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from geo_audit.modules.schema_audit.types import (
    AuditTarget,
    PostTarget,
    check_language,
)

logger = logging.getLogger(__name__)

# Fixed budget for embedded post content; bounds the prompt size.
POST_CONTENT_LIMIT = 1000

DEFAULT_MODEL = "gpt-4"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.3

_SYSTEM_INSTRUCTIONS = {
    "vi": (
        "Bạn là chuyên gia SEO kỹ thuật và schema markup. "
        "Hãy phân tích và trả về kết quả dưới dạng JSON hợp lệ."
    ),
    "en": (
        "You are a technical SEO and schema markup expert. "
        "Analyse the page and respond with valid JSON only."
    ),
}

_WEBSITE_TEMPLATES = {
    "vi": """Tôi muốn bạn đóng vai trò là chuyên gia SEO kỹ thuật và schema markup.

Hãy phân tích website sau để đánh giá mức độ tuân thủ GEO schema – đặc biệt là các structured data liên quan đến thông tin địa phương như LocalBusiness.

URL website: {url}

Hãy kiểm tra và phản hồi các nội dung sau:

1. **Có tồn tại schema GEO liên quan không?**
   - Các loại schema cần kiểm tra: LocalBusiness, Place, PostalAddress, GeoCoordinates
   - Dạng dữ liệu sử dụng: JSON-LD, Microdata, RDFa

2. **Thông tin schema có đầy đủ và chính xác không?**
   - @type: Có là LocalBusiness hoặc loại phù hợp không?
   - name, address, telephone, openingHours: có đầy đủ không?
   - addressLocality, addressCountry, postalCode: có đúng định dạng không?
   - geo (latitude, longitude): có được khai báo không?

3. **Dữ liệu có tuân thủ theo chuẩn schema.org không?**
   - Có lỗi trong cú pháp hoặc kiểu dữ liệu không?
   - Có dữ liệu thừa hoặc thiếu cần tối ưu không?

4. **Khuyến nghị cải thiện nếu thiếu hoặc sai dữ liệu GEO schema**

Trả kết quả theo định dạng JSON với cấu trúc sau:
{skeleton}

Hãy phân tích thực tế và trả về JSON hợp lệ.""",
    "en": """Act as a technical SEO and schema markup expert.

Analyse the following website for GEO schema compliance, in particular the structured data describing local information such as LocalBusiness.

Website URL: {url}

Check and report on:

1. **Is related GEO schema present?**
   - Schema types to check: LocalBusiness, Place, PostalAddress, GeoCoordinates
   - Formats: JSON-LD, Microdata, RDFa

2. **Is the schema complete and accurate?**
   - @type: is it LocalBusiness or another suitable type?
   - name, address, telephone, openingHours: are they complete?
   - addressLocality, addressCountry, postalCode: are they well formed?
   - geo (latitude, longitude): is it declared?

3. **Does the data follow schema.org?**
   - Are there syntax or data type errors?
   - Is any data redundant or missing?

4. **Improvement recommendations for missing or incorrect GEO schema**

Return the result as JSON with this structure:
{skeleton}

Analyse the real site and return valid JSON.""",
}

_POST_TEMPLATES = {
    "vi": """Tôi muốn bạn đóng vai trò là chuyên gia SEO kỹ thuật và schema markup.

Hãy phân tích bài viết WordPress sau để đánh giá mức độ tuân thủ schema markup cho Article và các schema liên quan:

URL bài viết: {url}
Tiêu đề: {title}
Nội dung: {content}...

Hãy kiểm tra và phản hồi:

1. **Schema Article có tồn tại không?**
   - Kiểm tra: headline, author, datePublished, dateModified, description
   - mainEntityOfPage, publisher, image

2. **Schema BreadcrumbList có được khai báo không?**

3. **Schema Person (author) có đầy đủ không?**

4. **Schema Organization (publisher) có chính xác không?**

5. **Đề xuất cải thiện cho SEO và schema markup**

Trả kết quả theo định dạng JSON:
{skeleton}""",
    "en": """Act as a technical SEO and schema markup expert.

Analyse the following WordPress post for Article schema markup compliance and related schemas:

Post URL: {url}
Title: {title}
Content: {content}...

Check and report on:

1. **Is Article schema present?**
   - Check: headline, author, datePublished, dateModified, description
   - mainEntityOfPage, publisher, image

2. **Is BreadcrumbList schema declared?**

3. **Is the Person (author) schema complete?**

4. **Is the Organization (publisher) schema accurate?**

5. **Improvement suggestions for SEO and schema markup**

Return the result as JSON:
{skeleton}""",
}

_WEBSITE_SKELETON = """{
  "schemaStatus": "Có/Không/Một phần",
  "detailedInfo": ["...", "..."],
  "improvements": ["...", "..."],
  "geoSchemas": [
    {
      "type": "LocalBusiness",
      "status": "valid/invalid/warning",
      "properties": {
        "name": "...",
        "address": "...",
        "telephone": "..."
      }
    }
  ],
  "issues": ["...", "..."],
  "score": 85
}"""

_POST_SKELETON = """{
  "schemaStatus": "Có/Không/Một phần",
  "detailedInfo": ["..."],
  "improvements": ["..."],
  "geoSchemas": [
    {
      "type": "Article",
      "status": "valid/invalid/warning",
      "properties": {"headline": "...", "author": "..."}
    }
  ],
  "issues": ["..."],
  "score": 75
}"""


@dataclass(frozen=True)
class RequestSpec:
    """Chat-completion request envelope."""

    model: str
    messages: tuple[dict[str, str], ...] = field(default_factory=tuple)
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE

    @property
    def prompt(self) -> str:
        """The user message content."""
        for message in self.messages:
            if message.get("role") == "user":
                return message.get("content", "")
        return ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [dict(m) for m in self.messages],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }


class AnalysisRequestBuilder:
    """Build prompts and request envelopes for the audit model.

    Usage::

        builder = AnalysisRequestBuilder(language="en")
        request = builder.build(WebsiteTarget("https://example.com"))
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        language: str = "vi",
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._language = check_language(language)

    @property
    def language(self) -> str:
        return self._language

    def build_website_prompt(self, url: str) -> str:
        return _WEBSITE_TEMPLATES[self._language].format(
            url=url, skeleton=_WEBSITE_SKELETON
        )

    def build_post_prompt(self, url: str, title: str, content_html: str) -> str:
        """Build the single-post prompt; content is cut to POST_CONTENT_LIMIT chars."""
        content = (content_html or "")[:POST_CONTENT_LIMIT]
        return _POST_TEMPLATES[self._language].format(
            url=url, title=title, content=content, skeleton=_POST_SKELETON
        )

    def build_prompt(self, target: AuditTarget) -> str:
        if isinstance(target, PostTarget):
            return self.build_post_prompt(target.url, target.title, target.content_html)
        return self.build_website_prompt(target.url)

    def build_request_envelope(self, prompt: str) -> RequestSpec:
        return RequestSpec(
            model=self._model,
            messages=(
                {"role": "system", "content": _SYSTEM_INSTRUCTIONS[self._language]},
                {"role": "user", "content": prompt},
            ),
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

    def build(self, target: AuditTarget) -> RequestSpec:
        """Prompt plus envelope for *target*."""
        prompt = self.build_prompt(target)
        logger.debug(
            "Built %s prompt for %s (len=%d)", target.kind, target.url, len(prompt)
        )
        return self.build_request_envelope(prompt)
