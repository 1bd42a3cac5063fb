"""Tests for prompt and request envelope construction."""

import pytest

from geo_audit.modules.schema_audit.request_builder import (
    POST_CONTENT_LIMIT,
    AnalysisRequestBuilder,
    RequestSpec,
)
from geo_audit.modules.schema_audit.types import PostTarget, WebsiteTarget


class TestWebsitePrompt:

    def test_embeds_url_and_checklist(self):
        prompt = AnalysisRequestBuilder().build_website_prompt("https://shop.example.vn")
        assert "https://shop.example.vn" in prompt
        for schema_type in ("LocalBusiness", "Place", "PostalAddress", "GeoCoordinates"):
            assert schema_type in prompt
        assert '"schemaStatus"' in prompt
        assert '"geoSchemas"' in prompt

    def test_english_prompt(self):
        prompt = AnalysisRequestBuilder(language="en").build_website_prompt("https://a.example")
        assert "Website URL: https://a.example" in prompt
        assert "Improvement recommendations" in prompt

    def test_unknown_language_rejected(self):
        with pytest.raises(ValueError):
            AnalysisRequestBuilder(language="fr")


class TestPostPrompt:

    def test_embeds_post_fields(self):
        prompt = AnalysisRequestBuilder().build_post_prompt(
            "https://blog.example.com/p", "My Title", "<p>Body</p>"
        )
        assert "https://blog.example.com/p" in prompt
        assert "My Title" in prompt
        assert "<p>Body</p>" in prompt
        for schema_type in ("Article", "BreadcrumbList", "Person", "Organization"):
            assert schema_type in prompt

    def test_content_truncated_to_limit(self):
        head = "a" * POST_CONTENT_LIMIT
        content = head + "TAILMARKER" * 50
        prompt = AnalysisRequestBuilder().build_post_prompt("https://x.example", "T", content)
        assert head in prompt
        assert "TAILMARKER" not in prompt

    def test_short_content_kept_whole(self):
        prompt = AnalysisRequestBuilder().build_post_prompt("https://x.example", "T", "short body")
        assert "short body" in prompt

    def test_build_dispatches_on_target(self, post_target, website_target):
        builder = AnalysisRequestBuilder(language="en")
        assert "WordPress post" in builder.build(post_target).prompt
        assert "Website URL" in builder.build(website_target).prompt


class TestRequestEnvelope:

    def test_defaults_match_wire_contract(self):
        spec = AnalysisRequestBuilder().build(WebsiteTarget("https://example.com"))
        payload = spec.to_payload()
        assert payload["max_tokens"] == 2000
        assert payload["temperature"] == 0.3
        assert payload["model"] == "gpt-4"
        roles = [m["role"] for m in payload["messages"]]
        assert roles == ["system", "user"]
        assert "JSON" in payload["messages"][0]["content"]

    def test_configured_model(self):
        builder = AnalysisRequestBuilder(model="gpt-4o-mini", max_tokens=500, temperature=0.2)
        spec = builder.build_request_envelope("hello")
        assert isinstance(spec, RequestSpec)
        assert spec.model == "gpt-4o-mini"
        assert spec.max_tokens == 500
        assert spec.prompt == "hello"

    def test_payload_is_a_copy(self):
        spec = AnalysisRequestBuilder().build_request_envelope("hello")
        payload = spec.to_payload()
        payload["messages"][1]["content"] = "changed"
        assert spec.prompt == "hello"

    def test_build_is_pure(self):
        target = PostTarget("https://x.example", "T", "<p>x</p>")
        builder = AnalysisRequestBuilder()
        assert builder.build(target) == builder.build(target)
