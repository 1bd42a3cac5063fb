"""Article JSON-LD generation for audited WordPress posts.

The generated object is exactly the payload the WordPress publish route
stores.  Output depends only on the post metadata: the analysis decides
whether a schema is generated at all, not what it contains.
"""

import json
import logging
import re
from datetime import datetime
from typing import Any, Optional

from geo_audit.modules.schema_audit.types import AuditAnalysis, PostMetadata
from geo_audit.utils.helpers import extract_domain

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Admin"
HEADLINE_LIMIT = 110

_REQUIRED_FIELDS: dict[str, list[str]] = {
    "Article": ["headline", "author", "datePublished"],
    "BlogPosting": ["headline", "author", "datePublished"],
    "NewsArticle": ["headline", "author", "datePublished"],
}

_RECOMMENDED_FIELDS: dict[str, list[str]] = {
    "Article": ["image", "dateModified", "publisher", "mainEntityOfPage"],
    "BlogPosting": ["image", "dateModified", "publisher", "mainEntityOfPage"],
    "NewsArticle": ["image", "dateModified", "publisher", "mainEntityOfPage"],
}


class SchemaGenerator:
    """Generate and validate Article JSON-LD.

    Usage::

        gen = SchemaGenerator()
        schema = gen.generate(analysis, PostMetadata(...))
        snippet = gen.to_script_tag(schema)
    """

    def generate(self, analysis: Optional[AuditAnalysis], post: PostMetadata) -> dict:
        """Build the Article object for *post*."""
        site = self._site_root(post.domain)
        publisher_name = post.publisher_name or extract_domain(site) or site
        date_published = self._normalise_date(post.date)

        schema: dict[str, Any] = {
            "@context": "https://schema.org",
            "@type": "Article",
            "headline": post.title[:HEADLINE_LIMIT],
            "author": {
                "@type": "Person",
                "name": post.author_name or DEFAULT_AUTHOR,
            },
            "publisher": {
                "@type": "Organization",
                "name": publisher_name,
                "logo": {
                    "@type": "ImageObject",
                    "url": site + "/wp-content/uploads/logo.png",
                },
            },
            "datePublished": date_published,
            "dateModified": self._normalise_date(post.modified) if post.modified else date_published,
            "url": post.link,
            "mainEntityOfPage": {"@type": "WebPage", "@id": post.link},
        }
        if post.image_url:
            schema["image"] = post.image_url
        logger.debug("Generated Article schema for post %s", post.post_id)
        return schema

    def validate_schema(self, schema: dict) -> dict:
        """Check required and recommended fields.

        Returns dict with ``is_valid``, ``errors``, ``warnings``, and
        ``schema_type``.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(schema, dict):
            return {
                "is_valid": False,
                "errors": ["Schema must be a dict"],
                "warnings": [],
                "schema_type": None,
            }

        if schema.get("@context") != "https://schema.org":
            errors.append("Missing or incorrect @context (expected https://schema.org)")

        schema_type = schema.get("@type", "")
        if not schema_type:
            errors.append("Missing @type field")
            return {
                "is_valid": False,
                "errors": errors,
                "warnings": warnings,
                "schema_type": None,
            }

        for fld in _REQUIRED_FIELDS.get(schema_type, []):
            if fld not in schema:
                errors.append("Missing required field: " + fld)
            elif not schema[fld]:
                errors.append("Empty required field: " + fld)

        for fld in _RECOMMENDED_FIELDS.get(schema_type, []):
            if fld not in schema:
                warnings.append("Missing recommended field: " + fld)

        if schema_type in _REQUIRED_FIELDS:
            if len(schema.get("headline", "")) > HEADLINE_LIMIT:
                warnings.append("Headline exceeds 110 characters (Google may truncate)")
            dp = schema.get("datePublished", "")
            if dp and not self._is_valid_date(dp):
                errors.append("datePublished is not a valid ISO 8601 date")

        try:
            json.dumps(schema)
        except (TypeError, ValueError) as exc:
            errors.append("Schema is not JSON serialisable: " + str(exc))

        is_valid = len(errors) == 0
        logger.debug(
            "Schema validation for %s: valid=%s, errors=%d, warnings=%d",
            schema_type, is_valid, len(errors), len(warnings),
        )
        return {
            "is_valid": is_valid,
            "errors": errors,
            "warnings": warnings,
            "schema_type": schema_type,
        }

    @staticmethod
    def to_script_tag(schema: dict) -> str:
        body = json.dumps(schema, indent=2, ensure_ascii=False)
        return '<script type="application/ld+json">\n' + body + "\n</script>"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _site_root(domain: str) -> str:
        domain = (domain or "").strip().rstrip("/")
        if domain and "://" not in domain:
            domain = "https://" + domain
        return domain

    @staticmethod
    def _normalise_date(date_str: Optional[str]) -> str:
        """Try to normalise a date string to ISO 8601."""
        if not date_str:
            return ""
        if re.match(r"\d{4}-\d{2}-\d{2}", date_str):
            return date_str
        for fmt in ("%B %d, %Y", "%b %d, %Y", "%m/%d/%Y", "%d/%m/%Y"):
            try:
                return datetime.strptime(date_str, fmt).strftime("%Y-%m-%d")
            except ValueError:
                continue
        return date_str

    @staticmethod
    def _is_valid_date(date_str: str) -> bool:
        if re.match(r"\d{4}-\d{2}-\d{2}", date_str):
            return True
        try:
            datetime.fromisoformat(date_str.replace("Z", "+00:00"))
            return True
        except (ValueError, AttributeError):
            return False
