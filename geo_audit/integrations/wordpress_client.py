"""WordPress REST client: credential checks, posts, and schema publishing."""

import json
import logging
import os
from typing import Any, Optional

import httpx

from geo_audit.modules.schema_audit.types import PostMetadata, PostTarget
from geo_audit.utils.helpers import clean_html, ensure_scheme

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_ROUTE = "/wp-json/geo-schema/v1/posts/{post_id}/schema"


class WordPressError(RuntimeError):
    """A WordPress request failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WordPressClient:
    """Client for one WordPress site.

    Reads use application-password Basic auth against ``/wp-json/wp/v2``.
    Schema publishing goes to a custom route provided by the companion
    plugin and authenticates with a static API key header.

    Usage::

        wp = WordPressClient("example.com", "admin", "abcd efgh ijkl")
        user = await wp.verify_credentials()
        posts = await wp.list_posts()
        await wp.publish_schema(posts[0]["id"], schema)
    """

    def __init__(
        self,
        domain: str,
        username: str,
        application_password: str,
        api_key: Optional[str] = None,
        schema_route: str = DEFAULT_SCHEMA_ROUTE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.domain = ensure_scheme(domain)
        self._auth = httpx.BasicAuth(username, application_password)
        self._api_key = api_key or os.getenv("WP_SCHEMA_API_KEY", "")
        self._schema_route = schema_route
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.domain,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                logger.error("WordPress %s %s%s failed: %s", method, self.domain, path, exc)
                raise WordPressError(f"Request to {self.domain} failed: {exc}") from exc

        if response.is_error:
            text = response.text or "Invalid credentials or API access denied"
            logger.error(
                "WordPress %s %s%s returned HTTP %d", method, self.domain, path, response.status_code
            )
            raise WordPressError(f"HTTP {response.status_code}: {text}", response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise WordPressError(f"Invalid JSON from {self.domain}{path}") from exc

    async def verify_credentials(self) -> dict[str, Any]:
        """Return the authenticated user's profile."""
        user = await self._request("GET", "/wp-json/wp/v2/users/me", auth=self._auth)
        logger.info("Verified WordPress credentials for %s", self.domain)
        return user or {}

    async def list_posts(self, per_page: int = 10, page: int = 1) -> list[dict[str, Any]]:
        posts = await self._request(
            "GET",
            "/wp-json/wp/v2/posts",
            params={"per_page": per_page, "page": page},
            auth=self._auth,
        )
        return posts or []

    async def get_post(self, post_id: int) -> dict[str, Any]:
        post = await self._request("GET", f"/wp-json/wp/v2/posts/{post_id}", auth=self._auth)
        if not post:
            raise WordPressError(f"Post {post_id} not found on {self.domain}", 404)
        return post

    async def publish_schema(self, post_id: int, schema: dict) -> dict[str, Any]:
        """POST ``{"schema": <json string>}`` to the custom schema route."""
        if not self._api_key:
            raise WordPressError("No WP_SCHEMA_API_KEY configured for schema publishing.")
        path = self._schema_route.format(post_id=post_id)
        result = await self._request(
            "POST",
            path,
            json={"schema": json.dumps(schema, ensure_ascii=False)},
            headers={"X-API-Key": self._api_key},
        )
        logger.info("Published schema for post %s on %s", post_id, self.domain)
        return result or {}


def _rendered(post: dict, key: str) -> str:
    value = post.get(key)
    if isinstance(value, dict):
        return value.get("rendered", "") or ""
    return value or ""


def post_to_target(post: dict[str, Any]) -> PostTarget:
    """Audit target for a REST post object; content stays raw HTML."""
    return PostTarget(
        url=post.get("link", ""),
        title=clean_html(_rendered(post, "title")),
        content_html=_rendered(post, "content"),
    )


def post_to_metadata(post: dict[str, Any], domain: str) -> PostMetadata:
    return PostMetadata(
        post_id=int(post.get("id", 0)),
        title=clean_html(_rendered(post, "title")),
        link=post.get("link", ""),
        date=post.get("date", ""),
        modified=post.get("modified") or None,
        domain=domain,
    )
