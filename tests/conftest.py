"""Shared pytest fixtures for GEO Schema Audit tests."""

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Ensure project root is on sys.path so 'geo_audit' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


@pytest.fixture(autouse=True)
def _reset_db_engine():
    """Autouse fixture: reset the global DB engine before and after every test."""
    from geo_audit.database import reset_engine
    reset_engine()
    yield
    reset_engine()


@pytest.fixture()
def test_db():
    """Provide an in-memory SQLite database with all tables created."""
    from geo_audit.database import reset_engine, init_db
    reset_engine()
    db_url = "sqlite:///:memory:"
    init_db(database_url=db_url, echo=False)
    yield db_url


@pytest.fixture()
def website_target():
    from geo_audit.modules.schema_audit.types import WebsiteTarget
    return WebsiteTarget(url="https://example.com")


@pytest.fixture()
def post_target():
    from geo_audit.modules.schema_audit.types import PostTarget
    return PostTarget(
        url="https://blog.example.com/hello-world",
        title="Hello World",
        content_html="<p>Welcome to WordPress. This is your first post.</p>",
    )


@pytest.fixture()
def valid_payload():
    """A well-formed analysis exactly as the model is asked to return it."""
    return {
        "schemaStatus": "Có",
        "detailedInfo": ["JSON-LD LocalBusiness block found in <head>"],
        "improvements": ["Add geo coordinates"],
        "geoSchemas": [
            {
                "type": "LocalBusiness",
                "status": "valid",
                "properties": {
                    "name": "Example Bakery",
                    "address": "1 Main St",
                    "telephone": "+1-555-0100",
                },
            }
        ],
        "issues": ["openingHours not declared"],
        "score": 85,
    }


@pytest.fixture()
def mock_llm_client(valid_payload):
    """Return a mock LLMClient whose single call returns the valid payload."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=json.dumps(valid_payload, ensure_ascii=False))
    client.get_usage_summary = MagicMock(return_value={
        "total_requests": 0,
        "total_cost_usd": 0.0,
    })
    return client


@pytest.fixture()
def failing_llm_client():
    """Return a mock LLMClient whose call always raises."""
    client = MagicMock()
    client.complete = AsyncMock(side_effect=ConnectionError("network unreachable"))
    return client


@pytest.fixture()
def wp_post():
    """A WordPress REST post object."""
    return {
        "id": 42,
        "date": "2025-03-10T09:30:00",
        "modified": "2025-03-12T14:00:00",
        "link": "https://blog.example.com/hello-world",
        "status": "publish",
        "author": 1,
        "title": {"rendered": "Hello &amp; Welcome"},
        "content": {"rendered": "<p>Welcome to WordPress. This is your first post.</p>"},
        "excerpt": {"rendered": "<p>Welcome</p>"},
    }
