"""Persistence of audits, integrations and publications.

Records are returned as plain dicts so callers never hold ORM objects
outside a session.  Rows are soft-deleted through ``deleted_at``.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select

from geo_audit.database import get_session
from geo_audit.models import (
    PostAudit,
    SchemaAudit,
    SchemaPublication,
    Website,
    WordPressIntegration,
)
from geo_audit.modules.schema_audit.types import AuditAnalysis
from geo_audit.utils.helpers import extract_domain

logger = logging.getLogger(__name__)

CONNECTION_STATUSES = ("pending", "connected", "failed")
PUBLICATION_STATUSES = ("pending", "published", "failed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _columns(row: Any, *names: str) -> dict[str, Any]:
    return {name: getattr(row, name) for name in names}


def _website_dict(row: Website) -> dict[str, Any]:
    return _columns(row, "id", "url", "name", "domain", "created_at")


def _integration_dict(row: WordPressIntegration) -> dict[str, Any]:
    return _columns(
        row, "id", "website_id", "domain", "username", "application_password",
        "connection_status", "last_verified_at", "user_info", "created_at",
    )


def _audit_dict(row: SchemaAudit) -> dict[str, Any]:
    return _columns(
        row, "id", "website_id", "url", "schemas_found", "issues", "suggestions",
        "score", "tier", "audit_data", "created_at",
    )


def _post_audit_dict(row: PostAudit) -> dict[str, Any]:
    return _columns(
        row, "id", "website_id", "wordpress_integration_id", "post_id", "post_title",
        "post_url", "schemas_found", "issues", "suggestions", "score", "tier",
        "audit_data", "created_at",
    )


def _publication_dict(row: SchemaPublication) -> dict[str, Any]:
    return _columns(
        row, "id", "audit_id", "wordpress_integration_id", "schema_content", "post_id",
        "publication_status", "error_message", "published_at", "created_at",
    )


def _schemas_found(analysis: AuditAnalysis) -> list[dict[str, Any]]:
    return [
        {"@type": finding.type, **finding.properties}
        for finding in analysis.geo_schemas
    ]


class AuditStore:
    """Store audit results and WordPress state.

    Usage::

        store = AuditStore(user_id="u-1")
        audit = store.record_site_audit("https://example.com", analysis)
        stats = store.get_stats()
    """

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = user_id

    # ------------------------------------------------------------------
    # Websites
    # ------------------------------------------------------------------

    def find_or_create_website(self, url: str, name: Optional[str] = None) -> dict[str, Any]:
        with get_session() as session:
            return _website_dict(self._find_or_create_website(session, url, name))

    def _find_or_create_website(self, session, url: str, name: Optional[str]) -> Website:
        stmt = (
            select(Website)
            .where(Website.url == url, Website.deleted_at.is_(None))
            .where(Website.created_by == self._user_id if self._user_id else Website.created_by.is_(None))
        )
        existing = session.scalars(stmt).first()
        if existing is not None:
            return existing
        domain = extract_domain(url)
        website = Website(url=url, name=name or domain, domain=domain, created_by=self._user_id)
        session.add(website)
        session.flush()
        logger.info("Created website %s (%s)", website.id, domain)
        return website

    # ------------------------------------------------------------------
    # Audits
    # ------------------------------------------------------------------

    def record_site_audit(self, url: str, analysis: AuditAnalysis) -> dict[str, Any]:
        with get_session() as session:
            website = self._find_or_create_website(session, url, None)
            audit = SchemaAudit(
                website_id=website.id,
                url=url,
                schemas_found=_schemas_found(analysis),
                issues=list(analysis.issues),
                suggestions=list(analysis.improvements),
                score=analysis.score,
                tier=analysis.tier.value,
                audit_data=analysis.to_dict(),
                created_by=self._user_id,
            )
            session.add(audit)
            session.flush()
            logger.info("Saved schema audit %s for %s (score=%d)", audit.id, url, audit.score)
            return _audit_dict(audit)

    def list_site_audits(self, limit: int = 20) -> list[dict[str, Any]]:
        with get_session() as session:
            stmt = (
                select(SchemaAudit)
                .where(SchemaAudit.deleted_at.is_(None))
                .order_by(SchemaAudit.created_at.desc(), SchemaAudit.id.desc())
                .limit(limit)
            )
            return [_audit_dict(row) for row in session.scalars(stmt)]

    def record_post_audit(
        self,
        integration_id: int,
        post_id: int,
        post_title: str,
        post_url: str,
        analysis: AuditAnalysis,
        generated_schema: Optional[dict] = None,
    ) -> dict[str, Any]:
        with get_session() as session:
            integration = session.get(WordPressIntegration, integration_id)
            audit_data = analysis.to_dict()
            if generated_schema is not None:
                audit_data["generatedSchema"] = generated_schema
            audit = PostAudit(
                website_id=integration.website_id if integration else None,
                wordpress_integration_id=integration_id,
                post_id=str(post_id),
                post_title=post_title,
                post_url=post_url,
                schemas_found=_schemas_found(analysis),
                issues=list(analysis.issues),
                suggestions=list(analysis.improvements),
                score=analysis.score,
                tier=analysis.tier.value,
                audit_data=audit_data,
                created_by=self._user_id,
            )
            session.add(audit)
            session.flush()
            logger.info("Saved post audit %s for post %s", audit.id, post_id)
            return _post_audit_dict(audit)

    def list_post_audits(self, integration_id: int) -> list[dict[str, Any]]:
        with get_session() as session:
            stmt = (
                select(PostAudit)
                .where(
                    PostAudit.wordpress_integration_id == integration_id,
                    PostAudit.deleted_at.is_(None),
                )
                .order_by(PostAudit.created_at.desc(), PostAudit.id.desc())
            )
            return [_post_audit_dict(row) for row in session.scalars(stmt)]

    # ------------------------------------------------------------------
    # Integrations
    # ------------------------------------------------------------------

    def save_integration(
        self,
        domain: str,
        username: str,
        application_password: str,
        user_info: Optional[dict] = None,
        connection_status: str = "connected",
        site_name: Optional[str] = None,
    ) -> dict[str, Any]:
        if connection_status not in CONNECTION_STATUSES:
            raise ValueError(f"Unknown connection status: {connection_status!r}")
        with get_session() as session:
            website = self._find_or_create_website(session, domain, site_name)
            integration = WordPressIntegration(
                website_id=website.id,
                domain=domain,
                username=username,
                application_password=application_password,
                connection_status=connection_status,
                last_verified_at=_utcnow() if connection_status == "connected" else None,
                user_info=user_info or {},
                created_by=self._user_id,
            )
            session.add(integration)
            session.flush()
            logger.info("Saved WordPress integration %s for %s", integration.id, domain)
            return _integration_dict(integration)

    def list_integrations(self) -> list[dict[str, Any]]:
        with get_session() as session:
            stmt = (
                select(WordPressIntegration)
                .where(WordPressIntegration.deleted_at.is_(None))
                .order_by(WordPressIntegration.created_at.desc(), WordPressIntegration.id.desc())
            )
            return [_integration_dict(row) for row in session.scalars(stmt)]

    def get_integration(self, integration_id: int) -> Optional[dict[str, Any]]:
        with get_session() as session:
            row = session.get(WordPressIntegration, integration_id)
            if row is None or row.deleted_at is not None:
                return None
            return _integration_dict(row)

    def delete_integration(self, integration_id: int) -> bool:
        """Soft-delete; returns False when nothing active matched."""
        with get_session() as session:
            row = session.get(WordPressIntegration, integration_id)
            if row is None or row.deleted_at is not None:
                return False
            row.deleted_at = _utcnow()
            logger.info("Deleted WordPress integration %s", integration_id)
            return True

    # ------------------------------------------------------------------
    # Publications
    # ------------------------------------------------------------------

    def record_publication(
        self,
        integration_id: int,
        schema: dict,
        post_id: Optional[int] = None,
        audit_id: Optional[int] = None,
    ) -> dict[str, Any]:
        with get_session() as session:
            publication = SchemaPublication(
                audit_id=audit_id,
                wordpress_integration_id=integration_id,
                schema_content=json.dumps(schema, ensure_ascii=False),
                post_id=str(post_id) if post_id is not None else None,
                publication_status="pending",
                created_by=self._user_id,
            )
            session.add(publication)
            session.flush()
            return _publication_dict(publication)

    def mark_publication(
        self, publication_id: int, status: str, error: Optional[str] = None
    ) -> dict[str, Any]:
        if status not in PUBLICATION_STATUSES:
            raise ValueError(f"Unknown publication status: {status!r}")
        with get_session() as session:
            publication = session.get(SchemaPublication, publication_id)
            if publication is None:
                raise ValueError(f"Publication {publication_id} not found")
            publication.publication_status = status
            publication.error_message = error
            if status == "published":
                publication.published_at = _utcnow()
            session.flush()
            return _publication_dict(publication)

    # ------------------------------------------------------------------
    # Dashboard stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        with get_session() as session:
            audit_count = session.scalar(
                select(func.count(SchemaAudit.id)).where(SchemaAudit.deleted_at.is_(None))
            ) or 0
            post_audit_count = session.scalar(
                select(func.count(PostAudit.id)).where(PostAudit.deleted_at.is_(None))
            ) or 0
            avg_score = session.scalar(
                select(func.avg(SchemaAudit.score)).where(SchemaAudit.deleted_at.is_(None))
            )
            connected = session.scalar(
                select(func.count(WordPressIntegration.id)).where(
                    WordPressIntegration.connection_status == "connected",
                    WordPressIntegration.deleted_at.is_(None),
                )
            ) or 0
            published = session.scalar(
                select(func.count(SchemaPublication.id)).where(
                    SchemaPublication.publication_status == "published",
                    SchemaPublication.deleted_at.is_(None),
                )
            ) or 0
        return {
            "total_audits": audit_count,
            "total_post_audits": post_audit_count,
            "average_score": round(float(avg_score), 1) if avg_score is not None else 0.0,
            "connected_integrations": connected,
            "published_schemas": published,
        }
