"""Schema audit and publication models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from geo_audit.database import Base
from geo_audit.models.website import TrackedMixin


class SchemaAudit(TrackedMixin, Base):
    """Whole-site audit result."""

    __tablename__ = "schema_audits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    website_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("websites.id", ondelete="SET NULL"), nullable=True, index=True
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    schemas_found: Mapped[list] = mapped_column(JSON, default=list)
    issues: Mapped[list] = mapped_column(JSON, default=list)
    suggestions: Mapped[list] = mapped_column(JSON, default=list)
    score: Mapped[int] = mapped_column(Integer, default=0)
    tier: Mapped[str] = mapped_column(String(20), default="strict")
    audit_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<SchemaAudit id={self.id} url={self.url[:60]!r} score={self.score}>"


class PostAudit(TrackedMixin, Base):
    """Audit of a single WordPress post, with the generated Article schema."""

    __tablename__ = "post_audits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    website_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("websites.id", ondelete="SET NULL"), nullable=True
    )
    wordpress_integration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wordpress_integrations.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    post_id: Mapped[str] = mapped_column(String(50), nullable=False)
    post_title: Mapped[str] = mapped_column(String(500), nullable=False)
    post_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    schemas_found: Mapped[list] = mapped_column(JSON, default=list)
    issues: Mapped[list] = mapped_column(JSON, default=list)
    suggestions: Mapped[list] = mapped_column(JSON, default=list)
    score: Mapped[int] = mapped_column(Integer, default=0)
    tier: Mapped[str] = mapped_column(String(20), default="strict")
    audit_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<PostAudit id={self.id} post={self.post_id} score={self.score}>"


class SchemaPublication(TrackedMixin, Base):
    """A generated schema pushed (or attempted) to a WordPress site."""

    __tablename__ = "schema_publications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    audit_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("post_audits.id", ondelete="SET NULL"), nullable=True
    )
    wordpress_integration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wordpress_integrations.id", ondelete="CASCADE"), nullable=False
    )
    schema_content: Mapped[str] = mapped_column(Text, nullable=False)
    post_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    publication_status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<SchemaPublication id={self.id} post={self.post_id} "
            f"status={self.publication_status}>"
        )
