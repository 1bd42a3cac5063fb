"""Website and WordPress integration models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geo_audit.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackedMixin:
    """Audit columns shared by every table; ``deleted_at`` marks soft deletes."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class Website(TrackedMixin, Base):
    """A site the user has audited or connected."""

    __tablename__ = "websites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    integrations: Mapped[list["WordPressIntegration"]] = relationship(back_populates="website")

    def __repr__(self) -> str:
        return f"<Website id={self.id} domain={self.domain!r}>"


class WordPressIntegration(TrackedMixin, Base):
    """Stored REST credentials for a WordPress site."""

    __tablename__ = "wordpress_integrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    website_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("websites.id", ondelete="SET NULL"), nullable=True, index=True
    )
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    application_password: Mapped[str] = mapped_column(String(255), nullable=False)
    connection_status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False)
    last_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    user_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    website: Mapped[Optional["Website"]] = relationship(back_populates="integrations")

    def __repr__(self) -> str:
        return (
            f"<WordPressIntegration id={self.id} domain={self.domain!r} "
            f"status={self.connection_status}>"
        )
