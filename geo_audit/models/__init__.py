"""SQLAlchemy ORM models; import every model so Base.metadata is populated."""

from geo_audit.models.website import (
    Website,
    WordPressIntegration,
)
from geo_audit.models.audit import (
    SchemaAudit,
    PostAudit,
    SchemaPublication,
)

__all__ = [
    "Website",
    "WordPressIntegration",
    "SchemaAudit",
    "PostAudit",
    "SchemaPublication",
]
