from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String

from cms_multilingual.database import Base


class SiteOption(Base):
    """Stored site-level option, one JSON document per key."""

    __tablename__ = "site_options"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
