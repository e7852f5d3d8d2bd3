"""
SiteSettings model — editable marketing content.

One row per settings_type ("home", "about"); the unique constraint on the
discriminator keeps concurrent default creation from producing duplicates.
The editable fields live in a JSON document.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from storefront.core.database import Base
from storefront.models.base import utcnow

SETTINGS_HOME = "home"
SETTINGS_ABOUT = "about"


class SiteSettings(Base):
    """Singleton content document per page."""

    __tablename__ = "site_settings"
    __table_args__ = (
        UniqueConstraint("settings_type", name="uq_site_settings_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    settings_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self):
        return f"<SiteSettings type={self.settings_type}>"
