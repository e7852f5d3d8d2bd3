"""
Site settings service — "home" and "about" content documents.

Defaults are written once by ensure_defaults() at startup. Reads still create
a missing document, so a deleted row heals itself; creation is guarded by the
unique settings_type constraint and a lost race simply re-reads the winner.
"""
import copy
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.site_settings import SETTINGS_ABOUT, SETTINGS_HOME, SiteSettings

logger = logging.getLogger(__name__)

DEFAULT_HOME: dict[str, Any] = {
    "hero_image": "https://picsum.photos/id/326/800/600",
    "hero_title": "Simple, Yet Delectable",
    "hero_subtitle": (
        "Discover and indulge in our irresistible aroma of freshly baked croissants. "
        "Golden, flaky, and crafted to perfection every morning."
    ),
    "featured_product_ids": [],
    "collage_images": [
        "https://picsum.photos/id/431/600/800",
        "https://picsum.photos/id/488/400/400",
        "https://picsum.photos/id/292/600/800",
        "https://picsum.photos/id/312/400/400",
        "https://picsum.photos/id/225/600/1200",
        "https://picsum.photos/id/1062/400/400",
        "https://picsum.photos/id/835/600/800",
        "https://picsum.photos/id/493/400/400",
        "https://picsum.photos/id/766/600/800",
    ],
}

DEFAULT_ABOUT: dict[str, Any] = {
    "founder_image": "https://picsum.photos/id/338/800/1000",
    "founder_quote": (
        "Baking is about patience. In a world that moves so fast, bread forces you "
        "to slow down. You can't rush the rise."
    ),
    "collage_images": [
        "https://picsum.photos/id/425/800/800",
        "https://picsum.photos/id/292/400/400",
        "https://picsum.photos/id/306/400/800",
        "https://picsum.photos/id/225/400/400",
    ],
    "flagship_image": "https://picsum.photos/id/122/800/600",
}

DEFAULTS = {
    SETTINGS_HOME: DEFAULT_HOME,
    SETTINGS_ABOUT: DEFAULT_ABOUT,
}


class SiteSettingsService:
    """Reads and partial updates of the singleton content documents."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, settings_type: str) -> SiteSettings | None:
        result = await self.db.execute(
            select(SiteSettings).where(SiteSettings.settings_type == settings_type)
        )
        return result.scalar_one_or_none()

    async def ensure(self, settings_type: str) -> SiteSettings:
        """Return the document, creating it with default content if absent."""
        row = await self._find(settings_type)
        if row is not None:
            return row

        row = SiteSettings(settings_type=settings_type, content=copy.deepcopy(DEFAULTS[settings_type]))
        self.db.add(row)
        try:
            await self.db.commit()
            logger.info("Created default %s settings", settings_type)
        except IntegrityError:
            # Another request created it first
            await self.db.rollback()
            row = await self._find(settings_type)
        return row

    async def ensure_defaults(self) -> None:
        for settings_type in DEFAULTS:
            await self.ensure(settings_type)

    async def get(self, settings_type: str) -> SiteSettings:
        return await self.ensure(settings_type)

    async def update(self, settings_type: str, changes: dict[str, Any]) -> SiteSettings:
        """Apply only the supplied fields; creates the document first if absent."""
        row = await self.ensure(settings_type)
        # Reassign so the JSON column is flagged dirty
        row.content = {**row.content, **changes}
        await self.db.commit()
        logger.info("Updated %s settings: %s", settings_type, sorted(changes))
        return row

    async def get_home(self) -> SiteSettings:
        return await self.get(SETTINGS_HOME)

    async def get_about(self) -> SiteSettings:
        return await self.get(SETTINGS_ABOUT)

    async def update_home(self, changes: dict[str, Any]) -> SiteSettings:
        return await self.update(SETTINGS_HOME, changes)

    async def update_about(self, changes: dict[str, Any]) -> SiteSettings:
        return await self.update(SETTINGS_ABOUT, changes)
