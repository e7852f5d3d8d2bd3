"""
Client catalog state: product list plus home/about page content.

Admin mutations go through the API and are followed by a full product
refresh; the server stays the source of truth.
"""
import logging
from typing import Any, Optional

from storefront_client.api import ApiError, ImageFile, StorefrontAPI

logger = logging.getLogger(__name__)

DEFAULT_HOME_SETTINGS: dict[str, Any] = {
    "hero_image": "https://picsum.photos/id/326/800/600",
    "hero_title": "Simple, Yet Delectable",
    "hero_subtitle": (
        "Discover and indulge in our irresistible aroma of freshly baked croissants. "
        "Golden, flaky, and crafted to perfection every morning."
    ),
    "featured_product_ids": [],
    "collage_images": [],
}

DEFAULT_ABOUT_SETTINGS: dict[str, Any] = {
    "founder_image": "https://picsum.photos/id/338/800/1000",
    "founder_quote": (
        "Baking is about patience. In a world that moves so fast, bread forces you "
        "to slow down. You can't rush the rise."
    ),
    "collage_images": [],
    "flagship_image": "https://picsum.photos/id/122/800/600",
}


def _with_defaults(settings: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Keep only known keys; blank values fall back to the default."""
    return {key: settings.get(key) or default for key, default in defaults.items()}


class CatalogController:
    def __init__(self, api: StorefrontAPI):
        self.api = api
        self.products: list[dict[str, Any]] = []
        self.home_settings: dict[str, Any] = dict(DEFAULT_HOME_SETTINGS)
        self.about_settings: dict[str, Any] = dict(DEFAULT_ABOUT_SETTINGS)
        self.loading = True

    # ── Loading ───────────────────────────────────────────────

    async def load(self) -> None:
        """Fetch products and both settings documents; failures keep defaults."""
        try:
            await self.refresh_products()

            try:
                data = await self.api.get_home()
                self.home_settings = _with_defaults(data.get("settings") or {}, DEFAULT_HOME_SETTINGS)
            except ApiError as e:
                logger.warning("Using default home settings: %s", e.message)

            try:
                data = await self.api.get_about()
                self.about_settings = _with_defaults(data.get("settings") or {}, DEFAULT_ABOUT_SETTINGS)
            except ApiError as e:
                logger.warning("Using default about settings: %s", e.message)
        finally:
            self.loading = False

    async def refresh_products(self) -> None:
        try:
            data = await self.api.list_products()
        except ApiError as e:
            logger.error("Failed to refresh products: %s", e.message)
            return
        self.products = data.get("products", [])

    # ── Queries ───────────────────────────────────────────────

    def find(self, product_id: str) -> Optional[dict[str, Any]]:
        for product in self.products:
            if product["id"] == product_id:
                return product
        return None

    def by_category(self, category: str) -> list[dict[str, Any]]:
        needle = category.lower()
        return [p for p in self.products if needle in (p.get("category") or "").lower()]

    def featured_products(self) -> list[dict[str, Any]]:
        featured = []
        for pid in self.home_settings.get("featured_product_ids") or []:
            product = self.find(pid)
            if product is not None:
                featured.append(product)
        return featured

    # ── Admin mutations (raise ApiError) ──────────────────────

    async def add_product(self, product: dict[str, Any], image: Optional[ImageFile] = None) -> None:
        await self.api.create_product(product, image)
        await self.refresh_products()

    async def update_product(
        self, product_id: str, product: dict[str, Any], image: Optional[ImageFile] = None
    ) -> None:
        await self.api.update_product(product_id, product, image)
        await self.refresh_products()

    async def delete_product(self, product_id: str) -> None:
        await self.api.delete_product(product_id)
        await self.refresh_products()

        featured = self.home_settings.get("featured_product_ids") or []
        if product_id in featured:
            try:
                await self.update_home_settings(
                    {"featured_product_ids": [pid for pid in featured if pid != product_id]}
                )
            except ApiError as e:
                logger.error("Failed to update home settings after delete: %s", e.message)

    async def update_home_settings(self, changes: dict[str, Any]) -> None:
        merged = {**self.home_settings, **changes}
        data = await self.api.update_home(merged)
        settings = data.get("settings")
        self.home_settings = _with_defaults(settings, DEFAULT_HOME_SETTINGS) if settings else merged

    async def update_about_settings(self, changes: dict[str, Any]) -> None:
        merged = {**self.about_settings, **changes}
        data = await self.api.update_about(merged)
        settings = data.get("settings")
        self.about_settings = _with_defaults(settings, DEFAULT_ABOUT_SETTINGS) if settings else merged
