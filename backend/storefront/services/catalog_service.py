"""
Catalog Service — product CRUD with hosted images.

Image replacement order: upload new asset → commit record → delete old asset.
If the old asset cannot be deleted the record is still consistent; the
orphaned public id is logged for manual cleanup. If the record write fails
after an upload, the freshly uploaded asset is deleted again.

Deleting a product removes its hosted asset first, then the record.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.core.exceptions import NotFound, StorefrontError, ValidationFailed
from storefront.core.image_hosting import HostedImage, ImageHost, ImageUpload
from storefront.models.product import Product
from storefront.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


class CatalogService:
    """Product catalog operations."""

    def __init__(self, db: AsyncSession, image_host: ImageHost, settings: Settings):
        self.db = db
        self.image_host = image_host
        self.settings = settings

    # ── Reads ─────────────────────────────────────────────────────

    async def list_products(self) -> list[Product]:
        """All products, newest first. No pagination."""
        result = await self.db.execute(
            select(Product).order_by(Product.created_at.desc(), Product.id)
        )
        return list(result.scalars().all())

    async def list_by_category(self, pattern: str) -> list[Product]:
        """Case-insensitive substring match against category."""
        result = await self.db.execute(
            select(Product)
            .where(func.lower(Product.category).contains(pattern.lower(), autoescape=True))
            .order_by(Product.created_at.desc(), Product.id)
        )
        return list(result.scalars().all())

    async def get_product(self, product_id: str) -> Product:
        try:
            pid = uuid.UUID(str(product_id))
        except ValueError:
            raise NotFound("Product not found")
        product = await self.db.get(Product, pid)
        if product is None:
            raise NotFound("Product not found")
        return product

    # ── Images ────────────────────────────────────────────────────

    def validate_image(self, image: ImageUpload) -> None:
        if not (image.content_type or "").startswith("image/"):
            raise ValidationFailed("Not an image! Please upload an image.")
        if image.size == 0:
            raise ValidationFailed("Uploaded image is empty")
        if image.size > self.settings.max_image_bytes:
            raise ValidationFailed("Image is too large")

    async def _upload(self, image: ImageUpload) -> HostedImage:
        self.validate_image(image)
        hosted = await self.image_host.upload(image)
        logger.info("Uploaded product image %s", hosted.public_id)
        return hosted

    async def _discard_asset(self, public_id: str, reason: str) -> None:
        """Best-effort delete used after the record is already consistent."""
        try:
            await self.image_host.delete(public_id)
        except StorefrontError as e:
            logger.warning("Orphaned image asset %s (%s): %s", public_id, reason, e.message)

    async def _commit_or_discard(self, hosted: Optional[HostedImage]) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            if hosted is not None:
                await self._discard_asset(hosted.public_id, "record write failed")
            raise

    # ── Writes (admin) ────────────────────────────────────────────

    async def create_product(
        self, fields: ProductCreate, image: Optional[ImageUpload] = None
    ) -> Product:
        """Create a product; an uploaded file takes precedence over the image URL."""
        hosted = await self._upload(image) if image is not None else None

        product = Product(
            name=fields.name.strip(),
            price=_to_decimal(fields.price),
            category=fields.category.strip(),
            stock=fields.stock,
            description=fields.description,
            image=hosted.url if hosted else fields.image,
            image_public_id=hosted.public_id if hosted else None,
        )
        self.db.add(product)
        await self._commit_or_discard(hosted)
        logger.info("Product created: %s (%s)", product.name, product.id)
        return product

    async def update_product(
        self, product_id: str, fields: ProductUpdate, image: Optional[ImageUpload] = None
    ) -> Product:
        """Partial update; replaced hosted images are deleted after the write."""
        product = await self.get_product(product_id)
        changes: dict[str, Any] = {}
        for key, value in fields.model_dump(exclude_unset=True).items():
            if key in ("name", "category") and value is not None:
                value = value.strip()
            if value is None or value == "":
                continue
            changes[key] = value

        old_public_id = product.image_public_id
        hosted: Optional[HostedImage] = None

        if image is not None:
            hosted = await self._upload(image)
            product.image = hosted.url
            product.image_public_id = hosted.public_id
            changes.pop("image", None)
        elif "image" in changes and changes["image"] != product.image:
            # Plain URL replaces a hosted asset
            product.image = changes.pop("image")
            product.image_public_id = None
        else:
            changes.pop("image", None)

        if "price" in changes:
            changes["price"] = _to_decimal(changes["price"])
        for key, value in changes.items():
            setattr(product, key, value)

        await self._commit_or_discard(hosted)
        logger.info("Product updated: %s (%s)", product.name, product.id)

        if old_public_id and old_public_id != product.image_public_id:
            await self._discard_asset(old_public_id, "image replaced")
        return product

    async def delete_product(self, product_id: str) -> None:
        product = await self.get_product(product_id)
        if product.image_public_id:
            logger.info("Deleting image %s", product.image_public_id)
            await self.image_host.delete(product.image_public_id)

        await self.db.delete(product)
        await self.db.commit()
        logger.info("Product deleted: %s", product_id)
