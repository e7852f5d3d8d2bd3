"""
Products API endpoints.

GET    /products                      — List catalog (newest first)
GET    /products/category/{category}  — Case-insensitive category filter
GET    /products/{id}                 — Fetch one
POST   /products                      — Create (admin; JSON or multipart with `image` file)
PUT    /products/{id}                 — Partial update (admin; JSON or multipart)
DELETE /products/{id}                 — Delete (admin)
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from storefront.config import get_settings
from storefront.core.database import get_db
from storefront.core.exceptions import ValidationFailed
from storefront.core.image_hosting import ImageHost, ImageUpload, get_image_host
from storefront.core.security import require_admin
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.auth import MessageResponse
from storefront.schemas.product import (
    ProductCreate,
    ProductEnvelope,
    ProductListResponse,
    ProductMutationResponse,
    ProductResponse,
    ProductUpdate,
)
from storefront.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def get_catalog_service(
    db: AsyncSession = Depends(get_db),
    image_host: ImageHost = Depends(get_image_host),
) -> CatalogService:
    return CatalogService(db, image_host, get_settings())


def _product_to_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        name=product.name,
        price=float(product.price),
        category=product.category,
        stock=product.stock,
        image=product.image,
        image_public_id=product.image_public_id,
        description=product.description,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


# ── Body parsing (JSON or multipart) ──────────────────────

async def _read_payload(request: Request) -> tuple[dict[str, Any], Optional[ImageUpload]]:
    """Return (fields, image file) from a JSON or form body."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields: dict[str, Any] = {}
        image: Optional[ImageUpload] = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == "image" and value.filename:
                    image = ImageUpload(
                        data=await value.read(),
                        filename=value.filename,
                        content_type=value.content_type or "",
                    )
            elif value != "":
                # Empty form fields mean "not supplied"
                fields[key] = value
        return fields, image

    try:
        body = await request.json()
    except ValueError:
        raise ValidationFailed("Request body must be JSON or multipart form data")
    if not isinstance(body, dict):
        raise ValidationFailed("Request body must be a JSON object")
    return body, None


def _validate(schema: type[BaseModel], data: dict[str, Any]):
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


# ── Public ────────────────────────────────────────────────

@router.get("", response_model=ProductListResponse)
async def list_products(catalog: CatalogService = Depends(get_catalog_service)):
    """All products, newest first."""
    products = await catalog.list_products()
    return ProductListResponse(products=[_product_to_response(p) for p in products])


@router.get("/category/{category:path}", response_model=ProductListResponse)
async def products_by_category(
    category: str, catalog: CatalogService = Depends(get_catalog_service)
):
    products = await catalog.list_by_category(category)
    return ProductListResponse(products=[_product_to_response(p) for p in products])


@router.get("/{product_id}", response_model=ProductEnvelope)
async def get_product(product_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    product = await catalog.get_product(product_id)
    return ProductEnvelope(product=_product_to_response(product))


# ── Admin ─────────────────────────────────────────────────

@router.post("", response_model=ProductMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    admin: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Create a product. An uploaded `image` file is hosted; otherwise `image` is a URL."""
    fields, image = await _read_payload(request)
    payload = _validate(ProductCreate, fields)
    product = await catalog.create_product(payload, image)
    logger.info("Product %s created by %s", product.id, admin.email)
    return ProductMutationResponse(
        message="Product created successfully",
        product=_product_to_response(product),
    )


@router.put("/{product_id}", response_model=ProductMutationResponse)
async def update_product(
    product_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Partial update; only supplied fields change."""
    fields, image = await _read_payload(request)
    payload = _validate(ProductUpdate, fields)
    product = await catalog.update_product(product_id, payload, image)
    logger.info("Product %s updated by %s", product.id, admin.email)
    return ProductMutationResponse(
        message="Product updated successfully",
        product=_product_to_response(product),
    )


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    admin: User = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    await catalog.delete_product(product_id)
    logger.info("Product %s deleted by %s", product_id, admin.email)
    return MessageResponse(message="Product deleted successfully")
