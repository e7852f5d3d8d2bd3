"""Pydantic schemas for the product catalog."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints

# Numeric(10, 2) upper bound
MAX_PRICE = 99_999_999.99

ProductName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Price = Annotated[float, Field(ge=0, le=MAX_PRICE, allow_inf_nan=False)]


class ProductCreate(BaseModel):
    """Create request (JSON body or multipart text fields)."""
    name: ProductName
    price: Price
    category: str = Field("", max_length=100)
    stock: int = Field(0, ge=0)
    description: str = ""
    image: str = ""  # URL; ignored when an image file is uploaded


class ProductUpdate(BaseModel):
    """Partial update: only supplied fields change; blank strings count as not supplied."""
    name: Optional[str] = Field(None, max_length=255)
    price: Optional[Price] = None
    category: Optional[str] = Field(None, max_length=100)
    stock: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None


class ProductResponse(BaseModel):
    id: str
    name: str
    price: float
    category: str
    stock: int
    image: str
    image_public_id: Optional[str] = None
    description: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductEnvelope(BaseModel):
    product: ProductResponse


class ProductListResponse(BaseModel):
    products: list[ProductResponse]


class ProductMutationResponse(BaseModel):
    message: str
    product: ProductResponse
