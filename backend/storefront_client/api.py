"""
HTTP client for the storefront REST API.

Every call attaches ``Authorization: Bearer <token>`` when the token store
holds a token. Non-2xx responses raise ApiError carrying the server's
``message``.

Usage:
    async with StorefrontAPI("http://localhost:5000/api", MemoryTokenStore()) as api:
        data = await api.list_products()
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from storefront_client.token_store import MemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"


class ApiError(Exception):
    """Request failed; message is the server's message when it sent one."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


@dataclass
class ImageFile:
    """An image to upload with a product create/update."""
    filename: str
    data: bytes
    content_type: str = "image/jpeg"


PRODUCT_FIELDS = ("name", "price", "category", "stock", "description", "image")


def clean_product_data(product: dict[str, Any]) -> dict[str, Any]:
    """Normalize admin form input the way the create/update forms submit it."""

    def _number(value, cast):
        try:
            return cast(value)
        except (TypeError, ValueError):
            return cast(0)

    return {
        "name": product.get("name") or "",
        "price": _number(product.get("price"), float),
        "category": product.get("category") or "",
        "stock": _number(product.get("stock"), int),
        "description": product.get("description") or "",
        "image": product.get("image") or "",
    }


class StorefrontAPI:
    """Thin async wrapper over the REST endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store or MemoryTokenStore()
        self._client = httpx.AsyncClient(
            base_url=self.base_url, transport=transport, timeout=timeout
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        token = self.token_store.load()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(f"Network error: {e}")

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.is_error:
            message = data.get("message") if isinstance(data, dict) else None
            raise ApiError(message or "Something went wrong", resp.status_code, data)
        return data

    # ── Auth ──────────────────────────────────────────────────

    async def signup(self, email: str, name: str, password: str) -> dict:
        return await self.request(
            "POST", "/auth/signup", json={"email": email, "name": name, "password": password}
        )

    async def verify_email(self, user_id: str, code: str) -> dict:
        return await self.request(
            "POST", "/auth/verify-email", json={"user_id": user_id, "code": code}
        )

    async def login(self, email: str, password: str) -> dict:
        return await self.request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )

    async def forgot_password(self, email: str) -> dict:
        return await self.request("POST", "/auth/forgot-password", json={"email": email})

    async def reset_password(
        self,
        code: str,
        new_password: str,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> dict:
        body: dict[str, Any] = {"code": code, "new_password": new_password}
        if user_id:
            body["user_id"] = user_id
        if email:
            body["email"] = email
        return await self.request("POST", "/auth/reset-password", json=body)

    async def get_me(self) -> dict:
        return await self.request("GET", "/auth/me")

    async def update_profile(self, name: Optional[str] = None, email: Optional[str] = None) -> dict:
        body = {k: v for k, v in {"name": name, "email": email}.items() if v}
        return await self.request("PUT", "/auth/profile", json=body)

    # ── Products ──────────────────────────────────────────────

    async def list_products(self) -> dict:
        return await self.request("GET", "/products")

    async def get_product(self, product_id: str) -> dict:
        return await self.request("GET", f"/products/{product_id}")

    async def products_by_category(self, category: str) -> dict:
        return await self.request("GET", f"/products/category/{quote(category, safe='')}")

    async def _send_product(
        self, method: str, path: str, product: dict, image: Optional[ImageFile]
    ) -> dict:
        data = clean_product_data(product)
        if image is None:
            return await self.request(method, path, json=data)

        # The uploaded file replaces the image URL
        form = {k: str(v) for k, v in data.items() if k != "image"}
        files = {"image": (image.filename, image.data, image.content_type)}
        return await self.request(method, path, data=form, files=files)

    async def create_product(self, product: dict, image: Optional[ImageFile] = None) -> dict:
        return await self._send_product("POST", "/products", product, image)

    async def update_product(
        self, product_id: str, product: dict, image: Optional[ImageFile] = None
    ) -> dict:
        return await self._send_product("PUT", f"/products/{product_id}", product, image)

    async def delete_product(self, product_id: str) -> dict:
        return await self.request("DELETE", f"/products/{product_id}")

    # ── Settings ──────────────────────────────────────────────

    async def get_home(self) -> dict:
        return await self.request("GET", "/settings/home")

    async def update_home(self, settings: dict) -> dict:
        return await self.request("PUT", "/settings/home", json=settings)

    async def get_about(self) -> dict:
        return await self.request("GET", "/settings/about")

    async def update_about(self, settings: dict) -> dict:
        return await self.request("PUT", "/settings/about", json=settings)

    async def health(self) -> dict:
        return await self.request("GET", "/health")
