"""
Image hosting adapter.

Product images are stored with an external host and addressed by an opaque
public id. CloudinaryImageHost talks to the Cloudinary REST upload API with
signed requests; InMemoryImageHost is used when no credentials are configured
(local development, tests).

Usage:
    host = get_image_host()
    hosted = await host.upload(ImageUpload(data, "loaf.jpg", "image/jpeg"))
    ...
    await host.delete(hosted.public_id)
"""
import hashlib
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx

from storefront.config import Settings, get_settings
from storefront.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"


@dataclass
class ImageUpload:
    """An image file received from a client."""
    data: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class HostedImage:
    """Result of a successful upload."""
    url: str
    public_id: str


class ImageHost(ABC):
    """Upload/delete operations keyed by an opaque public id."""

    @abstractmethod
    async def upload(self, image: ImageUpload) -> HostedImage:
        ...

    @abstractmethod
    async def delete(self, public_id: str) -> None:
        ...


class InMemoryImageHost(ImageHost):
    """Keeps uploaded images in process memory."""

    def __init__(self, folder: str = "biscotto-bakeria"):
        self.folder = folder
        self.images: dict[str, ImageUpload] = {}
        self.deleted: list[str] = []

    async def upload(self, image: ImageUpload) -> HostedImage:
        public_id = f"{self.folder}/{uuid.uuid4().hex}"
        self.images[public_id] = image
        return HostedImage(url=f"memory://{public_id}", public_id=public_id)

    async def delete(self, public_id: str) -> None:
        self.images.pop(public_id, None)
        self.deleted.append(public_id)


class CloudinaryImageHost(ImageHost):
    """
    Cloudinary upload API client.

    Signature = SHA-1 of the alphabetically sorted signed params joined as
    ``k=v&k=v`` followed by the API secret. file, api_key and resource_type
    are never signed.
    """

    RESOURCE_TYPE = "image"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "biscotto-bakeria",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self._transport = transport

    def sign(self, params: dict) -> str:
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] != "")
        return hashlib.sha1((to_sign + self.api_secret).encode("utf-8")).hexdigest()

    def _url(self, action: str) -> str:
        return f"{CLOUDINARY_API_BASE}/{self.cloud_name}/{self.RESOURCE_TYPE}/{action}"

    def _signed(self, params: dict) -> dict:
        params = {**params, "timestamp": str(int(time.time()))}
        params["signature"] = self.sign(params)
        params["api_key"] = self.api_key
        return params

    def _client(self) -> httpx.AsyncClient:
        # timeout=None keeps the platform behaviour: no application-level timeout
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def upload(self, image: ImageUpload) -> HostedImage:
        data = self._signed({"folder": self.folder})
        files = {"file": (image.filename, image.data, image.content_type)}
        try:
            async with self._client() as client:
                resp = await client.post(self._url("upload"), data=data, files=files)
        except httpx.HTTPError as e:
            logger.error("Cloudinary upload failed: %s: %s", type(e).__name__, e)
            raise UpstreamFailure("Image upload failed")

        if resp.status_code != 200:
            logger.error("Cloudinary upload error: status=%s body=%s", resp.status_code, resp.text[:300])
            raise UpstreamFailure("Image upload failed")

        body = resp.json()
        logger.info("Uploaded image %s", body.get("public_id"))
        return HostedImage(url=body["secure_url"], public_id=body["public_id"])

    async def delete(self, public_id: str) -> None:
        data = self._signed({"public_id": public_id})
        try:
            async with self._client() as client:
                resp = await client.post(self._url("destroy"), data=data)
        except httpx.HTTPError as e:
            logger.error("Cloudinary destroy failed for %s: %s", public_id, e)
            raise UpstreamFailure("Image delete failed")

        if resp.status_code != 200:
            logger.error("Cloudinary destroy error: status=%s body=%s", resp.status_code, resp.text[:300])
            raise UpstreamFailure("Image delete failed")

        result = resp.json().get("result")
        if result not in ("ok", "not found"):
            raise UpstreamFailure(f"Image delete failed: {result}")
        logger.info("Deleted image %s (%s)", public_id, result)


def build_image_host(settings: Settings) -> ImageHost:
    if settings.cloudinary_configured:
        return CloudinaryImageHost(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
            timeout=settings.image_upload_timeout,
        )
    logger.warning("Cloudinary is not configured, using in-memory image host")
    return InMemoryImageHost(folder=settings.cloudinary_folder)


@lru_cache
def get_image_host() -> ImageHost:
    """FastAPI dependency — configured image host."""
    return build_image_host(get_settings())
