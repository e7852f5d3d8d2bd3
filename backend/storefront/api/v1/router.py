"""API v1 router."""

from datetime import datetime, timezone

from fastapi import APIRouter

from storefront.api.v1.auth import router as auth_router
from storefront.api.v1.products import router as products_router
from storefront.api.v1.settings import router as settings_router
from storefront.config import get_settings

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(products_router)
api_router.include_router(settings_router)


@api_router.get("/health")
async def health():
    """Liveness probe; env flags report which integrations are configured."""
    settings = get_settings()
    return {
        "status": "OK",
        "message": f"{settings.app_name} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "env": {
            "image_hosting": settings.cloudinary_configured,
            "database": bool(settings.database_url or settings.postgres_host),
            "jwt": settings.secret_key != "your-secret-key-change-in-production",
        },
    }
