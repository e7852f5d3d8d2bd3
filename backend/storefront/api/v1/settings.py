"""
Site settings API endpoints.

GET /settings/home   — Home page content (public)
PUT /settings/home   — Partial update (admin)
GET /settings/about  — About page content (public)
PUT /settings/about  — Partial update (admin)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.security import require_admin
from storefront.models.site_settings import SiteSettings
from storefront.models.user import User
from storefront.schemas.site_settings import (
    AboutSettingsEnvelope,
    AboutSettingsResponse,
    AboutSettingsUpdate,
    AboutSettingsUpdateResponse,
    HomeSettingsEnvelope,
    HomeSettingsResponse,
    HomeSettingsUpdate,
    HomeSettingsUpdateResponse,
)
from storefront.services.settings_service import SiteSettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


def get_settings_service(db: AsyncSession = Depends(get_db)) -> SiteSettingsService:
    return SiteSettingsService(db)


def _home(row: SiteSettings) -> HomeSettingsResponse:
    return HomeSettingsResponse(**row.content, updated_at=row.updated_at)


def _about(row: SiteSettings) -> AboutSettingsResponse:
    return AboutSettingsResponse(**row.content, updated_at=row.updated_at)


@router.get("/home", response_model=HomeSettingsEnvelope)
async def get_home_settings(service: SiteSettingsService = Depends(get_settings_service)):
    return HomeSettingsEnvelope(settings=_home(await service.get_home()))


@router.put("/home", response_model=HomeSettingsUpdateResponse)
async def update_home_settings(
    body: HomeSettingsUpdate,
    admin: User = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    row = await service.update_home(body.model_dump(exclude_unset=True, exclude_none=True))
    return HomeSettingsUpdateResponse(
        message="Home settings updated successfully",
        settings=_home(row),
    )


@router.get("/about", response_model=AboutSettingsEnvelope)
async def get_about_settings(service: SiteSettingsService = Depends(get_settings_service)):
    return AboutSettingsEnvelope(settings=_about(await service.get_about()))


@router.put("/about", response_model=AboutSettingsUpdateResponse)
async def update_about_settings(
    body: AboutSettingsUpdate,
    admin: User = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    row = await service.update_about(body.model_dump(exclude_unset=True, exclude_none=True))
    return AboutSettingsUpdateResponse(
        message="About settings updated successfully",
        settings=_about(row),
    )
