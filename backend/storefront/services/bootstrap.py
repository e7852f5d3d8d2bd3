"""Startup seeding: default admin account and default content documents."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.models.user import ROLE_ADMIN, User, normalize_email
from storefront.services.settings_service import SiteSettingsService

logger = logging.getLogger(__name__)


async def ensure_default_admin(db: AsyncSession, settings: Settings) -> bool:
    """Create the configured admin if no user has that email. Returns True if created."""
    email = normalize_email(settings.default_admin_email)
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        return False

    admin = User(
        email=email,
        name=settings.default_admin_name,
        role=ROLE_ADMIN,
        is_verified=True,
    )
    admin.set_password(settings.default_admin_password)
    db.add(admin)
    try:
        await db.commit()
    except IntegrityError:
        # Another worker seeded it concurrently
        await db.rollback()
        return False

    logger.info("Default admin user created: %s", email)
    return True


async def bootstrap(db: AsyncSession, settings: Settings) -> None:
    """Idempotent startup initialization."""
    await ensure_default_admin(db, settings)
    await SiteSettingsService(db).ensure_defaults()
