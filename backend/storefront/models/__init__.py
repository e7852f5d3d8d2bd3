"""Models module."""
from storefront.models.product import Product  # noqa: F401
from storefront.models.site_settings import SiteSettings  # noqa: F401
from storefront.models.user import User  # noqa: F401
