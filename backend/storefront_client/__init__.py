"""Client-side state for the storefront: API client, session, cart, catalog, navigation."""
from storefront_client.api import ApiError, ImageFile, StorefrontAPI  # noqa: F401
from storefront_client.cart import Cart, CheckoutSummary, EmptyCartError  # noqa: F401
from storefront_client.catalog import CatalogController  # noqa: F401
from storefront_client.navigation import Navigator  # noqa: F401
from storefront_client.session import ActionResult, AuthStep, SessionController  # noqa: F401
from storefront_client.token_store import FileTokenStore, MemoryTokenStore  # noqa: F401
