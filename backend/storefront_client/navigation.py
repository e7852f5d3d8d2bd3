"""Page gating driven by the session state."""
from typing import Any, Optional

from storefront_client.session import AuthStep, SessionController

PROTECTED_PAGES = frozenset({"shop", "profile", "cart", "checkout", "product-detail", "admin"})
ADMIN_PAGES = frozenset({"admin"})

# Flow pages shown regardless of the requested page
FLOW_PAGES = {
    AuthStep.AWAITING_VERIFICATION: "verify-email",
    AuthStep.AWAITING_PASSWORD_RESET: "reset-password",
}


class Navigator:
    """Decides which page is shown for a navigation request."""

    def __init__(self, session: SessionController, start_page: str = "home"):
        self.session = session
        self.current_page = start_page
        self.selected_product: Optional[dict[str, Any]] = None

    def resolve(self, page: str) -> str:
        if page in PROTECTED_PAGES and not self.session.is_authenticated:
            return "signin"
        if page in ADMIN_PAGES and not self.session.is_admin:
            return "home"
        return page

    def navigate(self, page: str, product: Optional[dict[str, Any]] = None) -> str:
        if product is not None:
            self.selected_product = product
        self.current_page = self.resolve(page)
        return self.current_page

    @property
    def visible_page(self) -> str:
        """An in-progress verification or reset flow takes priority."""
        flow_page = FLOW_PAGES.get(self.session.step)
        if flow_page:
            return flow_page
        if self.current_page == "product-detail" and self.selected_product is None:
            return "shop"
        if self.current_page in ADMIN_PAGES and not self.session.is_admin:
            return "home"
        return self.current_page
