"""
Shopping cart held on the client.

Lines are keyed by product id and keep a snapshot of the product as it was
when added. Quantities are always >= 1: setting a quantity <= 0 removes the
line. Nothing here checks stock, and checkout is a simulated confirmation
that never writes back to the catalog.
"""
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

TAX_RATE = Decimal("0.08")
CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class EmptyCartError(Exception):
    """Checkout attempted with nothing in the cart."""


@dataclass
class CartLine:
    product: dict[str, Any]
    quantity: int = 1

    @property
    def product_id(self) -> str:
        return str(self.product["id"])

    @property
    def unit_price(self) -> Decimal:
        return to_money(self.product.get("price", 0))

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CheckoutSummary:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass
class OrderConfirmation:
    customer_name: str
    lines: list[CartLine]
    summary: CheckoutSummary
    message: str = field(default="")


def summarize(lines: list[CartLine]) -> CheckoutSummary:
    """Subtotal, 8% tax and total, each rounded half-up to cents."""
    subtotal = sum((line.line_total for line in lines), Decimal("0")).quantize(CENT)
    tax = (subtotal * TAX_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    return CheckoutSummary(subtotal=subtotal, tax=tax, total=subtotal + tax)


class Cart:
    """Ordered collection of cart lines."""

    def __init__(self):
        self._lines: list[CartLine] = []

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def _find(self, product_id: str) -> CartLine | None:
        for line in self._lines:
            if line.product_id == str(product_id):
                return line
        return None

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def add(self, product: dict[str, Any]) -> CartLine:
        """Add one unit: increments an existing line or appends a new one."""
        line = self._find(product["id"])
        if line is not None:
            line.quantity += 1
            return line
        line = CartLine(product=dict(product), quantity=1)
        self._lines.append(line)
        return line

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        line = self._find(product_id)
        if line is not None:
            line.quantity = quantity

    def remove(self, product_id: str) -> None:
        """Remove a line; unknown ids are ignored."""
        self._lines = [line for line in self._lines if line.product_id != str(product_id)]

    def clear(self) -> None:
        self._lines = []

    @property
    def subtotal(self) -> Decimal:
        return summarize(self._lines).subtotal

    def summary(self) -> CheckoutSummary:
        return summarize(self._lines)

    def checkout(self, customer_name: str) -> OrderConfirmation:
        """Simulated order: returns a confirmation and empties the cart."""
        if not self._lines:
            raise EmptyCartError("You have no items in your basket")
        confirmation = OrderConfirmation(
            customer_name=customer_name,
            lines=self.lines,
            summary=self.summary(),
            message=f"Thank you for your order, {customer_name}! (This is a demo)",
        )
        self.clear()
        return confirmation
