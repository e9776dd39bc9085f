"""Cart pricing — totals computed from live product prices.

Anything a client submits about prices is ignored; this is the only place
checkout turns cart contents into money.
"""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.catalog.product import Product
from checkout.settings import get_settings


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    category_id: str
    unit_price: float
    quantity: int
    is_cod_available: bool

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "category_id": self.category_id,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "line_total": self.line_total,
            "is_cod_available": self.is_cod_available,
        }


@dataclass(frozen=True)
class CartSnapshot:
    customer_id: str
    revision: int
    lines: list[PricedLine] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)

    @property
    def delivery_fee(self) -> float:
        return get_settings().delivery_fee_for(self.subtotal)

    @property
    def category_ids(self) -> list[str]:
        return sorted({line.category_id for line in self.lines})

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "revision": self.revision,
            "lines": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "category_ids": self.category_ids,
        }


def find_cart(customer_id) -> Cart | None:
    carts = current_domain.repository_for(Cart)._dao.query.filter(customer_id=str(customer_id)).all().items
    return carts[0] if carts else None


def snapshot_cart(customer_id) -> CartSnapshot:
    """Price the customer's cart; a missing cart prices as empty."""
    cart = find_cart(customer_id)
    if cart is None:
        return CartSnapshot(customer_id=str(customer_id), revision=0)

    product_repo = current_domain.repository_for(Product)
    lines = []
    for line in cart.lines:
        product = product_repo.get(line.product_id)
        lines.append(
            PricedLine(
                product_id=str(product.id),
                name=product.display_name,
                category_id=str(product.category_id),
                unit_price=product.price,
                quantity=line.quantity,
                is_cod_available=product.is_cod_available,
            )
        )
    return CartSnapshot(customer_id=str(customer_id), revision=cart.revision, lines=lines)
