"""Product listing (CQRS) — the live price, COD flag, and stock checkout reads.

Catalogue management is owned elsewhere; this aggregate holds only what
checkout needs to price a cart and settle a confirmed order.
"""

import structlog
from protean.fields import Boolean, Float, Identifier, Integer, String

from checkout.domain import checkout

logger = structlog.get_logger(__name__)


@checkout.aggregate
class Product:
    name = String(required=True, max_length=255)
    short_description = String(max_length=255)
    category_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
    is_cod_available = Boolean(default=True)
    stock = Integer(default=0, min_value=0)

    @property
    def display_name(self) -> str:
        return self.short_description or self.name

    def commit_stock(self, quantity, order_number):
        """Take stock for a confirmed order. Never drops below zero."""
        if quantity > self.stock:
            logger.warning(
                "stock_oversold",
                product_id=str(self.id),
                order_number=order_number,
                requested=quantity,
                available=self.stock,
            )
        self.stock = max(self.stock - quantity, 0)
