"""Cart aggregate (CQRS) — what the customer is about to buy.

One cart per customer. ``revision`` increases on every change so clients can
tell whether anything they derived from the cart (COD eligibility, coupon
discounts) is stale.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from checkout.cart.events import CartChanged, CartCleared
from checkout.domain import checkout


@checkout.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@checkout.aggregate
class Cart:
    customer_id = Identifier(identifier=True)
    lines = HasMany(CartLine)
    revision = Integer(default=0)
    updated_at = DateTime()

    def _line_for(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def _touch(self):
        self.revision += 1
        self.updated_at = datetime.now(UTC)
        self.raise_(CartChanged(customer_id=str(self.customer_id), revision=self.revision))

    def add_item(self, product_id, quantity=1):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self._line_for(product_id)
        if line:
            line.quantity += quantity
        else:
            self.add_lines(CartLine(product_id=product_id, quantity=quantity))
        self._touch()

    def update_quantity(self, product_id, quantity):
        line = self._line_for(product_id)
        if line is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line.quantity = quantity
        self._touch()

    def remove_item(self, product_id):
        line = self._line_for(product_id)
        if line is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        self.remove_lines(line)
        self._touch()

    def clear(self, order_number):
        for line in list(self.lines):
            self.remove_lines(line)
        self.revision += 1
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(customer_id=str(self.customer_id), order_number=order_number, revision=self.revision))
