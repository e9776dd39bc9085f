"""Side effects of confirming an order: coupon usage, stock, and the cart.

Runs in the same unit of work as the confirmation itself and only on the
transition into CONFIRMED. Each effect is also keyed by order number, so a
replay still cannot apply it twice.
"""

import structlog
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.cart.pricing import find_cart
from checkout.catalog.stock import commit_order_stock
from checkout.coupon.redemption import redeem
from checkout.order.order import Order

logger = structlog.get_logger(__name__)


def settle_confirmed_order(order: Order) -> None:
    if order.coupon_code:
        redeem(
            coupon_code=order.coupon_code,
            customer_id=order.customer_id,
            order_number=order.order_number,
            discount_amount=order.pricing.discount,
            order_value=order.pricing.subtotal,
        )

    commit_order_stock(order.order_number, [(line.product_id, line.quantity) for line in order.lines])

    cart = find_cart(order.customer_id)
    if cart is not None and cart.lines:
        cart.clear(order.order_number)
        current_domain.repository_for(Cart).add(cart)

    logger.info("order_settled", order_number=order.order_number, coupon_code=order.coupon_code)
