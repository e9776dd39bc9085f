"""Checkout bounded context — cart finalization, coupons, and payment confirmation.

Turns a customer's cart into an order: validates coupons and COD eligibility,
creates pending orders, opens gateway payment intents, and confirms orders
once the gateway's signed callback has been verified.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
