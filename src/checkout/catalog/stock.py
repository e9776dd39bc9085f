"""Stock commitments — one record per confirmed order.

The record is keyed by order number, so a replayed confirmation finds it
and leaves product stock alone.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain

from checkout.catalog.product import Product
from checkout.domain import checkout

logger = structlog.get_logger(__name__)


@checkout.aggregate
class StockCommitment:
    order_number = String(identifier=True, max_length=50)
    units = Integer(default=0, min_value=0)
    committed_at = DateTime()


def commit_order_stock(order_number, lines) -> bool:
    """Take stock for every ``(product_id, quantity)`` line of an order, once.

    Returns False without side effects when the order already committed.
    """
    repo = current_domain.repository_for(StockCommitment)
    if repo._dao.query.filter(order_number=order_number).all().items:
        logger.info("stock_already_committed", order_number=order_number)
        return False

    product_repo = current_domain.repository_for(Product)
    units = 0
    for product_id, quantity in lines:
        product = product_repo.get(product_id)
        product.commit_stock(quantity, order_number)
        product_repo.add(product)
        units += quantity

    repo.add(StockCommitment(order_number=order_number, units=units, committed_at=datetime.now(UTC)))
    logger.info("stock_committed", order_number=order_number, units=units)
    return True
