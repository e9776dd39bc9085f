"""Order lookups shared by intake, confirmation, and coupon evaluation."""

from protean.utils.globals import current_domain

from checkout.order.order import Order, OrderStatus, PaymentMethod


def _orders(**filters) -> list:
    return current_domain.repository_for(Order)._dao.query.filter(**filters).all().items


def find_order(order_number) -> Order | None:
    matches = _orders(order_number=order_number)
    return matches[0] if matches else None


def has_confirmed_orders(customer_id) -> bool:
    return bool(_orders(customer_id=str(customer_id), status=OrderStatus.CONFIRMED.value))


def pending_online_order_for_session(customer_id, checkout_session_id) -> Order | None:
    """The open online attempt for this browser checkout session, if any."""
    if not checkout_session_id:
        return None
    matches = _orders(
        customer_id=str(customer_id),
        checkout_session_id=checkout_session_id,
        status=OrderStatus.PENDING.value,
        payment_method=PaymentMethod.ONLINE.value,
    )
    return max(matches, key=lambda order: order.placed_at) if matches else None
