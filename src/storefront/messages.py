"""Customer-facing checkout messages."""

SELECT_ADDRESS = "Please select a delivery address"
SELECT_PAYMENT_METHOD = "Please select a payment method"
FINISH_PREVIOUS_STEPS = "Please complete the previous checkout steps"
ADDRESS_GONE = "The selected address is no longer available. Please choose another one."
CART_EMPTY = "Your cart is empty"
SUBMISSION_IN_PROGRESS = "Your order is already being placed"
ALREADY_COMPLETED = "This checkout is already complete"
ORDER_PLACED = "Order placed successfully!"

GATEWAY_NOT_CONFIGURED = "Online payment is currently unavailable. Please try Cash on Delivery or contact support."
PAYMENT_CANCELLED = "Payment cancelled"
SDK_LOAD_FAILED = "We couldn't load the payment window. Check your connection and try again."
NO_CHARGE_RETRY = "No charge was made. You can safely try again."


def payment_unconfirmed(order_number: str) -> str:
    return (
        "Payment received but not yet confirmed. Do not pay again; "
        f"contact support with order {order_number}."
    )
