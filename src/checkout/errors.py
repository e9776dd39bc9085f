"""Typed failures raised at the order intake and payment verification boundary.

Callers branch on ``CheckoutError.kind``, never on the message text.
"""

from enum import Enum


class CheckoutErrorKind(Enum):
    INVALID_REQUEST = "invalid_request"
    CART_EMPTY = "cart_empty"
    ADDRESS_NOT_FOUND = "address_not_found"
    COUPON_REJECTED = "coupon_rejected"
    COD_UNAVAILABLE = "cod_unavailable"
    GATEWAY_NOT_CONFIGURED = "gateway_not_configured"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    SIGNATURE_MISMATCH = "signature_mismatch"
    ORDER_NOT_FOUND = "order_not_found"
    PAYMENT_CONFLICT = "payment_conflict"


class CheckoutError(Exception):
    """A protocol failure with a machine-readable kind and extra details."""

    def __init__(self, kind: CheckoutErrorKind, message: str, **details) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, **self.details}

    def __repr__(self) -> str:
        return f"CheckoutError({self.kind.value!r}, {self.message!r})"
