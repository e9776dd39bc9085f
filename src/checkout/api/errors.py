"""HTTP mapping for CheckoutError.

Every protocol failure is returned as ``{"error": {"kind": ..., "message": ...}}``
so clients can branch on ``kind`` instead of parsing messages.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from checkout.errors import CheckoutError, CheckoutErrorKind

STATUS_CODES = {
    CheckoutErrorKind.INVALID_REQUEST: 400,
    CheckoutErrorKind.CART_EMPTY: 422,
    CheckoutErrorKind.ADDRESS_NOT_FOUND: 409,
    CheckoutErrorKind.COUPON_REJECTED: 422,
    CheckoutErrorKind.COD_UNAVAILABLE: 422,
    CheckoutErrorKind.GATEWAY_NOT_CONFIGURED: 503,
    CheckoutErrorKind.GATEWAY_UNAVAILABLE: 502,
    CheckoutErrorKind.SIGNATURE_MISMATCH: 400,
    CheckoutErrorKind.ORDER_NOT_FOUND: 404,
    CheckoutErrorKind.PAYMENT_CONFLICT: 409,
}


def register_checkout_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:  # noqa: ARG001
        return JSONResponse(status_code=STATUS_CODES[exc.kind], content={"error": exc.to_dict()})
