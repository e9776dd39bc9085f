"""FastAPI routes for the Checkout domain — coupons, cart, orders, and payment."""

import json

import structlog
from fastapi import APIRouter, Header, HTTPException, Request
from protean.utils.globals import current_domain

from checkout.addresses import get_address_book
from checkout.api.schemas import (
    AddCartItemRequest,
    CartRevisionResponse,
    ConfirmationResponse,
    CouponCodeResponse,
    CouponEvaluationResponse,
    CreateCouponRequest,
    OrderCreatedResponse,
    PlaceOrderRequest,
    StatusResponse,
    ValidateCouponRequest,
    VerifyPaymentRequest,
)
from checkout.cart.management import AddToCart, RemoveFromCart
from checkout.cart.pricing import snapshot_cart
from checkout.cod.eligibility import check_cod
from checkout.coupon.coupon import normalize_code
from checkout.coupon.evaluation import available_coupons, evaluate_coupon
from checkout.coupon.management import CreateCoupon
from checkout.coupon.redemption import coupon_statistics
from checkout.errors import CheckoutError, CheckoutErrorKind
from checkout.gateway import get_gateway
from checkout.gateway.port import GatewayNotConfigured
from checkout.order.confirmation import verify_and_confirm
from checkout.order.history import find_order
from checkout.order.intake import place_order
from checkout.order.webhook import handle_gateway_event

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/checkout", tags=["checkout"])


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
@router.post("/coupons/validate", response_model=CouponEvaluationResponse)
async def validate_coupon(body: ValidateCouponRequest) -> CouponEvaluationResponse:
    """Evaluate a coupon against the customer's current order value."""
    evaluation = evaluate_coupon(body.code, body.customer_id, body.order_value, body.category_ids)
    return CouponEvaluationResponse(**evaluation.to_dict())


@router.get("/coupons/available")
async def list_available_coupons(customer_id: str, order_value: float):
    """Coupons the customer can use on an order of this value, best first."""
    return available_coupons(customer_id, order_value)


@router.post("/coupons", status_code=201, response_model=CouponCodeResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponCodeResponse:
    command = CreateCoupon(**body.model_dump())
    code = current_domain.process(command, asynchronous=False)
    return CouponCodeResponse(code=code)


@router.get("/coupons/{code}/statistics")
async def get_coupon_statistics(code: str):
    return coupon_statistics(normalize_code(code))


# ---------------------------------------------------------------------------
# Cart, addresses, COD
# ---------------------------------------------------------------------------
@router.get("/customers/{customer_id}/cart")
async def get_cart(customer_id: str):
    """The cart priced at live product prices."""
    return snapshot_cart(customer_id).to_dict()


@router.post("/customers/{customer_id}/cart/items", response_model=CartRevisionResponse)
async def add_cart_item(customer_id: str, body: AddCartItemRequest) -> CartRevisionResponse:
    command = AddToCart(customer_id=customer_id, product_id=body.product_id, quantity=body.quantity)
    revision = current_domain.process(command, asynchronous=False)
    return CartRevisionResponse(revision=revision)


@router.delete("/customers/{customer_id}/cart/items/{product_id}", response_model=CartRevisionResponse)
async def remove_cart_item(customer_id: str, product_id: str) -> CartRevisionResponse:
    command = RemoveFromCart(customer_id=customer_id, product_id=product_id)
    revision = current_domain.process(command, asynchronous=False)
    return CartRevisionResponse(revision=revision)


@router.get("/customers/{customer_id}/addresses")
async def list_addresses(customer_id: str):
    return {"addresses": [address.to_dict() for address in get_address_book().list(customer_id)]}


@router.get("/customers/{customer_id}/cod-eligibility")
async def get_cod_eligibility(customer_id: str):
    return check_cod(customer_id).to_dict()


# ---------------------------------------------------------------------------
# Orders & payment
# ---------------------------------------------------------------------------
@router.post("/orders", status_code=201, response_model=OrderCreatedResponse)
async def create_order(body: PlaceOrderRequest) -> OrderCreatedResponse:
    """Place an order from the customer's cart.

    COD orders come back confirmed. Online orders come back pending with the
    options the client needs to open the gateway checkout.
    """
    result = place_order(
        customer_id=body.customer_id,
        address_id=body.address_id,
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        checkout_session_id=body.checkout_session_id,
    )
    return OrderCreatedResponse(**result.to_dict())


@router.post("/orders/{order_number}/payment/verify", response_model=ConfirmationResponse)
async def verify_payment(order_number: str, body: VerifyPaymentRequest) -> ConfirmationResponse:
    """Verify the gateway's signed success payload and confirm the order."""
    result = verify_and_confirm(order_number, body.gateway_order_id, body.payment_id, body.signature)
    return ConfirmationResponse(**result.to_dict())


@router.get("/orders/{order_number}")
async def get_order(order_number: str):
    order = find_order(order_number)
    if order is None:
        raise CheckoutError(CheckoutErrorKind.ORDER_NOT_FOUND, f"Order {order_number} was not found")
    return order.to_dict()


@router.post("/payments/webhook", response_model=StatusResponse)
async def process_webhook(
    request: Request,
    x_razorpay_signature: str = Header(default=""),
) -> StatusResponse:
    """Process a payment gateway webhook callback."""
    payload = await request.body()
    try:
        authentic = get_gateway().verify_webhook_signature(payload, x_razorpay_signature)
    except GatewayNotConfigured as exc:
        raise HTTPException(status_code=503, detail="Webhook secret is not configured") from exc
    if not authentic:
        logger.warning("payment_signature_mismatch", source="webhook", payload_bytes=len(payload))
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    return StatusResponse(status=handle_gateway_event(json.loads(payload)))
