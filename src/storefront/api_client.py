"""HTTP client for the checkout API.

Works with any ``requests``-compatible session, which lets tests drive it
with FastAPI's TestClient. Typed server errors come back as CheckoutError
with the same kind the server raised; network failures and untyped 5xx
responses become TransientError.
"""

import requests
import structlog

from checkout.errors import CheckoutError, CheckoutErrorKind

logger = structlog.get_logger(__name__)

_KINDS = {kind.value: kind for kind in CheckoutErrorKind}


class TransientError(Exception):
    """The request may not have reached the server; repeating it is safe."""


def extract_error_detail(response) -> str:
    """Human-readable message from a FastAPI or domain error body."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    if isinstance(body.get("detail"), list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "detail" in body:
        return str(body["detail"])

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            return error.get("message") or " | ".join(f"{k}: {v}" for k, v in error.items())
        return str(error)

    return str(body)[:300]


def _raise_for_error(response) -> None:
    if response.status_code < 400:
        return

    try:
        body = response.json()
    except ValueError:
        body = {}

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("kind") in _KINDS:
        details = {k: v for k, v in error.items() if k not in ("kind", "message")}
        raise CheckoutError(_KINDS[error["kind"]], error.get("message", ""), **details)

    if response.status_code >= 500:
        raise TransientError(f"Server error {response.status_code}: {extract_error_detail(response)}")
    raise CheckoutError(CheckoutErrorKind.INVALID_REQUEST, extract_error_detail(response), status=response.status_code)


class CheckoutApiClient:
    def __init__(self, base_url: str, session=None, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}/checkout{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("checkout_api_unreachable", method=method, path=path, error=str(exc))
            raise TransientError(str(exc)) from exc

        _raise_for_error(response)
        return response.json()

    def list_addresses(self, customer_id: str) -> list[dict]:
        return self._request("GET", f"/customers/{customer_id}/addresses")["addresses"]

    def get_cart(self, customer_id: str) -> dict:
        return self._request("GET", f"/customers/{customer_id}/cart")

    def cod_eligibility(self, customer_id: str) -> dict:
        return self._request("GET", f"/customers/{customer_id}/cod-eligibility")

    def validate_coupon(self, code: str, customer_id: str, order_value: float, category_ids: list[str]) -> dict:
        return self._request(
            "POST",
            "/coupons/validate",
            json={
                "code": code,
                "customer_id": customer_id,
                "order_value": order_value,
                "category_ids": list(category_ids),
            },
        )

    def place_order(
        self,
        customer_id: str,
        address_id: str,
        payment_method: str,
        coupon_code: str | None,
        checkout_session_id: str,
    ) -> dict:
        return self._request(
            "POST",
            "/orders",
            json={
                "customer_id": customer_id,
                "address_id": address_id,
                "payment_method": payment_method,
                "coupon_code": coupon_code,
                "checkout_session_id": checkout_session_id,
            },
        )

    def verify_payment(self, order_number: str, gateway_order_id: str, payment_id: str, signature: str) -> dict:
        return self._request(
            "POST",
            f"/orders/{order_number}/payment/verify",
            json={"gateway_order_id": gateway_order_id, "payment_id": payment_id, "signature": signature},
        )

    def get_order(self, order_number: str) -> dict:
        return self._request("GET", f"/orders/{order_number}")
