"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
order intake and payment verification never depend on a concrete gateway.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class IntentResult:
    """A gateway-side order the customer pays against."""

    gateway_order_id: str
    amount_minor: int
    currency: str
    status: str = "created"
    raw: dict = field(default_factory=dict)


class GatewayNotConfigured(Exception):
    """Credentials for the gateway are missing on this server."""


class GatewayUnavailable(Exception):
    """The gateway could not be reached or refused the request."""


def hmac_sha256(secret: str, message: str) -> str:
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def signatures_match(expected: str, received: str | None) -> bool:
    return bool(received) and hmac.compare_digest(expected, received)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the server holds the credentials to take online payments."""
        ...

    @abstractmethod
    def public_key(self) -> str:
        """The key id handed to the client-side SDK. Never the secret."""
        ...

    @abstractmethod
    def create_intent(self, amount_minor: int, currency: str, receipt: str, notes: dict) -> IntentResult:
        """Create a gateway order for the amount, in minor currency units."""
        ...

    @abstractmethod
    def verify_payment_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """Check the signature the SDK returned for a completed payment."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
