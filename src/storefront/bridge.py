"""Payment gateway bridge — opens the hosted checkout and reports how it ended.

The orchestration only sees GatewayOutcome values. Loading the gateway SDK
and showing its window are behind this interface, with one real
implementation and a scripted fake for tests.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

import requests
import structlog

logger = structlog.get_logger(__name__)

SDK_URL = "https://checkout.razorpay.com/v1/checkout.js"


@dataclass(frozen=True)
class GatewaySuccess:
    """The gateway says the customer paid. Untrusted until verified server-side."""

    gateway_order_id: str
    payment_id: str
    signature: str

    @classmethod
    def from_sdk(cls, response: dict) -> "GatewaySuccess":
        return cls(
            gateway_order_id=response["razorpay_order_id"],
            payment_id=response["razorpay_payment_id"],
            signature=response["razorpay_signature"],
        )


@dataclass(frozen=True)
class GatewayCancelled:
    """The customer closed the payment window."""


@dataclass(frozen=True)
class SdkLoadFailed:
    reason: str = ""


GatewayOutcome = GatewaySuccess | GatewayCancelled | SdkLoadFailed


@dataclass(frozen=True)
class CheckoutOptions:
    """What the hosted checkout is opened with. The key is public, never the secret."""

    key_id: str
    amount: int
    currency: str
    order_id: str
    description: str = ""
    notes: dict = field(default_factory=dict)

    @classmethod
    def from_intent(cls, gateway: dict, order_number: str) -> "CheckoutOptions":
        return cls(
            key_id=gateway["key_id"],
            amount=gateway["amount"],
            currency=gateway["currency"],
            order_id=gateway["order_id"],
            description=f"Order {order_number}",
            notes={"order_number": order_number},
        )


class PaymentGatewayBridge(ABC):
    @abstractmethod
    def open(self, options: CheckoutOptions) -> GatewayOutcome:
        """Show the gateway's payment window and wait for it to close."""
        ...


class SdkLoader:
    """Fetches the gateway SDK at most once per process, on first use."""

    def __init__(self, url: str = SDK_URL, session: requests.Session | None = None, timeout: float = 10.0) -> None:
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.script: str | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self.script is not None

    def load(self) -> str:
        with self._lock:
            if self.script is None:
                response = self.session.get(self.url, timeout=self.timeout)
                response.raise_for_status()
                self.script = response.text
                logger.info("gateway_sdk_loaded", url=self.url, size=len(self.script))
            return self.script


# Shows the loaded SDK with the given options; returns the SDK's success
# response, or None when the customer dismisses the window.
Presenter = Callable[[str, CheckoutOptions], dict | None]


class HostedCheckoutBridge(PaymentGatewayBridge):
    def __init__(self, presenter: Presenter, loader: SdkLoader | None = None) -> None:
        self.presenter = presenter
        self.loader = loader or SdkLoader()

    def open(self, options: CheckoutOptions) -> GatewayOutcome:
        try:
            script = self.loader.load()
        except requests.RequestException as exc:
            logger.warning("gateway_sdk_load_failed", url=self.loader.url, error=str(exc))
            return SdkLoadFailed(reason=str(exc))

        response = self.presenter(script, options)
        if response is None:
            logger.info("gateway_checkout_dismissed", order_id=options.order_id)
            return GatewayCancelled()
        return GatewaySuccess.from_sdk(response)


class FakeGatewayBridge(PaymentGatewayBridge):
    """Returns scripted outcomes in order and records what it was opened with."""

    def __init__(self, outcomes: list[GatewayOutcome | Callable[[CheckoutOptions], GatewayOutcome]] | None = None):
        self.outcomes = list(outcomes or [])
        self.opened: list[CheckoutOptions] = []

    def queue(self, outcome) -> None:
        self.outcomes.append(outcome)

    def open(self, options: CheckoutOptions) -> GatewayOutcome:
        self.opened.append(options)
        if not self.outcomes:
            return GatewayCancelled()
        outcome = self.outcomes.pop(0)
        return outcome(options) if callable(outcome) else outcome
