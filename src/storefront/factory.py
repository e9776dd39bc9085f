"""Wire a storefront checkout from environment settings."""

import os
from dataclasses import dataclass
from pathlib import Path

import requests

from storefront.api_client import CheckoutApiClient
from storefront.bridge import SDK_URL, HostedCheckoutBridge, Presenter, SdkLoader
from storefront.controller import CheckoutStepController
from storefront.navigation import Navigator
from storefront.protocol import CheckoutProtocol
from storefront.storage import JsonFileSessionStore


@dataclass(frozen=True)
class StorefrontSettings:
    api_base_url: str = "http://localhost:8000"
    sdk_url: str = SDK_URL
    session_file: Path = Path(".checkout-session.json")
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "StorefrontSettings":
        return cls(
            api_base_url=os.getenv("CHECKOUT_API_URL", "http://localhost:8000"),
            sdk_url=os.getenv("GATEWAY_SDK_URL", SDK_URL),
            session_file=Path(os.getenv("CHECKOUT_SESSION_FILE", ".checkout-session.json")),
            request_timeout=float(os.getenv("CHECKOUT_REQUEST_TIMEOUT", "10")),
        )


def create_checkout(
    customer_id: str,
    navigator: Navigator,
    presenter: Presenter,
    settings: StorefrontSettings | None = None,
) -> CheckoutProtocol:
    settings = settings or StorefrontSettings.from_env()
    http = requests.Session()

    controller = CheckoutStepController(
        customer_id=customer_id,
        api=CheckoutApiClient(settings.api_base_url, session=http, timeout=settings.request_timeout),
        store=JsonFileSessionStore(settings.session_file),
        navigator=navigator,
    )
    bridge = HostedCheckoutBridge(
        presenter=presenter,
        loader=SdkLoader(settings.sdk_url, session=http, timeout=settings.request_timeout),
    )
    return CheckoutProtocol(controller, bridge)
