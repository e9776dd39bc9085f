"""Navigable URLs for checkout and a navigator port.

The current step is mirrored into ``/checkout?step=<step>`` with a history
replace, so back/forward and reload see the same step the controller holds.
"""

from abc import ABC, abstractmethod
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from storefront.steps import Step, parse_step

CHECKOUT_PATH = "/checkout"


def checkout_url(step: Step) -> str:
    return f"{CHECKOUT_PATH}?{urlencode({'step': step})}"


def confirmation_url(order_number: str) -> str:
    return f"/my-orders/{quote(order_number)}"


def step_from_url(url: str | None) -> Step:
    if not url:
        return "address"
    values = parse_qs(urlsplit(url).query).get("step")
    return parse_step(values[0] if values else None)


class Navigator(ABC):
    @property
    @abstractmethod
    def current_url(self) -> str | None: ...

    @abstractmethod
    def replace(self, url: str) -> None:
        """Change the URL without adding a history entry."""

    @abstractmethod
    def push(self, url: str) -> None:
        """Navigate to a new page."""


class MemoryNavigator(Navigator):
    def __init__(self, url: str | None = None) -> None:
        self.history: list[str] = [url] if url else []

    @property
    def current_url(self) -> str | None:
        return self.history[-1] if self.history else None

    def replace(self, url: str) -> None:
        if self.history:
            self.history[-1] = url
        else:
            self.history.append(url)

    def push(self, url: str) -> None:
        self.history.append(url)
