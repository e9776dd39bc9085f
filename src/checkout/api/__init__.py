"""Checkout domain API package."""

from checkout.api.errors import register_checkout_error_handlers
from checkout.api.routes import router

__all__ = ["register_checkout_error_handlers", "router"]
