"""Recoverable storage for the checkout session.

Mirrors the browser's session storage: string keys, JSON values, scoped to
one checkout. Only selections are stored; the current step lives in the URL.
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from storefront.session import PAYMENT_METHODS, AppliedCoupon, CheckoutSession

logger = structlog.get_logger(__name__)

SELECTED_ADDRESS_KEY = "checkout_selected_address_id"
SELECTED_PAYMENT_METHOD_KEY = "checkout_selected_payment_method"
APPLIED_COUPON_KEY = "checkout_applied_coupon"
SESSION_ID_KEY = "checkout_session_id"

CHECKOUT_KEYS = (SELECTED_ADDRESS_KEY, SELECTED_PAYMENT_METHOD_KEY, APPLIED_COUPON_KEY, SESSION_ID_KEY)


class SessionStore(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileSessionStore(SessionStore):
    """Session storage persisted to a JSON file, rewritten on every change."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("session_store_corrupt", path=str(self.path))
            return {}

    def _write(self, values: dict[str, str]) -> None:
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(values), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._read()
            values[key] = value
            self._write(values)

    def delete(self, key: str) -> None:
        with self._lock:
            values = self._read()
            if values.pop(key, None) is not None:
                self._write(values)


def _put(store: SessionStore, key: str, value: str | None) -> None:
    if value is None:
        store.delete(key)
    else:
        store.set(key, value)


def save_session(store: SessionStore, session: CheckoutSession) -> None:
    _put(store, SELECTED_ADDRESS_KEY, session.selected_address_id)
    _put(store, SELECTED_PAYMENT_METHOD_KEY, session.selected_payment_method)
    _put(store, APPLIED_COUPON_KEY, json.dumps(session.applied_coupon.to_dict()) if session.applied_coupon else None)
    store.set(SESSION_ID_KEY, session.checkout_session_id)


def load_session(store: SessionStore) -> CheckoutSession:
    """Rebuild selections from storage; unreadable values are dropped."""
    session = CheckoutSession(
        selected_address_id=store.get(SELECTED_ADDRESS_KEY),
        selected_payment_method=None,
    )

    method = store.get(SELECTED_PAYMENT_METHOD_KEY)
    if method in PAYMENT_METHODS:
        session.selected_payment_method = method

    raw_coupon = store.get(APPLIED_COUPON_KEY)
    if raw_coupon:
        try:
            session.applied_coupon = AppliedCoupon.from_dict(json.loads(raw_coupon))
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError):
            logger.warning("stored_coupon_unreadable")
            store.delete(APPLIED_COUPON_KEY)

    session_id = store.get(SESSION_ID_KEY)
    if session_id:
        session.checkout_session_id = session_id
    return session


def clear_session(store: SessionStore) -> None:
    for key in CHECKOUT_KEYS:
        store.delete(key)
