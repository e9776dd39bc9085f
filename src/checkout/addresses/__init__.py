"""Address book factory.

Provides get_address_book() / set_address_book() to swap implementations:
- InMemoryAddressBook for development and testing
- HttpAddressBook when ADDRESS_SERVICE_URL points at the profile service
"""

import os

from checkout.addresses.http_adapter import HttpAddressBook
from checkout.addresses.memory_adapter import InMemoryAddressBook
from checkout.addresses.port import AddressBook

_current_address_book: AddressBook | None = None


def get_address_book() -> AddressBook:
    """Return the current address book."""
    global _current_address_book
    if _current_address_book is None:
        service_url = os.getenv("ADDRESS_SERVICE_URL")
        _current_address_book = HttpAddressBook(service_url) if service_url else InMemoryAddressBook()
    return _current_address_book


def set_address_book(address_book: AddressBook) -> None:
    """Override the active address book (useful for tests)."""
    global _current_address_book
    _current_address_book = address_book


def reset_address_book() -> None:
    """Reset to the default address book."""
    global _current_address_book
    _current_address_book = None
