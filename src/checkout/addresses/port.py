"""Address store port.

Addresses are owned by the customer profile service. Checkout only reads a
customer's list to validate the selected delivery address.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Address:
    id: str
    customer_id: str
    full_name: str
    phone: str
    line1: str
    city: str
    state: str
    postal_code: str
    line2: str | None = None
    is_default: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


class AddressBook(ABC):
    """Abstract read interface over a customer's saved addresses."""

    @abstractmethod
    def list(self, customer_id: str) -> list[Address]:
        """Return the customer's addresses, default first."""
        ...

    def find(self, customer_id: str, address_id: str) -> Address | None:
        """Resolve an address id within the customer's own list only."""
        return next((a for a in self.list(customer_id) if a.id == str(address_id)), None)
