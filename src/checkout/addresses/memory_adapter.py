"""In-memory address book for development and testing."""

from checkout.addresses.port import Address, AddressBook


class InMemoryAddressBook(AddressBook):
    def __init__(self) -> None:
        self._addresses: dict[str, list[Address]] = {}

    def add(self, address: Address) -> None:
        self._addresses.setdefault(address.customer_id, []).append(address)

    def remove(self, customer_id: str, address_id: str) -> None:
        self._addresses[customer_id] = [a for a in self._addresses.get(customer_id, []) if a.id != address_id]

    def list(self, customer_id: str) -> list[Address]:
        addresses = self._addresses.get(str(customer_id), [])
        return sorted(addresses, key=lambda a: not a.is_default)
