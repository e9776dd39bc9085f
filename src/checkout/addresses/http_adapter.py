"""Address book backed by the customer profile service's HTTP API."""

import requests
import structlog

from checkout.addresses.port import Address, AddressBook

logger = structlog.get_logger(__name__)


class HttpAddressBook(AddressBook):
    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def list(self, customer_id: str) -> list[Address]:
        response = self.session.get(
            f"{self.base_url}/customers/{customer_id}/addresses",
            timeout=self.timeout,
        )
        response.raise_for_status()
        addresses = [
            Address(
                id=str(item["id"]),
                customer_id=str(customer_id),
                full_name=item.get("full_name", ""),
                phone=item.get("phone", ""),
                line1=item["line1"],
                line2=item.get("line2"),
                city=item["city"],
                state=item.get("state", ""),
                postal_code=item["postal_code"],
                is_default=bool(item.get("is_default", False)),
            )
            for item in response.json().get("addresses", [])
        ]
        logger.debug("addresses_fetched", customer_id=str(customer_id), count=len(addresses))
        return sorted(addresses, key=lambda a: not a.is_default)
