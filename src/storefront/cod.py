"""Client-side cache of the COD eligibility gate.

Eligibility depends on cart contents, so the cached answer is tied to the
cart revision it was computed for and refetched once the cart moves on.
"""

from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CodStatus:
    eligible: bool
    cart_revision: int
    disqualifying_items: tuple[str, ...] = ()

    @property
    def message(self) -> str | None:
        if self.eligible:
            return None
        return f"COD is not available for: {', '.join(self.disqualifying_items)}"


class CodGate:
    def __init__(self, api, customer_id: str) -> None:
        self.api = api
        self.customer_id = customer_id
        self.cached: CodStatus | None = None

    @property
    def checked_revision(self) -> int | None:
        return self.cached.cart_revision if self.cached else None

    def status_for(self, cart_revision: int) -> CodStatus:
        if self.cached is not None and self.cached.cart_revision == cart_revision:
            return self.cached

        body = self.api.cod_eligibility(self.customer_id)
        self.cached = CodStatus(
            eligible=bool(body["eligible"]),
            cart_revision=int(body["cart_revision"]),
            disqualifying_items=tuple(body.get("disqualifying_items") or ()),
        )
        logger.debug("cod_status_refreshed", cart_revision=self.cached.cart_revision, eligible=self.cached.eligible)
        return self.cached

    def invalidate(self) -> None:
        self.cached = None
