"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Cart")
class CartChanged:
    """Cart contents changed; anything derived from them must be recomputed."""

    __version__ = 1

    customer_id = Identifier(required=True)
    revision = Integer(required=True)


@checkout.event(part_of="Cart")
class CartCleared:
    """The cart was emptied because its contents became an order."""

    __version__ = 1

    customer_id = Identifier(required=True)
    order_number = String(required=True)
    revision = Integer(required=True)
