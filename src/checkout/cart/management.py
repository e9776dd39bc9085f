"""Cart item management — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.cart.pricing import find_cart
from checkout.catalog.product import Product
from checkout.domain import checkout


@checkout.command(part_of="Cart")
class AddToCart:
    """Add a product to the customer's cart, creating the cart if needed."""

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@checkout.command(part_of="Cart")
class UpdateCartQuantity:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@checkout.command(part_of="Cart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@checkout.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        # Fails with ObjectNotFoundError for unknown products
        current_domain.repository_for(Product).get(command.product_id)

        cart = find_cart(command.customer_id) or Cart(customer_id=command.customer_id)
        cart.add_item(command.product_id, command.quantity)
        current_domain.repository_for(Cart).add(cart)
        return cart.revision

    @handle(UpdateCartQuantity)
    def update_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.customer_id)
        cart.update_quantity(command.product_id, command.quantity)
        repo.add(cart)
        return cart.revision

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.customer_id)
        cart.remove_item(command.product_id)
        repo.add(cart)
        return cart.revision
