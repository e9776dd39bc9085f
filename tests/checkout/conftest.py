from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_ports():
    """Fresh gateway, address book, and settings for every test."""
    from checkout.addresses import reset_address_book, set_address_book
    from checkout.addresses.memory_adapter import InMemoryAddressBook
    from checkout.gateway import reset_gateway, set_gateway
    from checkout.gateway.fake_adapter import FakeGateway
    from checkout.settings import reset_settings

    reset_settings()
    set_gateway(FakeGateway())
    set_address_book(InMemoryAddressBook())
    yield
    reset_gateway()
    reset_address_book()
    reset_settings()


@pytest.fixture(autouse=True)
def _clean_data(_ctx):
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()


@pytest.fixture()
def gateway():
    from checkout.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def address_book():
    from checkout.addresses import get_address_book

    return get_address_book()


@pytest.fixture()
def now():
    return datetime.now(UTC)


@pytest.fixture()
def coupon_window(now):
    return now - timedelta(days=1), now + timedelta(days=30)


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product():
    from checkout.catalog.product import Product
    from protean import current_domain

    def _make(name="Masala Chips", price=300.0, category_id="cat-snacks", is_cod_available=True, stock=10, **extra):
        product = Product(
            name=name,
            price=price,
            category_id=category_id,
            is_cod_available=is_cod_available,
            stock=stock,
            **extra,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def add_to_cart():
    from checkout.cart.management import AddToCart
    from protean import current_domain

    def _add(customer_id, product, quantity=1):
        return current_domain.process(
            AddToCart(customer_id=customer_id, product_id=str(product.id), quantity=quantity),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def make_coupon(coupon_window):
    from checkout.coupon.coupon import Coupon
    from protean import current_domain

    def _make(code="SAVE50", discount_type="flat", discount_value=50.0, **overrides):
        valid_from, valid_until = coupon_window
        fields = {"valid_from": valid_from, "valid_until": valid_until, **overrides}
        coupon = Coupon.create(code=code, discount_type=discount_type, discount_value=discount_value, **fields)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture()
def make_address(address_book):
    from checkout.addresses.port import Address

    def _make(customer_id, address_id="addr-001", **overrides):
        fields = {
            "full_name": "Asha Rao",
            "phone": "+91-9800000000",
            "line1": "12 MG Road",
            "city": "Bengaluru",
            "state": "KA",
            "postal_code": "560001",
            **overrides,
        }
        address = Address(id=address_id, customer_id=customer_id, **fields)
        address_book.add(address)
        return address

    return _make


@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def ready_cart(customer_id, make_product, add_to_cart, make_address):
    """A ₹600 cart (two ₹300 items) with one saved address."""
    product = make_product(price=300.0)
    add_to_cart(customer_id, product, quantity=2)
    make_address(customer_id)
    return product
