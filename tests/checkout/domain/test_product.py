"""Tests for Product stock commitment."""

from checkout.catalog.product import Product


def _product(stock=5, **extra):
    return Product(name="Masala Chips", price=300.0, category_id="cat-snacks", stock=stock, **extra)


def test_display_name_prefers_short_description():
    assert _product(short_description="Chips").display_name == "Chips"
    assert _product().display_name == "Masala Chips"


def test_commit_stock_decrements():
    product = _product(stock=5)
    product.commit_stock(2, "ORD-20250101-000001")
    assert product.stock == 3


def test_commit_stock_never_goes_negative():
    product = _product(stock=1)
    product.commit_stock(3, "ORD-20250101-000001")
    assert product.stock == 0
