"""Builders for products and sales used across the tests."""
from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.utils.dates import parse_datetime, parse_optional_datetime


def make_product(name="Widget", category="Tools", initial_stock=100, initial_stock_date=None, **kwargs):
    kwargs.setdefault("stock", initial_stock)
    return Product(
        name=name,
        category=category,
        initial_stock=initial_stock,
        initial_stock_date=parse_optional_datetime(initial_stock_date),
        **kwargs,
    )


def make_sale(date, quantity, product="Widget", category="Tools", price=0.0, **kwargs):
    kwargs.setdefault("total", price * quantity)
    return Sale(
        product=product,
        category=category,
        date=parse_datetime(date),
        quantity=quantity,
        price=price,
        **kwargs,
    )
