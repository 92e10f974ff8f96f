from datetime import datetime

import pytest

from stocktrack.services.product_sync_service import (
    apply_initial_stock_change,
    build_products_from_sales,
    find_missing_products,
    product_from_form,
    validate_product,
)
from stocktrack.utils.errors import ProductValidationError
from tests.factories import make_product, make_sale


def valid_form(**overrides):
    data = {
        "name": " Baguette ",
        "category": "Bread",
        "price": "1.20",
        "initialStock": 100,
        "initialStockDate": "2024-01-01",
        "minStock": 10,
        "description": "",
    }
    data.update(overrides)
    return data


class TestValidateProduct:

    def test_valid_form_has_no_errors(self):
        assert validate_product(valid_form()) == {}

    def test_required_fields(self):
        errors = validate_product(valid_form(name="  ", category=None, initialStockDate=""))
        assert set(errors) == {"name", "category", "initialStockDate"}

    def test_initial_date_optional_when_not_required(self):
        assert validate_product(valid_form(initialStockDate=None), require_initial_date=False) == {}

    @pytest.mark.parametrize("field", ["price", "initialStock", "minStock"])
    def test_negative_numbers_rejected(self, field):
        assert field in validate_product(valid_form(**{field: -1}))

    def test_non_numeric_rejected(self):
        assert validate_product(valid_form(price="abc"))["price"] == "Price must be a number"

    def test_bad_date_rejected(self):
        assert "initialStockDate" in validate_product(valid_form(initialStockDate="31-31-2024"))


def test_product_from_form_trims_and_converts():
    product = product_from_form(valid_form())

    assert product.name == "Baguette"
    assert product.price == 1.2
    assert product.initial_stock == 100
    assert product.initial_stock_date == datetime(2024, 1, 1)
    assert product.min_stock == 10
    assert product.description is None


def test_product_from_form_keeps_existing_identity():
    existing = make_product(name="Old", id="p1", quantity_sold=7)
    product = product_from_form(valid_form(), existing)

    assert product.id == "p1"
    assert product.quantity_sold == 7
    assert existing.name == "Old"


def test_product_from_form_raises_with_errors():
    with pytest.raises(ProductValidationError) as exc_info:
        product_from_form(valid_form(name=""))

    assert exc_info.value.errors == {"name": "Product name is required"}


def test_initial_stock_change_recomputes_stock():
    product = make_product(initial_stock=100, quantity_sold=30)

    assert apply_initial_stock_change(product, 50) == {"initialStock": 50, "stock": 20}
    assert apply_initial_stock_change(product, 10) == {"initialStock": 10, "stock": 0}


def test_initial_stock_change_rejects_negative():
    with pytest.raises(ProductValidationError):
        apply_initial_stock_change(make_product(), -5)


def test_find_missing_products_by_name():
    products = [make_product(name="Baguette", category="Bread")]
    sales = [
        make_sale("2024-01-01", 1, product=" baguette", category="Other"),
        make_sale("2024-01-01", 1, product="Muffin ", category="Cake"),
        make_sale("2024-01-02", 1, product="MUFFIN", category="Cake"),
        make_sale("2024-01-02", 1, product="Scone", category="Cake"),
    ]

    assert find_missing_products(products, sales) == ["Muffin", "Scone"]


def test_build_products_from_sales():
    now = datetime(2024, 6, 1)
    products = [make_product(name="Baguette", category="Bread")]
    sales = [
        make_sale("2024-01-01", 2, product="Baguette", category="Bread", price=1.0),
        make_sale("2024-02-01", 3, product="Muffin", category="Cake", price=2.0),
        make_sale("2024-03-01", 4, product=" muffin", category="CAKE", price=2.5),
        make_sale("2024-01-15", 1, product="Muffin", category="Cake", price=1.8),
    ]

    created = build_products_from_sales(products, sales, default_min_stock=3, now=now)

    assert len(created) == 1
    muffin = created[0]
    assert (muffin.name, muffin.category) == ("Muffin", "Cake")
    assert muffin.price == 2.5
    assert muffin.quantity_sold == 8
    assert (muffin.initial_stock, muffin.stock, muffin.min_stock) == (0, 0, 3)
    assert muffin.created_at == now


def test_build_products_from_sales_nothing_missing():
    products = [make_product()]
    assert build_products_from_sales(products, [make_sale("2024-01-01", 1)]) == []
