from unittest.mock import Mock

import pytest

from stocktrack.repositories.supabase_repository import ProductRepository, SaleRepository, SupabaseRepository
from stocktrack.utils.errors import RepositoryError
from tests.factories import make_product, make_sale


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("stocktrack.utils.retry.time.sleep", lambda _: None)


@pytest.fixture
def settings():
    return Mock(products_table="products", sales_table="register_sales", database_configured=True)


def make_client(*pages):
    """Client whose query chain returns each page in turn."""
    query = Mock()
    for method in ("select", "order", "range", "eq", "limit", "insert", "update", "delete", "in_"):
        getattr(query, method).return_value = query
    query.execute.side_effect = [Mock(data=page) for page in pages]
    client = Mock()
    client.table.return_value = query
    return client, query


def product_row(**overrides):
    row = {
        "id": "p1",
        "name": "Baguette",
        "category": "Bread",
        "price": 1.2,
        "initialStock": 100,
        "initialStockDate": "2024-01-01T00:00:00Z",
        "stock": 90,
        "minStock": 10,
        "quantitySold": 10,
        "description": None,
    }
    row.update(overrides)
    return row


def sale_row(**overrides):
    row = {
        "id": "s1",
        "product": "Baguette",
        "category": "Bread",
        "date": "2024-01-02T09:30:00+00:00",
        "quantity": 3,
        "price": 1.2,
        "total": 3.6,
        "register": "R1",
        "seller": "Ana",
    }
    row.update(overrides)
    return row


def test_not_connected_without_credentials():
    settings = Mock(database_configured=False)
    repo = ProductRepository(settings=settings)

    assert not repo.is_connected
    with pytest.raises(RepositoryError):
        repo.list_products()
    assert repo.create_product(make_product()) is None
    assert repo.update_product("p1", {"stock": 1}) is False


class TestProductRepository:

    def test_list_products_maps_rows(self, settings):
        client, query = make_client([product_row()])
        products = ProductRepository(client=client, settings=settings).list_products()

        client.table.assert_called_with("products")
        assert [c.args for c in query.order.call_args_list] == [("name",), ("id",)]
        assert len(products) == 1
        assert products[0].initial_stock_date.year == 2024
        assert products[0].quantity_sold == 10

    def test_list_products_pages_through_table(self, settings, monkeypatch):
        monkeypatch.setattr(SupabaseRepository, "PAGE_SIZE", 2)
        client, query = make_client(
            [product_row(id="1"), product_row(id="2")],
            [product_row(id="3")],
        )

        products = ProductRepository(client=client, settings=settings).list_products()

        assert [p.id for p in products] == ["1", "2", "3"]
        assert [c.args for c in query.range.call_args_list] == [(0, 1), (2, 3)]
        # every page shares the same total order, id last
        assert [c.args for c in query.order.call_args_list] == [("name",), ("id",)] * 2

    def test_list_products_retries_then_raises(self, settings):
        client, query = make_client()
        query.execute.side_effect = ConnectionError("boom")

        with pytest.raises(RepositoryError):
            ProductRepository(client=client, settings=settings).list_products()
        assert query.execute.call_count == 3

    def test_list_products_recovers_after_a_failure(self, settings):
        client, query = make_client()
        query.execute.side_effect = [ConnectionError("boom"), Mock(data=[product_row()])]

        assert len(ProductRepository(client=client, settings=settings).list_products()) == 1

    def test_list_products_skips_malformed_rows(self, settings):
        client, _ = make_client([product_row(), product_row(id="bad", initialStockDate="not a date")])

        products = ProductRepository(client=client, settings=settings).list_products()

        assert [p.id for p in products] == ["p1"]

    def test_get_product(self, settings):
        client, query = make_client([product_row()], [])
        repo = ProductRepository(client=client, settings=settings)

        assert repo.get_product("p1").name == "Baguette"
        query.eq.assert_called_with("id", "p1")
        assert repo.get_product("missing") is None

    def test_create_product_strips_id_and_stamps(self, settings):
        client, query = make_client([product_row(id="new")])
        created = ProductRepository(client=client, settings=settings).create_product(make_product(id="ignored"))

        payload = query.insert.call_args.args[0]
        assert "id" not in payload
        assert payload["createdAt"] and payload["updatedAt"]
        assert created.id == "new"

    def test_create_products_in_batches(self, settings, monkeypatch):
        monkeypatch.setattr(SupabaseRepository, "BATCH_SIZE", 2)
        client, query = make_client([product_row(id="1"), product_row(id="2")], [product_row(id="3")])
        products = [make_product(name=str(i)) for i in range(3)]

        created = ProductRepository(client=client, settings=settings).create_products(products)

        assert query.insert.call_count == 2
        assert [p.id for p in created] == ["1", "2", "3"]

    def test_update_product(self, settings):
        client, query = make_client([])
        ok = ProductRepository(client=client, settings=settings).update_product("p1", {"stock": 5, "id": "x"})

        assert ok
        payload = query.update.call_args.args[0]
        assert payload["stock"] == 5
        assert "id" not in payload
        assert "updatedAt" in payload
        query.eq.assert_called_with("id", "p1")

    def test_update_failure_returns_false(self, settings):
        client, query = make_client()
        query.execute.side_effect = RuntimeError("boom")

        assert ProductRepository(client=client, settings=settings).update_product("p1", {"stock": 5}) is False

    def test_delete_products(self, settings):
        client, query = make_client([])
        repo = ProductRepository(client=client, settings=settings)

        assert repo.delete_products(["a", "b"])
        query.in_.assert_called_with("id", ["a", "b"])
        assert repo.delete_products([])
        assert query.execute.call_count == 1


class TestSaleRepository:

    def test_list_sales_skips_malformed_rows(self, settings):
        client, query = make_client([sale_row(), sale_row(id="bad", date="garbage")])
        sales = SaleRepository(client=client, settings=settings).list_sales()

        client.table.assert_called_with("register_sales")
        assert [c.args for c in query.order.call_args_list] == [("date",), ("id",)]
        assert [s.id for s in sales] == ["s1"]
        assert sales[0].date.hour == 9

    def test_create_sales_returns_inserted_count(self, settings):
        client, query = make_client([{"id": "1"}, {"id": "2"}])
        sales = [make_sale("2024-01-01", 1, id="x"), make_sale("2024-01-02", 2)]

        count = SaleRepository(client=client, settings=settings).create_sales(sales)

        assert count == 2
        rows = query.insert.call_args.args[0]
        assert all("id" not in row for row in rows)
        assert rows[1]["date"] == "2024-01-02T00:00:00"

    def test_create_sales_not_connected(self):
        repo = SaleRepository(settings=Mock(database_configured=False))
        assert repo.create_sales([make_sale("2024-01-01", 1)]) == 0
