from datetime import date, datetime, timedelta

from stocktrack.services.reconciliation_service import needs_refresh, reconcile, reconcile_all, refresh_product
from tests.factories import make_product, make_sale


def widget():
    return make_product(name="Widget", category="Tools", initial_stock=100, initial_stock_date="2024-01-01")


def scenario_sales():
    return [
        make_sale("2024-01-01", 10),
        make_sale("2023-12-31", 5),
    ]


class TestCurrentStock:

    def test_without_baseline_date_every_matched_sale_counts(self):
        product = make_product(initial_stock=50, stock=50)
        sales = [
            make_sale("2020-05-01", 10),
            make_sale("2024-03-01", 15),
            make_sale("2024-03-01", 99, product="Other"),
        ]

        result = reconcile(product, sales)

        assert result.stock == 25
        assert result.quantity_sold == 25
        assert not result.is_historical
        assert not result.has_early_sales

    def test_stock_is_clamped_at_zero(self):
        product = make_product(initial_stock=5)
        result = reconcile(product, [make_sale("2024-01-01", 8)])

        assert result.stock == 0
        assert result.quantity_sold == 8

    def test_scenario_with_early_sale(self):
        result = reconcile(widget(), scenario_sales())

        assert result.stock == 90
        assert result.quantity_sold == 10
        assert result.has_early_sales
        assert result.early_sales_quantity == 5
        assert not result.is_historical

    def test_sale_on_baseline_date_is_not_early(self):
        product = make_product(initial_stock=20, initial_stock_date="2024-01-01T08:00:00")
        result = reconcile(product, [make_sale("2024-01-01T08:00:00", 4)])

        assert result.stock == 16
        assert not result.has_early_sales
        assert result.early_sales_quantity == 0

    def test_sale_just_before_baseline_is_early(self):
        product = make_product(initial_stock=20, initial_stock_date="2024-01-01T08:00:00")
        result = reconcile(product, [make_sale("2024-01-01T07:59:59", 4)])

        assert result.stock == 20
        assert result.quantity_sold == 0
        assert result.has_early_sales
        assert result.early_sales_quantity == 4

    def test_matching_is_normalized(self):
        sales = [make_sale("2024-02-01", 3, product=" widget ", category="TOOLS")]
        assert reconcile(widget(), sales).stock == 97


class TestHistoricalStock:

    def test_as_of_baseline_day_counts_only_that_day(self):
        sales = [
            make_sale("2024-01-01T10:00:00", 10),
            make_sale("2024-01-01T23:00:00", 2),
            make_sale("2024-01-02", 7),
        ]

        result = reconcile(widget(), sales, as_of="2024-01-01")

        assert result.stock == 88
        assert result.quantity_sold == 12
        assert result.is_historical

    def test_sale_at_end_of_day_is_included(self):
        last_instant = datetime(2024, 1, 31, 23, 59, 59, 999999)
        result = reconcile(widget(), [make_sale(last_instant, 4)], as_of="2024-01-31")

        assert result.quantity_sold == 4

    def test_sale_one_millisecond_after_end_of_day_is_excluded(self):
        after = datetime(2024, 1, 31, 23, 59, 59, 999000) + timedelta(milliseconds=1)
        result = reconcile(widget(), [make_sale(after, 4)], as_of="2024-01-31")

        assert result.quantity_sold == 0
        assert result.stock == 100

    def test_scenario_before_every_sale(self):
        result = reconcile(widget(), scenario_sales(), as_of="2023-12-15")

        assert result.stock == 100
        assert result.quantity_sold == 0
        assert result.is_historical
        assert result.has_early_sales

    def test_historical_view_includes_early_sales_up_to_the_cutoff(self):
        result = reconcile(widget(), scenario_sales(), as_of="2024-01-01")

        assert result.quantity_sold == 15
        assert result.stock == 85

    def test_without_baseline_date_rebuilds_baseline_from_cached_fields(self):
        product = make_product(initial_stock=0, stock=40, quantity_sold=10)
        sales = [
            make_sale("2024-01-05", 6),
            make_sale("2024-01-20", 4),
        ]

        result = reconcile(product, sales, as_of=date(2024, 1, 10))

        assert result.quantity_sold == 6
        assert result.stock == 44
        assert not result.has_early_sales

    def test_historical_stock_is_clamped(self):
        product = make_product(initial_stock=3, initial_stock_date="2024-01-01")
        result = reconcile(product, [make_sale("2024-01-02", 10)], as_of="2024-01-03")

        assert result.stock == 0
        assert result.quantity_sold == 10


def test_reconcile_is_idempotent():
    product = widget()
    sales = scenario_sales()

    assert reconcile(product, sales) == reconcile(product, sales)
    assert reconcile(product, sales, "2024-01-01") == reconcile(product, sales, "2024-01-01")


def test_reconcile_does_not_mutate_the_product():
    product = widget()
    reconcile(product, scenario_sales())

    assert product.stock == 100
    assert product.quantity_sold == 0


def test_reconcile_all_pairs_each_product():
    other = make_product(name="Gadget", initial_stock=10)
    results = reconcile_all([widget(), other], scenario_sales())

    assert [(p.name, r.stock) for p, r in results] == [("Widget", 90), ("Gadget", 10)]


def test_refresh_product_updates_cached_fields():
    product = widget()
    refreshed = refresh_product(product, scenario_sales())

    assert (refreshed.stock, refreshed.quantity_sold) == (90, 10)
    assert needs_refresh(product, refreshed)
    assert not needs_refresh(refreshed, refresh_product(refreshed, scenario_sales()))
