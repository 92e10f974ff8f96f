from stocktrack.models.stock import CategoryBreakdown, StockLine
from stocktrack.services.statistics_service import aggregate, sort_breakdown
from tests.factories import make_product


def test_empty_list_gives_zero_statistics():
    stats = aggregate([])

    assert stats.total_products == 0
    assert stats.total_stock == 0
    assert stats.total_sold == 0
    assert stats.out_of_stock == 0
    assert stats.low_stock == 0
    assert stats.total_revenue == 0
    assert stats.category_breakdown == []
    assert not stats.is_historical_view


def test_totals_and_stock_levels():
    products = [
        make_product(name="A", category="Bread", stock=0, min_stock=5, quantity_sold=10, price=2.0),
        make_product(name="B", category="Bread", stock=5, min_stock=5, quantity_sold=1, price=3.0),
        make_product(name="C", category="Cake", stock=6, min_stock=5, quantity_sold=0, price=10.0),
    ]

    stats = aggregate(products)

    assert stats.total_products == 3
    assert stats.total_stock == 11
    assert stats.total_sold == 11
    assert stats.out_of_stock == 1
    assert stats.low_stock == 1
    assert stats.healthy == 1
    assert stats.total_revenue == 23.0


def test_breakdown_sorted_by_count_with_stable_ties():
    products = [
        make_product(name="A", category="Cake"),
        make_product(name="B", category="Bread"),
        make_product(name="C", category="Bread"),
        make_product(name="D", category="Drinks"),
    ]

    breakdown = aggregate(products).category_breakdown

    assert [(c.category, c.count) for c in breakdown] == [("Bread", 2), ("Cake", 1), ("Drinks", 1)]


def test_breakdown_subtotals():
    products = [
        make_product(name="A", category="Bread", stock=3, quantity_sold=2, price=1.5),
        make_product(name="B", category="Bread", stock=4, quantity_sold=1, price=2.0),
    ]

    bread = aggregate(products).category_breakdown[0]

    assert (bread.count, bread.stock, bread.sold, bread.revenue) == (2, 7, 3, 5.0)


def test_stock_lines_aggregate_display_values():
    product = make_product(stock=50, quantity_sold=50, price=1.0)
    line = StockLine(product=product, stock=80, quantity_sold=20, is_historical=True)

    stats = aggregate([line])

    assert stats.total_stock == 80
    assert stats.total_sold == 20
    assert stats.total_revenue == 20.0
    assert stats.is_historical_view


def test_to_dict_uses_api_keys():
    data = aggregate([make_product(stock=0)]).to_dict()

    assert data["outOfStock"] == 1
    assert data["stockLevels"] == {"outOfStock": 1, "lowStock": 0, "healthy": 0}
    assert data["categoryBreakdown"][0]["category"] == "Tools"


def test_sort_breakdown():
    items = [CategoryBreakdown("x", count=1), CategoryBreakdown("y", count=3)]
    assert [c.category for c in sort_breakdown(items)] == ["y", "x"]
