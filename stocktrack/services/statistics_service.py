"""
List-level statistics over the effective stock of a view.

The aggregator sums whatever per-product `stock` / `quantity_sold` it is
handed: stored values for a Product, display values for a StockLine.
"""
from typing import Dict, Iterable, List

from stocktrack.models.stock import CategoryBreakdown, StockStatistics


def _revenue(item) -> float:
    return (item.quantity_sold or 0) * item.price


def aggregate(items: Iterable) -> StockStatistics:
    """
    Compute statistics for a list of products or stock lines.

    Args:
        items: Objects exposing stock, quantity_sold, price, min_stock, category

    Returns:
        StockStatistics (all zero with an empty breakdown for an empty list)
    """
    items = list(items)
    stats = StockStatistics()

    categories: Dict[str, CategoryBreakdown] = {}

    for item in items:
        sold = item.quantity_sold or 0
        revenue = _revenue(item)

        stats.total_products += 1
        stats.total_stock += item.stock
        stats.total_sold += sold
        stats.total_revenue += revenue

        if item.stock == 0:
            stats.out_of_stock += 1
        elif item.stock <= item.min_stock:
            stats.low_stock += 1

        if getattr(item, "is_historical", False):
            stats.is_historical_view = True

        # Grouping is on the raw category label, first-seen order
        breakdown = categories.get(item.category)
        if breakdown is None:
            breakdown = categories[item.category] = CategoryBreakdown(category=item.category)
        breakdown.count += 1
        breakdown.stock += item.stock
        breakdown.sold += sold
        breakdown.revenue += revenue

    stats.category_breakdown = sort_breakdown(categories.values())
    return stats


def sort_breakdown(breakdown: Iterable[CategoryBreakdown]) -> List[CategoryBreakdown]:
    """Descending by product count; ties keep their first-seen order."""
    return sorted(breakdown, key=lambda c: c.count, reverse=True)
