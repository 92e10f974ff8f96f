"""
Stock reconciliation: derives a product's current or historical stock
from its declared baseline and the matched sales ledger.

Date boundaries are inclusive on both ends:
- the as-of day counts up to and including its last instant;
- a sale dated exactly on initial_stock_date counts as "on or after"
  (it is not an early sale).

Inconsistent data never raises. Stock is clamped at zero and sales that
predate the baseline are reported through has_early_sales.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from stocktrack.models.product import Product
from stocktrack.models.sale import Sale
from stocktrack.models.stock import StockReconciliation
from stocktrack.services.matcher import match_sales
from stocktrack.utils.dates import DateLike, end_of_day


def reconcile(
    product: Product,
    all_sales: Iterable[Sale],
    as_of: Optional[DateLike] = None,
) -> StockReconciliation:
    """
    Reconcile one product against the full sales ledger.

    Args:
        product: Product to reconcile
        all_sales: Full sale ledger (matching happens here)
        as_of: Optional calendar day ("2024-01-31", date or datetime);
            when given, the result is the stock as of the end of that day

    Returns:
        StockReconciliation
    """
    matched = match_sales(product, all_sales)
    baseline_date = product.initial_stock_date

    early_sales = [s for s in matched if baseline_date is not None and s.date < baseline_date]
    early_quantity = sum(s.quantity for s in early_sales)

    if early_sales:
        logger.debug(
            f"{product.name} ({product.category}): {len(early_sales)} sale(s), "
            f"{early_quantity} unit(s) before baseline {baseline_date.date()}"
        )

    if as_of is not None:
        cutoff = end_of_day(as_of)
        quantity_sold = sum(s.quantity for s in matched if s.date <= cutoff)

        if baseline_date is not None:
            base_initial = product.initial_stock
        else:
            # No explicit baseline: rebuild it from the cached current figures
            base_initial = product.stock + product.quantity_sold

        return StockReconciliation(
            stock=max(0, base_initial - quantity_sold),
            quantity_sold=quantity_sold,
            is_historical=True,
            has_early_sales=bool(early_sales),
            early_sales_quantity=early_quantity,
        )

    if baseline_date is None:
        relevant: Sequence[Sale] = matched
    else:
        relevant = [s for s in matched if s.date >= baseline_date]

    quantity_sold = sum(s.quantity for s in relevant)
    return StockReconciliation(
        stock=max(0, product.initial_stock - quantity_sold),
        quantity_sold=quantity_sold,
        is_historical=False,
        has_early_sales=bool(early_sales),
        early_sales_quantity=early_quantity,
    )


def reconcile_all(
    products: Iterable[Product],
    all_sales: Sequence[Sale],
    as_of: Optional[DateLike] = None,
) -> List[Tuple[Product, StockReconciliation]]:
    """Reconcile every product against the same ledger snapshot."""
    return [(product, reconcile(product, all_sales, as_of)) for product in products]


def refresh_product(product: Product, all_sales: Iterable[Sale]) -> Product:
    """
    Recompute the denormalized current stock/quantity_sold.

    Returns:
        A copy of the product with refreshed derived fields
    """
    result = reconcile(product, all_sales)
    return product.with_updates(stock=result.stock, quantity_sold=result.quantity_sold)


def needs_refresh(product: Product, refreshed: Product) -> bool:
    """True when the stored derived fields disagree with the recomputed ones."""
    return (product.stock, product.quantity_sold) != (refreshed.stock, refreshed.quantity_sold)
