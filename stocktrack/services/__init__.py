from .matcher import matches, match_sales, normalize, product_key, sale_key
from .reconciliation_service import reconcile, reconcile_all, refresh_product
from .statistics_service import aggregate
from .stock_view_service import ViewState, ViewStateStore, StockView, apply_view

__all__ = [
    "matches",
    "match_sales",
    "normalize",
    "product_key",
    "sale_key",
    "reconcile",
    "reconcile_all",
    "refresh_product",
    "aggregate",
    "ViewState",
    "ViewStateStore",
    "StockView",
    "apply_view",
]
