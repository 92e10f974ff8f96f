from .sale import Sale
from .product import Product, StockStatus, stock_status
from .stock import StockReconciliation, StockLine, CategoryBreakdown, StockStatistics

__all__ = [
    "Sale",
    "Product",
    "StockStatus",
    "stock_status",
    "StockReconciliation",
    "StockLine",
    "CategoryBreakdown",
    "StockStatistics",
]
