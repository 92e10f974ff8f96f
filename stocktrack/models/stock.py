"""
Derived stock models: reconciliation output, view lines and statistics.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from stocktrack.models.product import Product, StockStatus, stock_status


@dataclass(frozen=True)
class StockReconciliation:
    """Result of reconciling one product against the sales ledger."""
    stock: int
    quantity_sold: int
    is_historical: bool
    has_early_sales: bool
    early_sales_quantity: int = 0

    def to_dict(self) -> dict:
        return {
            "stock": self.stock,
            "quantitySold": self.quantity_sold,
            "isHistorical": self.is_historical,
            "hasEarlySales": self.has_early_sales,
            "earlySalesQuantity": self.early_sales_quantity,
        }


@dataclass
class StockLine:
    """
    A product as displayed in the stock view.

    `stock` / `quantity_sold` are the effective values for the active view
    (historical when an as-of date is selected); `current_stock` /
    `current_quantity_sold` are the stored denormalized values.
    """
    product: Product
    stock: int
    quantity_sold: int
    is_historical: bool = False
    has_early_sales: bool = False
    early_sales_quantity: int = 0
    revenue: float = 0.0

    @property
    def id(self) -> Optional[str]:
        return self.product.id

    @property
    def name(self) -> str:
        return self.product.name

    @property
    def category(self) -> str:
        return self.product.category

    @property
    def description(self) -> Optional[str]:
        return self.product.description

    @property
    def price(self) -> float:
        return self.product.price

    @property
    def min_stock(self) -> int:
        return self.product.min_stock

    @property
    def current_stock(self) -> int:
        return self.product.stock

    @property
    def current_quantity_sold(self) -> int:
        return self.product.quantity_sold

    @property
    def stock_status(self) -> StockStatus:
        return stock_status(self.stock, self.min_stock)

    def to_dict(self) -> dict:
        data = self.product.to_dict()
        data.update({
            "displayStock": self.stock,
            "displayQuantitySold": self.quantity_sold,
            "originalStock": self.current_stock,
            "originalQuantitySold": self.current_quantity_sold,
            "isHistoricalView": self.is_historical,
            "hasEarlySales": self.has_early_sales,
            "earlySalesQuantity": self.early_sales_quantity,
            "revenue": self.revenue,
            "stockStatus": self.stock_status.value,
        })
        return data


@dataclass
class CategoryBreakdown:
    """Sub-totals of one category."""
    category: str
    count: int = 0
    stock: int = 0
    sold: int = 0
    revenue: float = 0.0

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "count": self.count,
            "stock": self.stock,
            "sold": self.sold,
            "revenue": self.revenue,
        }


@dataclass
class StockStatistics:
    """List-level statistics of a stock view."""
    total_products: int = 0
    total_stock: int = 0
    total_sold: int = 0
    out_of_stock: int = 0
    low_stock: int = 0
    total_revenue: float = 0.0
    category_breakdown: List[CategoryBreakdown] = field(default_factory=list)
    is_historical_view: bool = False

    @property
    def healthy(self) -> int:
        return self.total_products - self.out_of_stock - self.low_stock

    @property
    def stock_levels(self) -> dict:
        return {
            "outOfStock": self.out_of_stock,
            "lowStock": self.low_stock,
            "healthy": self.healthy,
        }

    def to_dict(self) -> dict:
        return {
            "totalProducts": self.total_products,
            "totalStock": self.total_stock,
            "totalSold": self.total_sold,
            "outOfStock": self.out_of_stock,
            "lowStock": self.low_stock,
            "totalRevenue": self.total_revenue,
            "categoryBreakdown": [c.to_dict() for c in self.category_breakdown],
            "stockLevels": self.stock_levels,
            "isHistoricalView": self.is_historical_view,
        }
