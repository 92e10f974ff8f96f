"""
Product (inventory) models.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from stocktrack.utils.dates import parse_optional_datetime, to_iso


class StockStatus(Enum):
    """Stock status relative to the reorder threshold."""
    OUT_OF_STOCK = "out_of_stock"   # stock == 0
    LOW_STOCK = "low_stock"         # 0 < stock <= min_stock
    IN_STOCK = "in_stock"           # stock > min_stock


def stock_status(stock: int, min_stock: int) -> StockStatus:
    """Classify a stock figure against its reorder threshold."""
    if stock == 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= min_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


@dataclass
class Product:
    """
    Inventory product.

    `stock` and `quantity_sold` are denormalized caches; the reconciliation
    engine can always re-derive them from `initial_stock`,
    `initial_stock_date` and the sales ledger.
    """
    name: str
    category: str
    price: float = 0.0
    initial_stock: int = 0
    initial_stock_date: Optional[datetime] = None
    stock: int = 0
    min_stock: int = 0
    quantity_sold: int = 0
    description: Optional[str] = None

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def stock_status(self) -> StockStatus:
        return stock_status(self.stock, self.min_stock)

    def with_updates(self, **changes) -> 'Product':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for database write / API response."""
        data = {
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "initialStock": self.initial_stock,
            "initialStockDate": to_iso(self.initial_stock_date),
            "stock": self.stock,
            "minStock": self.min_stock,
            "quantitySold": self.quantity_sold,
            "description": self.description,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Product':
        """Create from a database row (camelCase columns)."""
        def safe_int(val, default: int = 0) -> int:
            if val is None:
                return default
            try:
                return int(float(val))
            except (ValueError, TypeError):
                return default

        def safe_float(val) -> float:
            if val is None:
                return 0.0
            try:
                return float(val)
            except (ValueError, TypeError):
                return 0.0

        stock = safe_int(record.get("stock"))
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            category=record.get("category") or "",
            price=safe_float(record.get("price")),
            # Older rows have no initialStock: their stock was the baseline
            initial_stock=safe_int(record.get("initialStock"), default=stock),
            initial_stock_date=parse_optional_datetime(record.get("initialStockDate")),
            stock=stock,
            min_stock=safe_int(record.get("minStock")),
            quantity_sold=safe_int(record.get("quantitySold")),
            description=record.get("description"),
            created_at=parse_optional_datetime(record.get("createdAt")),
            updated_at=parse_optional_datetime(record.get("updatedAt")),
        )
