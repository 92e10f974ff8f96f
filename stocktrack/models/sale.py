"""
Sale ledger models.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

from stocktrack.utils.dates import parse_datetime, parse_optional_datetime, to_iso


@dataclass(frozen=True)
class Sale:
    """
    A single register sale. Immutable once ingested.

    `product` and `category` are free text; matching against products is
    done on their normalized form (see services.matcher).
    """
    product: str
    category: str
    date: datetime
    quantity: int
    price: float = 0.0
    total: float = 0.0

    id: Optional[str] = None
    register: Optional[str] = None     # cash register / point of sale label
    seller: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"Sale quantity must be >= 0, got {self.quantity}")

    def to_dict(self) -> dict:
        """Convert to dictionary for database insert / API response."""
        data = {
            "product": self.product,
            "category": self.category,
            "date": to_iso(self.date),
            "quantity": self.quantity,
            "price": self.price,
            "total": self.total,
            "register": self.register,
            "seller": self.seller,
            "createdAt": to_iso(self.created_at),
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Sale':
        """
        Create from a database row.

        Raises:
            ValueError: On a missing/unparseable date or a negative quantity
        """
        quantity = int(record.get("quantity") or 0)
        price = float(record.get("price") or 0)
        total = record.get("total")
        return cls(
            id=record.get("id"),
            product=record.get("product") or "",
            category=record.get("category") or "",
            date=parse_datetime(record.get("date")),
            quantity=quantity,
            price=price,
            total=float(total) if total is not None else price * quantity,
            register=record.get("register"),
            seller=record.get("seller"),
            created_at=parse_optional_datetime(record.get("createdAt")),
        )
