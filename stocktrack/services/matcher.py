"""
Pairs sales with products by normalized (name, category).

There is no foreign key between the ledger and the products: a sale
belongs to a product when both the lowercased, stripped name and the
lowercased, stripped category are equal. No fuzzy matching.
"""
from typing import Iterable, List, Optional, Tuple

from stocktrack.models.product import Product
from stocktrack.models.sale import Sale

MatchKey = Tuple[str, str]


def normalize(value: Optional[str]) -> str:
    """Lowercase and strip; None becomes ""."""
    return (value or "").strip().lower()


def product_key(product: Product) -> MatchKey:
    return normalize(product.name), normalize(product.category)


def sale_key(sale: Sale) -> MatchKey:
    return normalize(sale.product), normalize(sale.category)


def matches(sale: Sale, product: Product) -> bool:
    """True iff the sale's normalized product/category equal the product's name/category."""
    return sale_key(sale) == product_key(product)


def match_sales(product: Product, sales: Iterable[Sale]) -> List[Sale]:
    """Matched subset of the ledger, in ledger order."""
    key = product_key(product)
    return [sale for sale in sales if sale_key(sale) == key]
