"""
Exceptions raised at the edges of the stock tracker.

The reconciliation core never raises: data-quality problems surface as
clamped values and flags. These errors belong to parsing, validation and
persistence.
"""
from typing import Dict, Optional


class StockTrackError(Exception):
    """Base class for stock tracker errors."""


class RepositoryError(StockTrackError):
    """Raised when the hosted store cannot return the full record set."""


class ProductNotFoundError(StockTrackError):
    """Raised when a product id does not exist in the repository."""

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class ProductValidationError(StockTrackError):
    """Raised when a product form fails validation."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message or "; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
