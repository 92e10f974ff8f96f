from .logger import setup_logger
from .retry import retry_with_backoff
from .errors import (
    StockTrackError,
    RepositoryError,
    ProductNotFoundError,
    ProductValidationError,
)

__all__ = [
    "setup_logger",
    "retry_with_backoff",
    "StockTrackError",
    "RepositoryError",
    "ProductNotFoundError",
    "ProductValidationError",
]
