"""
Retry helper for reads against the hosted store.
"""
import time
import functools
from typing import Callable, Tuple, Type, Optional, Any
from loguru import logger


def retry_with_backoff(
    max_retries: int = 3,
    backoff_factor: float = 1.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    reraise_as: Optional[Callable[[str], Exception]] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        backoff_factor: Base delay; attempt n waits backoff_factor * 2**n
        exceptions: Exception types that trigger a retry
        reraise_as: Optional exception factory used once all attempts fail;
            the last error is chained as its cause
        sleep: Sleep function; time.sleep when omitted

    Example:
        @retry_with_backoff(max_retries=2, reraise_as=RepositoryError)
        def list_sales(self):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            last_exception: Optional[Exception] = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    if attempt < max_retries:
                        delay = backoff_factor * (2 ** attempt)
                        logger.warning(
                            f"Attempt {attempt + 1}/{max_retries + 1} failed for {func.__name__}: {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                        (sleep or time.sleep)(delay)
                    else:
                        logger.error(
                            f"All {max_retries + 1} attempts failed for {func.__name__}: {e}"
                        )

            if reraise_as is not None:
                raise reraise_as(f"{func.__name__} failed: {last_exception}") from last_exception
            raise last_exception

        return wrapper
    return decorator
