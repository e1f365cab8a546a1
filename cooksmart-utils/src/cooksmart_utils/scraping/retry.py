"""Retry decorators for handling transient connection errors."""

import logging
import time
from functools import wraps
from typing import Any, Callable, Tuple, Type

import requests

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    requests.exceptions.ConnectionError,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.Timeout,
    ConnectionResetError,
)


def retry_on_connection_error(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    exceptions: Tuple[Type[BaseException], ...] = TRANSIENT_ERRORS,
) -> Callable:
    """Decorator that retries a function on connection errors with exponential backoff.

    Only transport-level failures are retried. HTTP error statuses and
    anything raised by the function body itself propagate on the first try.

    Args:
        max_retries: Maximum number of attempts, including the first one
        initial_delay: Delay before the second attempt in seconds; doubles
            after every failure
        exceptions: Exception types that count as transient

    Returns:
        Decorated function that retries on connection errors

    Example:
        @retry_on_connection_error(max_retries=3, initial_delay=1.0)
        def fetch_recipes(url):
            return requests.get(url, timeout=15)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            for attempt in range(1, max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(
                            f"{func.__name__} failed after {max_retries} attempts: {e}"
                        )
                        raise
                    logger.warning(
                        f"Connection error on attempt {attempt}/{max_retries}: {e}. "
                        f"Retrying in {delay}s..."
                    )
                    time.sleep(delay)
                    delay *= 2  # Exponential backoff
            return None

        return wrapper

    return decorator
