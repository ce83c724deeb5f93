"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def log_execution_time(func: F) -> F:
    """Decorator to log function execution time.

    Successful calls are logged at DEBUG, failures at WARNING; the exception
    is re-raised unchanged.

    Args:
        func: The function to decorate

    Returns:
        Decorated function that logs execution time
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start_time
            logger.debug(f"{func.__qualname__} completed in {duration * 1000:.1f}ms")
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.warning(f"{func.__qualname__} failed after {duration * 1000:.1f}ms: {str(e)}")
            raise
    return cast(F, wrapper)
