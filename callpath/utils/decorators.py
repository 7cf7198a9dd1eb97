"""
Decorator utilities for callpath.
"""

import functools
import time
from typing import Any, Callable, TypeVar, cast

from callpath.logger import info

F = TypeVar("F", bound=Callable[..., Any])


def timing_decorator(func: F) -> F:
    """
    Log how long a call took, whether it returned or raised.

    Used around the slow CLI steps (indexing) so ``--verbose`` shows where
    the time goes.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        started = time.perf_counter()
        outcome = "failed"
        try:
            result = func(*args, **kwargs)
            outcome = "finished"
            return result
        finally:
            elapsed = time.perf_counter() - started
            info(f"{func.__name__} {outcome} in {elapsed:.4f} seconds")

    return cast(F, wrapper)
