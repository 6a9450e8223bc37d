"""Bounded exponential-backoff retry shared by every external call site."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .config import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY

T = TypeVar("T")

_logging = logging.getLogger(__name__)


def backoff_delays(max_attempts: int, initial_delay: float) -> list[float]:
    """Return the waits between attempts: initial_delay * 2**(attempt-1)."""
    return [initial_delay * 2 ** (attempt - 1) for attempt in range(1, max_attempts)]


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_RETRY_DELAY,
    *,
    description: str = "",
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run operation until it succeeds or max_attempts is exhausted.

    After the n-th failure the caller blocks for initial_delay * 2**(n-1)
    seconds. When the budget is used up the last exception propagates
    unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    label = description or getattr(operation, "__name__", "operation")
    attempt = 1
    while True:
        try:
            return operation()
        except retry_on as e:
            if attempt >= max_attempts:
                _logging.error(f"{label} failed after {max_attempts} attempts: {e}")
                raise
            delay = initial_delay * 2 ** (attempt - 1)
            _logging.warning(
                f"{label} failed: {e}. Retrying in {delay:g} seconds "
                f"({attempt}/{max_attempts})..."
            )
            sleep(delay)
            attempt += 1


@dataclass
class RetryPolicy:
    """Retry budget carried by the components that call the backend."""

    max_attempts: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_RETRY_DELAY
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def run(self, operation: Callable[[], T], description: str = "") -> T:
        return with_retry(
            operation,
            self.max_attempts,
            self.initial_delay,
            description=description,
            sleep=self.sleep,
        )


__all__ = [
    "backoff_delays",
    "with_retry",
    "RetryPolicy",
]
