"""Generic retry-with-backoff combinator."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from .errors import RetryError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_retry_function(
    operation: Callable[[], T],
    max_retries: int = 3,
    delay_ms: int = 1000,
    *,
    give_up_on: Tuple[Type[BaseException], ...] = (),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[], T]:
    """Wrap ``operation`` so that calling the result retries it on failure.

    Attempt ``n`` (zero based) is followed by a wait of ``delay_ms * 2**n``
    milliseconds, except after the last attempt. Exceptions listed in
    ``give_up_on`` propagate immediately. Once ``max_retries`` attempts have
    failed a :class:`RetryError` chained from the last exception is raised.
    """

    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    def run() -> T:
        last_error: Optional[Exception] = None
        for attempt in range(max_retries):
            try:
                return operation()
            except give_up_on:
                raise
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.warning("Attempt %d failed: %s", attempt + 1, exc)
                if attempt < max_retries - 1:
                    sleep(delay_ms * (2 ** attempt) / 1000.0)

        message = f"All {max_retries} attempts failed: {last_error}"
        raise RetryError(message, attempts=max_retries) from last_error

    return run


__all__ = ["create_retry_function"]
