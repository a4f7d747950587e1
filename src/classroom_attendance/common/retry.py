from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from ..core.constants import DB_RETRY_ATTEMPTS, DB_RETRY_BASE_DELAY
from ..core.exceptions import TransientStorageError
from .logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def retry_transient(
    fn: Callable[[], T],
    *,
    attempts: int = DB_RETRY_ATTEMPTS,
    base_delay: float = DB_RETRY_BASE_DELAY,
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """Run a unit of work, retrying on TransientStorageError with exponential backoff."""

    sleep = sleep or time.sleep
    attempt = 1
    while True:
        try:
            return fn()
        except TransientStorageError:
            if attempt >= attempts:
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning("transient storage error, retry %d/%d in %.3fs", attempt, attempts - 1, delay)
            sleep(delay)
            attempt += 1
