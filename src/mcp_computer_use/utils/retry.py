"""Retry logic for transient Selenium failures."""

import time
from typing import Callable

from selenium.common.exceptions import (
    NoSuchWindowException,
    StaleElementReferenceException,
    WebDriverException,
)

import logging
logger = logging.getLogger(__name__)


def retry_op(fn: Callable, attempts: int = 3, base_delay: float = 0.2):
    """
    Call `fn`, retrying on transient Selenium exceptions with doubling backoff.

    Args:
        fn: The function to call
        attempts: Total number of calls, including the first (default: 3)
        base_delay: Delay before the second call in seconds; doubles afterwards (default: 0.2)

    Returns:
        The result of the function call

    Raises:
        The last exception if every attempt fails
    """
    delay = base_delay
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except (NoSuchWindowException, StaleElementReferenceException, WebDriverException) as e:
            if attempt >= attempts:
                raise
            logger.debug("Attempt %d/%d of %s failed: %s", attempt, attempts, getattr(fn, "__name__", fn), e)
            time.sleep(delay)
            delay *= 2


__all__ = ["retry_op"]
