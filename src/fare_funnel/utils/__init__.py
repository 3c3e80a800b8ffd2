"""
Utilities module - Common utility functions.
"""

from fare_funnel.utils.logging import setup_logging
from fare_funnel.utils.retry import retry_async, RetryConfig
from fare_funnel.utils.waiting import (
    Clock,
    CancelToken,
    Deadline,
    bounded_wait,
    cancellable_sleep,
    poll_until,
)

__all__ = [
    "setup_logging",
    "retry_async",
    "RetryConfig",
    "Clock",
    "CancelToken",
    "Deadline",
    "bounded_wait",
    "cancellable_sleep",
    "poll_until",
]
