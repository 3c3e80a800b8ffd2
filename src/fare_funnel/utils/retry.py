"""
Retry utilities with exponential backoff.

The core never retries a whole state wait on its own; this is the
caller-side backoff used by the CLI around await_state().
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar
import logging

from fare_funnel.exceptions import Cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.
    
    Attributes:
        max_attempts: Maximum number of attempts
        initial_delay_ms: Initial delay before first retry
        max_delay_ms: Maximum delay between retries
        backoff_multiplier: Multiplier for exponential backoff
        retry_on: Exception types to retry on
        on_retry: Callback function called on each retry
    """
    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 30000
    backoff_multiplier: float = 2.0
    retry_on: Tuple[Type[Exception], ...] = (Exception,)
    on_retry: Optional[Callable[[int, Exception], None]] = None


async def retry_async(
    func: Callable[..., T],
    config: RetryConfig,
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Execute a function with retry logic.
    
    Cancelled is never retried, even when it matches retry_on.
    
    Args:
        func: Async function to execute
        config: Retry configuration
        *args: Function arguments
        **kwargs: Function keyword arguments
        
    Returns:
        Function result
        
    Raises:
        The last exception if all retries fail
    """
    last_exception: Optional[Exception] = None
    delay_ms = config.initial_delay_ms
    
    for attempt in range(config.max_attempts):
        try:
            return await func(*args, **kwargs)
        except Cancelled:
            raise
        except config.retry_on as e:
            last_exception = e
            
            if attempt == config.max_attempts - 1:
                break
            
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_attempts} failed: {e}. "
                f"Retrying in {delay_ms}ms..."
            )
            
            if config.on_retry:
                config.on_retry(attempt + 1, e)
            
            await asyncio.sleep(delay_ms / 1000)
            
            delay_ms = min(
                delay_ms * config.backoff_multiplier,
                config.max_delay_ms,
            )
    
    raise last_exception  # type: ignore
