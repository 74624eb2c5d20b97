"""
Resilience helpers for live forecast sources.

Retries happen inside a Forecast Source, never in the scoring engine:
once a source gives up, the caller gets a FetchError with the category
and message of the last failure.

- categorize_error() maps httpx/JSON exceptions to an ErrorType
- @with_retry wraps an async fetch with bounded exponential backoff
"""

import asyncio
import functools
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import httpx

from sunset_score.errors import ErrorType, FetchError

logger = logging.getLogger(__name__)


# Status codes worth another attempt besides any 5xx
RETRYABLE_STATUS_CODES = frozenset({408, 429})

# Bodies we could not make sense of; these come back identical on retry
PARSE_ERRORS = (json.JSONDecodeError, KeyError, IndexError, AttributeError, ValueError, TypeError)

FETCH_FAILURES = (httpx.HTTPError, FetchError) + PARSE_ERRORS


@dataclass
class RetryConfig:
    """Bounded exponential backoff: base, 2*base, 4*base ... capped at max."""
    max_retries: int = 2  # 2 retries = 3 total attempts
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 5.0
    jitter: bool = True


DEFAULT_RETRY_CONFIG = RetryConfig()


def categorize_error(exception: Exception) -> Tuple[ErrorType, str]:
    """
    Categorize an exception for logging and FetchError construction.

    Returns:
        Tuple of (ErrorType, error_message)
    """
    if isinstance(exception, FetchError):
        return (exception.error_type, exception.cause)

    error_msg = str(exception)[:200]

    if isinstance(exception, httpx.TimeoutException):
        return (ErrorType.TIMEOUT, f"Timeout: {error_msg}")

    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        if status == 429:
            return (ErrorType.RATE_LIMIT, "HTTP 429 Too Many Requests")
        return (ErrorType.API_ERROR, f"HTTP {status}")

    if isinstance(exception, httpx.RequestError):
        return (ErrorType.API_ERROR, f"Request error: {error_msg}")

    if isinstance(exception, PARSE_ERRORS):
        return (ErrorType.PARSE_ERROR, f"Parse error: {type(exception).__name__}: {error_msg}")

    return (ErrorType.UNKNOWN, error_msg)


def calculate_backoff_delay(attempt: int, config: RetryConfig) -> float:
    """Delay in seconds before retry `attempt` (0-indexed), plus up to 25% jitter."""
    delay = min(config.base_delay_seconds * 2 ** attempt, config.max_delay_seconds)
    if config.jitter:
        delay += delay * 0.25 * random.random()
    return delay


def is_retryable_error(exception: Exception) -> bool:
    """Transport failures, timeouts, 408/429 and 5xx are retried; nothing else."""
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        return status in RETRYABLE_STATUS_CODES or status >= 500
    return isinstance(exception, (httpx.TimeoutException, httpx.RequestError))


def with_retry(
    config: Optional[RetryConfig] = None,
    provider_name: str = "unknown"
) -> Callable:
    """
    Decorator adding retry with exponential backoff to an async fetch.

    Usage:
        @with_retry(provider_name="Open-Meteo")
        async def fetch_hourly(self, coordinate):
            ...

    Raises:
        FetchError: once retries are exhausted or the error is not retryable
    """
    if config is None:
        config = DEFAULT_RETRY_CONFIG

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            last_exception: Optional[Exception] = None
            start_time = time.time()

            for attempt in range(config.max_retries + 1):
                if attempt > 0:
                    delay = calculate_backoff_delay(attempt - 1, config)
                    logger.info(
                        f"[{provider_name}] Retry {attempt}/{config.max_retries} "
                        f"after {delay:.1f}s delay"
                    )
                    await asyncio.sleep(delay)

                try:
                    result = await func(*args, **kwargs)
                except FETCH_FAILURES as e:
                    last_exception = e
                    error_type, error_msg = categorize_error(e)
                    logger.warning(
                        f"[{provider_name}] Attempt {attempt + 1} failed: "
                        f"{error_type.value} - {error_msg}"
                    )

                    if not is_retryable_error(e):
                        logger.error(f"[{provider_name}] Error not retryable, giving up")
                        break
                    continue

                if attempt > 0:
                    elapsed = time.time() - start_time
                    logger.info(
                        f"[{provider_name}] Succeeded on attempt {attempt + 1} "
                        f"({elapsed:.2f}s total)"
                    )
                return result

            elapsed = time.time() - start_time
            error_type, error_msg = categorize_error(last_exception)
            logger.error(
                f"[{provider_name}] Fetch failed after {elapsed:.2f}s. "
                f"Last error: {error_type.value}"
            )
            raise FetchError(error_msg, error_type) from last_exception

        return async_wrapper

    return decorator
