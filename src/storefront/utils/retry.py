"""Retry policy for outbound HTTP calls (tenacity)."""

import logging

import httpx
from tenacity import before_sleep_log, retry, retry_if_exception, stop_after_attempt, wait_exponential


def is_retryable_error(exception) -> bool:
    """Return True for transport failures and 429/5xx responses."""
    if isinstance(exception, httpx.TransportError):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        return status == 429 or status >= 500
    return False


def http_retry(logger_name: str, attempts: int = 3, max_wait: int = 10):
    """Exponential backoff capped at ``max_wait`` seconds; the last error is re-raised."""
    return retry(
        retry=retry_if_exception(is_retryable_error),
        wait=wait_exponential(multiplier=1, min=1, max=max_wait),
        stop=stop_after_attempt(attempts),
        before_sleep=before_sleep_log(logging.getLogger(logger_name), logging.WARNING),
        reraise=True,
    )
