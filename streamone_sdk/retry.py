"""
Opt-in retries for the HTTP transport.

The SDK itself never retries: HttpTransport uses RetryPolicy.no_retry()
unless the caller hands it RetryPolicy.default() or a policy of its own.
Only failures that never reached the API are retried; a response with a
non-zero status is an answer, not a failure.
"""

import logging
import time
from typing import Callable

from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .errors import NetworkError, RateLimitError, ServerError

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (NetworkError, ServerError, RateLimitError)


class RetryPolicy:
    """
    How often and how patiently a failed send is repeated.

    Waits grow exponentially between min_wait_seconds and max_wait_seconds.
    A rate-limited attempt waits for the server's Retry-After instead, capped
    at max_wait_seconds.

    Args:
        max_attempts: Total attempts, including the first
        min_wait_seconds: Shortest wait between attempts
        max_wait_seconds: Longest wait between attempts
        multiplier: Base of the exponential backoff
        sleep: Called with the number of seconds to wait
    """

    def __init__(
        self,
        max_attempts: int = 3,
        min_wait_seconds: float = 1.0,
        max_wait_seconds: float = 10.0,
        multiplier: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_attempts = max_attempts
        self.min_wait_seconds = min_wait_seconds
        self.max_wait_seconds = max_wait_seconds
        self.multiplier = multiplier
        self.sleep = sleep

    @classmethod
    def default(cls) -> "RetryPolicy":
        """Three attempts, backing off 2s then 4s."""
        return cls()

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """A single attempt; failures surface immediately."""
        return cls(max_attempts=1)

    def wait_seconds(self, retry_state: RetryCallState) -> float:
        """Seconds to wait before the next attempt."""
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError):
            retry_after = error.details.get("retryAfter")
            if retry_after is not None:
                return min(float(retry_after), self.max_wait_seconds)

        backoff = wait_exponential(
            multiplier=self.multiplier,
            min=self.min_wait_seconds,
            max=self.max_wait_seconds,
        )
        return backoff(retry_state)

    def to_tenacity_kwargs(self) -> dict:
        """Keyword arguments for tenacity.Retrying."""
        return {
            "stop": stop_after_attempt(self.max_attempts),
            "wait": self.wait_seconds,
            "retry": retry_if_exception_type(RETRYABLE_ERRORS),
            "before_sleep": before_sleep_log(logger, logging.WARNING),
            "sleep": self.sleep,
            "reraise": True,
        }
