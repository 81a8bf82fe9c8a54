"""
Retry logic with exponential backoff for profile fetches.

The user repository may be briefly unavailable (locked SQLite file,
dropped connection). Fetches are retried, and a circuit breaker stops
hammering a repository that keeps failing. Scoring is never retried.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


class CircuitOpenError(RetryError):
    """Raised instead of calling through while a circuit breaker is open."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    retry_if: Optional[Callable[[Exception], bool]] = None,
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        retry_if: Optional predicate; exceptions it rejects are re-raised at once
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=3, retry_if=is_transient_error)
        def fetch_user(session, user_id):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retry_if is not None and not retry_if(e):
                        raise

                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)

                    time.sleep(current_delay)
                    delay *= exponential_base

            # Only reachable with a negative max_retries
            raise RetryError(f"No attempts made for {func.__name__}")

        return wrapper
    return decorator


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if a storage exception is likely transient and worth retrying.

    Args:
        exception: Exception to check

    Returns:
        True for lock contention, timeouts and dropped connections
    """
    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True

    error_str = str(exception).lower()

    transient_keywords = [
        'database is locked',
        'database is busy',
        'timeout',
        'timed out',
        'connection',
        'temporarily unavailable',
        'disk i/o error',
    ]

    return any(keyword in error_str for keyword in transient_keywords)


class CircuitBreaker:
    """
    Stop calling a repository after repeated failures.

    States:
    - CLOSED: calls go through
    - OPEN: calls fail fast with CircuitOpenError
    - HALF_OPEN: recovery timeout passed, the next call decides
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        expected_exception: Tuple[Type[Exception], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            failure_threshold: Consecutive failures before the circuit opens
            recovery_timeout: Seconds the circuit stays open
            expected_exception: Exceptions that count as a failure
            clock: Time source in seconds
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.clock = clock

        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self.state = self.CLOSED

    def call(self, func: Callable, *args, **kwargs):
        """
        Run `func` unless the circuit is open.

        Raises:
            CircuitOpenError: While open and the recovery timeout has not passed
            Original exception: If `func` fails
        """
        if self.state == self.OPEN:
            remaining = self._time_until_reset()
            if remaining > 0:
                raise CircuitOpenError(
                    f"Circuit open after {self.failure_count} failures, "
                    f"retry after {remaining:.0f}s"
                )
            self.state = self.HALF_OPEN

        try:
            result = func(*args, **kwargs)
        except self.expected_exception:
            self._on_failure()
            raise
        self.reset()
        return result

    def _time_until_reset(self) -> float:
        if self.opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (self.clock() - self.opened_at))

    def _on_failure(self):
        self.failure_count += 1
        # A failed trial call reopens at once
        if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self.state = self.OPEN
            self.opened_at = self.clock()

    def reset(self):
        """Close the circuit and forget past failures."""
        self.failure_count = 0
        self.opened_at = None
        self.state = self.CLOSED
