"""Service for executing API calls with automatic retries.

Implements exponential backoff for transient PokeAPI failures: rate limits
(429), temporary server issues (5xx) and network errors. Anything else,
including 404 and decoding failures, propagates on the first attempt.
When retries run out the last typed error is re-raised unchanged.
"""

import logging
import asyncio
from typing import Any, Callable, Coroutine, Optional, Tuple, Type

from dexpipe.domain.errors import NetworkFailedError, RateLimitedError, ServerError
from dexpipe.domain.events.api_events import RetryScheduled

logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RateLimitedError,
    ServerError,
    NetworkFailedError,
)

EventListener = Callable[[Any], None]


def _log_event(event: Any) -> None:
    logger.debug(f"EVENT: {event}")


class ApiRetryService:
    """Handles API call execution with retries and exponential backoff."""

    def __init__(
        self,
        max_retries: int = 0,
        initial_backoff_s: float = 0.5,
        backoff_factor: float = 2.0,
        retryable_exceptions: Tuple[Type[Exception], ...] = RETRYABLE_EXCEPTIONS,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the ApiRetryService.

        Args:
            max_retries: Maximum number of retry attempts (0 disables retries).
            initial_backoff_s: Initial delay in seconds for the first retry.
            backoff_factor: Multiplier for the backoff delay.
            retryable_exceptions: Exception types that trigger a retry.
            event_listener: Receives `RetryScheduled` events.
        """
        self.max_retries = max(0, max_retries)
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self.retryable_exceptions = retryable_exceptions
        self._dispatch_event = event_listener or _log_event

        logger.info(
            f"ApiRetryService initialized: max_retries={self.max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    async def execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, Any]],
        *args: Any,
        endpoint_name: Optional[str] = None,
        **kwargs: Any
    ) -> Any:
        """Executes an async function, retrying transient failures.

        Args:
            func: The async function (one complete API attempt) to execute.
            *args: Positional arguments for the function.
            endpoint_name: Name used in logs and events.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the first successful attempt.

        Raises:
            Exception: The last retryable error once retries are exhausted,
                or any non-retryable error immediately.
        """
        current_backoff = self.initial_backoff_s
        effective_endpoint = endpoint_name or getattr(func, "__name__", "call")

        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except self.retryable_exceptions as e:
                if attempt >= self.max_retries:
                    if self.max_retries:
                        logger.error(
                            f"Max retries ({self.max_retries}) reached for {effective_endpoint}. Last error: {e}"
                        )
                    raise
                logger.warning(
                    f"Retryable error calling {effective_endpoint} on attempt "
                    f"{attempt + 1}/{self.max_retries + 1}: {type(e).__name__}. "
                    f"Waiting {current_backoff:.2f}s..."
                )
                self._dispatch_event(RetryScheduled(
                    endpoint=effective_endpoint,
                    attempt_number=attempt + 1,
                    delay_seconds=current_backoff,
                ))
                await asyncio.sleep(current_backoff)
                current_backoff *= self.backoff_factor
        raise RuntimeError("unreachable")  # loop always returns or raises
