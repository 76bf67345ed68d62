"""
Retry mechanism for resilient upstream operations.

Retries are an explicit bounded loop: after every attempt a classifier
decides whether to succeed, retry or fail, and the delay between attempts
is a fixed base plus uniform jitter.
"""

import asyncio
import random
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from shared.logging import get_logger


class RetryDecision(str, Enum):
    """Outcome of classifying a single attempt."""

    SUCCEED = "succeed"
    RETRY = "retry"
    FAIL = "fail"


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_retries: int = 1,
                 base_delay: float = 0.6,
                 jitter: float = 0.2):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.jitter = jitter

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay(self) -> float:
        """Fixed base delay plus uniform jitter in [0, jitter)."""
        return self.base_delay + random.uniform(0, self.jitter)


class RetryError(Exception):
    """Raised when all retry attempts are exhausted without an underlying exception."""

    def __init__(self, message: str, attempts: int, last_result: Any = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_result = last_result


Classifier = Callable[[Optional[Any], Optional[BaseException]], RetryDecision]


async def retry_async(
    operation: Callable[[int], Awaitable[Any]],
    classify: Classifier,
    config: Optional[RetryConfig] = None,
    *,
    name: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, float], None]] = None,
) -> Any:
    """Run ``operation`` until the classifier returns SUCCEED or FAIL.

    ``operation`` receives the zero-based attempt number. ``classify`` is called
    with ``(result, None)`` after a normal return and ``(None, exc)`` after an
    exception. On FAIL, or when retries are exhausted, the last exception is
    re-raised; a returned value classified as a failure raises ``RetryError``.
    """
    config = config or RetryConfig()
    logger = get_logger(f"retry.{name}")

    attempt = 0
    while True:
        result = None
        error: Optional[BaseException] = None
        try:
            result = await operation(attempt)
        except Exception as exc:
            error = exc

        decision = classify(result, error)

        if decision is RetryDecision.SUCCEED:
            if attempt > 0:
                logger.info("Retry succeeded", attempt=attempt + 1, operation=name)
            return result

        exhausted = attempt >= config.max_retries
        if decision is RetryDecision.FAIL or exhausted:
            if decision is RetryDecision.RETRY:
                logger.error(
                    "All retry attempts exhausted",
                    attempts=attempt + 1,
                    max_attempts=config.max_attempts,
                    operation=name,
                    error=str(error) if error else None
                )
            if error is not None:
                raise error
            raise RetryError(
                f"{name} failed after {attempt + 1} attempts",
                attempts=attempt + 1,
                last_result=result
            )

        delay = config.delay()
        logger.warning(
            "Retry attempt failed, waiting before next attempt",
            attempt=attempt + 1,
            max_retries=config.max_retries,
            delay_ms=round(delay * 1000),
            operation=name,
            error=str(error) if error else None
        )
        if on_retry is not None:
            on_retry(attempt + 1, delay)
        await sleep(delay)
        attempt += 1
