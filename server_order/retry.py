"""
retry.py — Checkout Retry Policy

Checkout is the one step that is retried. After failed attempt `n` the policy waits
`base_delay_seconds ** n` seconds (2s, 4s, 8s with the defaults) and gives up after
`max_attempts`. The sleep function is injected so tests never wait on the wall clock.

Usage:
    policy = CheckoutRetryPolicy()
    order = policy.run(lambda: client.post(path), on_failure=report)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type, TypeVar

from .errors import ApiError, CheckoutRetryExhaustedError

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 2.0


@dataclass
class CheckoutRetryPolicy:
    """
    Fixed exponential backoff.

    Attributes:
        max_attempts (int): Total number of attempts, including the first one.
        base_delay_seconds (float): Base of the exponential delay.
        retry_on (tuple): Exception types that trigger a retry. Anything else propagates
            immediately.
        sleep (callable): Called with the delay in seconds between attempts.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    retry_on: Tuple[Type[BaseException], ...] = (ApiError,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def get_delay(self, attempt: int) -> float:
        """
        Delay after failed attempt number `attempt` (1-based).

        Formula: delay = base ** attempt
        """
        return self.base_delay_seconds ** attempt

    def run(self, operation: Callable[[], T],
            on_failure: Optional[Callable[[int, BaseException, float], None]] = None) -> T:
        """
        Calls `operation` until it succeeds or the attempts are used up.

        Args:
            operation: Zero-argument callable performing one attempt.
            on_failure: Optional callback receiving (attempt, error, delay) for every
                failed attempt, before the delay is slept.

        Returns:
            The result of the first successful attempt.

        Raises:
            CheckoutRetryExhaustedError: If every attempt failed with a retryable error.
            Exception: Any non-retryable error raised by `operation`, unchanged.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except self.retry_on as e:
                delay = self.get_delay(attempt)
                if on_failure is not None:
                    on_failure(attempt, e, delay)
                else:
                    log.warning(f"Versuch {attempt} fehlgeschlagen: {e}. Neuer Versuch in {delay:g}s...")
                # Auch nach dem letzten Versuch wird gewartet (2s, 4s, 8s).
                self.sleep(delay)
        raise CheckoutRetryExhaustedError(self.max_attempts)
