"""Retry with exponential backoff for API requests.

Only errors classified as retryable (network and TLS handshake timeouts) are
retried. Everything else is surfaced on the first attempt.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import urllib3

from k8s_cleanup.cleanup.errors import OperationCancelledError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TLS_HANDSHAKE_TIMEOUT = "TLS handshake timeout"


@dataclass(frozen=True)
class Backoff:
    """Exponential backoff schedule.

    Attributes:
        steps: Maximum number of attempts
        duration: Wait before the second attempt, in seconds
        factor: Multiplier applied to the wait after each attempt
        jitter: Fraction of each wait randomly added or subtracted
        cap: Upper bound for a single wait, in seconds
    """

    steps: int = 5
    duration: float = 1.0
    factor: float = 2.0
    jitter: float = 0.1
    cap: float = 30.0

    def delays(self, rng: Optional[random.Random] = None) -> list[float]:
        """Return the waits between consecutive attempts.

        There are ``steps - 1`` waits. Each base wait is capped before jitter
        and the jittered value is capped again.
        """
        rng = rng or random.Random()
        delays = []
        base = self.duration
        for _ in range(max(self.steps - 1, 0)):
            base = min(base, self.cap)
            wait = base
            if self.jitter > 0:
                wait += base * self.jitter * rng.uniform(-1.0, 1.0)
            delays.append(min(max(wait, 0.0), self.cap))
            base *= self.factor
        return delays


DEFAULT_BACKOFF = Backoff()


def is_retryable(err: BaseException) -> bool:
    """Return True for network timeouts and TLS handshake timeouts."""
    if isinstance(err, (urllib3.exceptions.TimeoutError, TimeoutError)):
        logger.debug(f"Network timeout, retrying: {err}")
        return True
    if isinstance(err, urllib3.exceptions.MaxRetryError) and isinstance(
        err.reason, (urllib3.exceptions.TimeoutError, TimeoutError)
    ):
        logger.debug(f"Network timeout, retrying: {err}")
        return True
    if TLS_HANDSHAKE_TIMEOUT in str(err):
        logger.debug(f"TLS handshake timeout, retrying: {err}")
        return True
    return False


def retry_on_error(
    fn: Callable[[], T],
    backoff: Backoff = DEFAULT_BACKOFF,
    retryable: Callable[[BaseException], bool] = is_retryable,
    stop_event: Optional[threading.Event] = None,
) -> T:
    """Call ``fn`` until it succeeds, a non-retryable error occurs or attempts run out.

    Args:
        fn: Operation to attempt
        backoff: Backoff schedule
        retryable: Classifier deciding whether an error is worth another attempt
        stop_event: Event that interrupts the wait between attempts

    Returns:
        Result of the first successful call

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error
        OperationCancelledError: If stop_event was set while waiting
        Exception: The first non-retryable error, unchanged
    """
    stop_event = stop_event or threading.Event()
    delays = backoff.delays()
    attempts = max(backoff.steps, 1)

    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as e:
            if not retryable(e):
                raise
            if attempt == attempts:
                raise RetryExhaustedError(attempts, e) from e

            delay = delays[attempt - 1]
            logger.debug(f"Attempt {attempt}/{attempts} failed, retrying in {delay:.2f}s")
            if stop_event.wait(delay):
                raise OperationCancelledError("cancelled while waiting to retry") from e

    # unreachable: the loop either returns or raises
    raise RetryExhaustedError(attempts, RuntimeError("no attempts made"))
