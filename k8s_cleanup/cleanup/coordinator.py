"""Self-destruct timing."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from k8s_cleanup.cleanup.errors import OperationCancelledError
from k8s_cleanup.cleanup.notification import NotificationSignal
from k8s_cleanup.models.deletion_operation import SelfDestructReason

logger = logging.getLogger(__name__)

# granularity at which the stop event is checked while waiting on the signal
_WAIT_SLICE = 0.1


class SelfDestructCoordinator:
    """Decides when the agent may delete its own workload.

    With blocking deletion every earlier directive already waited for real
    absence, so self-destruction proceeds immediately. Otherwise it waits for
    a finalize notification or the cleanup timeout, whichever comes first.
    """

    def __init__(
        self,
        cleanup_timeout: float,
        blocking: bool,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.cleanup_timeout = cleanup_timeout
        self.blocking = blocking
        self.stop_event = stop_event or threading.Event()

    def await_self_destruct(self, signal: NotificationSignal) -> SelfDestructReason:
        """Block until self-destruction may proceed.

        Raises:
            OperationCancelledError: If the stop event is set while waiting
        """
        if self.blocking:
            logger.info("Self destructing...")
            return SelfDestructReason.IMMEDIATE

        logger.info(
            f"Waiting for final cleanup notification or timeout before destructing "
            f"(max delay {self.cleanup_timeout:.0f}s)..."
        )
        deadline = time.monotonic() + self.cleanup_timeout
        while True:
            remaining = deadline - time.monotonic()
            if signal.wait(max(0.0, min(_WAIT_SLICE, remaining))):
                logger.info("FinalizeCleanup notification received, self destructing...")
                return SelfDestructReason.NOTIFIED
            if self.stop_event.is_set():
                raise OperationCancelledError("cancelled while waiting for finalize notification")
            if remaining <= 0:
                logger.info(f"{self.cleanup_timeout:.0f} seconds elapsed, self destructing...")
                return SelfDestructReason.TIMEOUT
