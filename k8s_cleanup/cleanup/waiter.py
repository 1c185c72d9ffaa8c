"""Polling for deletion completion."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from k8s_cleanup.cleanup.errors import OperationCancelledError, ResourceNotFoundError, VerificationTimeoutError
from k8s_cleanup.models.directive import ResourceKind

logger = logging.getLogger(__name__)


class DeletionWaiter:
    """Polls the API until a resource is gone or the deletion timeout elapses.

    The first check happens immediately. Errors other than "not found" end the
    wait at once; they are not retried here since the delete request itself
    already was.

    Attributes:
        backend: Resource backend
        interval: Seconds between checks
        timeout: Seconds before giving up
        stop_event: Event that interrupts the wait
    """

    def __init__(
        self,
        backend,
        interval: float,
        timeout: float,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.backend = backend
        self.interval = interval
        self.timeout = timeout
        self.stop_event = stop_event or threading.Event()

    def wait_for_deletion(self, kind: ResourceKind, name: str, namespace: str = "") -> None:
        """Block until the resource no longer exists.

        Raises:
            VerificationTimeoutError: If the resource still exists at the deadline
            OperationCancelledError: If the stop event is set while waiting
            Exception: Any backend error other than not-found
        """
        deadline = time.monotonic() + self.timeout
        while True:
            try:
                self.backend.get(kind, name, namespace)
            except ResourceNotFoundError:
                logger.info(f"Resource deleted: {kind} {namespace}/{name}")
                return

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise VerificationTimeoutError(kind, name, namespace, self.timeout)

            logger.info(
                f"Resource not deleted: {kind} {namespace}/{name} "
                f"(retry interval {self.interval}s, timeout {self.timeout}s)"
            )
            if self.stop_event.wait(min(self.interval, remaining)):
                raise OperationCancelledError(f"cancelled while waiting for deletion of {kind} {namespace}/{name}")
