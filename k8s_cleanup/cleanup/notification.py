"""Finalize-cleanup notification handoff.

The notification endpoint and the cleanup run share a FinalizeNotifier. A run
opens a fresh NotificationSignal, the endpoint fires it, and the run closes it
as soon as the self-destruct wait resolves. Notifications that arrive while no
signal is open are rejected.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from k8s_cleanup.cleanup.errors import IllegalNotificationError

logger = logging.getLogger(__name__)


class NotificationSignal:
    """Single-fire signal that remembers a notification sent before anyone waits."""

    def __init__(self) -> None:
        self._fired = threading.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def fired(self) -> bool:
        return self._fired.is_set()

    def fire(self) -> None:
        if self._closed:
            raise IllegalNotificationError("notification signal already closed")
        self._fired.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the signal; returns True if it fired."""
        return self._fired.wait(timeout)

    def close(self) -> None:
        self._closed = True


class FinalizeNotifier:
    """Owner of the notification signal for the current cleanup run.

    open, close and notify are serialized by one lock, so a notification racing
    the run's teardown either fires the live signal or is rejected.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._signal: Optional[NotificationSignal] = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._signal is not None

    def open(self) -> NotificationSignal:
        """Create the signal for a new run, replacing any stale one."""
        with self._lock:
            if self._signal is not None:
                logger.warning("Replacing notification signal left open by a previous run")
                self._signal.close()
            self._signal = NotificationSignal()
            return self._signal

    def close(self) -> None:
        """Close and drop the current signal. Closing twice is a no-op."""
        with self._lock:
            if self._signal is None:
                return
            self._signal.close()
            self._signal = None
            logger.debug("Notification signal closed")

    def notify(self) -> None:
        """Deliver a finalize notification to the waiting run.

        Raises:
            IllegalNotificationError: If no run is currently accepting notifications
        """
        with self._lock:
            if self._signal is None:
                err = IllegalNotificationError()
                logger.error(f"Rejected finalize notification: {err}")
                raise err
            if self._signal.fired:
                logger.info("Duplicate finalize notification ignored")
                return
            self._signal.fire()
