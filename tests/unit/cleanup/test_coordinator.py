"""Tests for SelfDestructCoordinator timing."""

from __future__ import annotations

import threading
import time

import pytest

from k8s_cleanup.cleanup.coordinator import SelfDestructCoordinator
from k8s_cleanup.cleanup.errors import OperationCancelledError
from k8s_cleanup.cleanup.notification import NotificationSignal
from k8s_cleanup.models.deletion_operation import SelfDestructReason


class TestSelfDestructCoordinator:
    """Test suite for SelfDestructCoordinator."""

    def test_blocking_is_immediate(self) -> None:
        coordinator = SelfDestructCoordinator(cleanup_timeout=30, blocking=True)

        start = time.monotonic()
        reason = coordinator.await_self_destruct(NotificationSignal())

        assert reason == SelfDestructReason.IMMEDIATE
        assert time.monotonic() - start < 1

    def test_notification_before_timeout(self) -> None:
        """Test a notification ends the wait well before the timeout."""
        signal = NotificationSignal()
        coordinator = SelfDestructCoordinator(cleanup_timeout=30, blocking=False)
        timer = threading.Timer(0.2, signal.fire)
        timer.start()

        start = time.monotonic()
        try:
            reason = coordinator.await_self_destruct(signal)
        finally:
            timer.cancel()
        elapsed = time.monotonic() - start

        assert reason == SelfDestructReason.NOTIFIED
        assert 0.15 <= elapsed < 5

    def test_notification_already_fired(self) -> None:
        signal = NotificationSignal()
        signal.fire()

        reason = SelfDestructCoordinator(cleanup_timeout=30, blocking=False).await_self_destruct(signal)

        assert reason == SelfDestructReason.NOTIFIED

    def test_timeout_without_notification(self) -> None:
        coordinator = SelfDestructCoordinator(cleanup_timeout=0.3, blocking=False)

        start = time.monotonic()
        reason = coordinator.await_self_destruct(NotificationSignal())
        elapsed = time.monotonic() - start

        assert reason == SelfDestructReason.TIMEOUT
        assert 0.3 <= elapsed < 2

    def test_zero_timeout(self) -> None:
        reason = SelfDestructCoordinator(cleanup_timeout=0, blocking=False).await_self_destruct(NotificationSignal())

        assert reason == SelfDestructReason.TIMEOUT

    def test_stop_event_cancels(self) -> None:
        stop_event = threading.Event()
        stop_event.set()
        coordinator = SelfDestructCoordinator(cleanup_timeout=30, blocking=False, stop_event=stop_event)

        with pytest.raises(OperationCancelledError):
            coordinator.await_self_destruct(NotificationSignal())
