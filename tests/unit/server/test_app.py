"""Tests for the FinalizeCleanup notification endpoint."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from k8s_cleanup.cleanup.notification import FinalizeNotifier
from k8s_cleanup.server.app import FINALIZE_CLEANUP_PATH, NotificationServer, create_app


@pytest.fixture
def notifier() -> FinalizeNotifier:
    return FinalizeNotifier()


@pytest.fixture
def client(notifier: FinalizeNotifier) -> TestClient:
    return TestClient(create_app(notifier))


class TestFinalizeCleanupEndpoint:
    """Test suite for the FinalizeCleanup endpoint."""

    def test_path(self) -> None:
        assert FINALIZE_CLEANUP_PATH == "/cleanup.v1.CleanupService/FinalizeCleanup"

    def test_notify_during_run(self, client: TestClient, notifier: FinalizeNotifier) -> None:
        signal = notifier.open()

        response = client.post(FINALIZE_CLEANUP_PATH, json={})

        assert response.status_code == 200
        assert response.json() == {}
        assert signal.fired is True

    def test_notify_without_body(self, client: TestClient, notifier: FinalizeNotifier) -> None:
        signal = notifier.open()

        response = client.post(FINALIZE_CLEANUP_PATH)

        assert response.status_code == 200
        assert signal.fired is True

    def test_notify_before_run_is_rejected(self, client: TestClient) -> None:
        response = client.post(FINALIZE_CLEANUP_PATH, json={})

        assert response.status_code == 400
        assert response.json() == {
            "code": "failed_precondition",
            "message": "illegally notified cleanup prior to cleanup resources call",
        }

    def test_notify_after_run_is_rejected(self, client: TestClient, notifier: FinalizeNotifier) -> None:
        notifier.open()
        notifier.close()

        response = client.post(FINALIZE_CLEANUP_PATH, json={})

        assert response.status_code == 400
        assert response.json()["code"] == "failed_precondition"

    def test_duplicate_notify_accepted(self, client: TestClient, notifier: FinalizeNotifier) -> None:
        notifier.open()

        assert client.post(FINALIZE_CLEANUP_PATH, json={}).status_code == 200
        assert client.post(FINALIZE_CLEANUP_PATH, json={}).status_code == 200

    def test_get_not_allowed(self, client: TestClient) -> None:
        assert client.get(FINALIZE_CLEANUP_PATH).status_code == 405


class TestNotificationServer:
    """Test suite for NotificationServer lifecycle."""

    @patch("k8s_cleanup.server.app.uvicorn")
    def test_start_and_stop(self, mock_uvicorn: Mock) -> None:
        server = NotificationServer(Mock(), port=9090)

        server.start()
        server.stop()

        mock_uvicorn.Config.assert_called_once()
        assert mock_uvicorn.Config.call_args.kwargs["port"] == 9090
        mock_uvicorn.Server.return_value.run.assert_called_once()
        assert mock_uvicorn.Server.return_value.should_exit is True

    @patch("k8s_cleanup.server.app.uvicorn")
    def test_bind_failure_is_logged(self, mock_uvicorn: Mock) -> None:
        mock_uvicorn.Server.return_value.run.side_effect = OSError("address already in use")
        server = NotificationServer(Mock(), port=9090)

        server.start()
        server.stop()

    def test_stop_without_start(self) -> None:
        NotificationServer(Mock(), port=9090).stop()
