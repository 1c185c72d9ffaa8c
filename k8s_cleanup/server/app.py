"""FinalizeCleanup notification endpoint.

Speaks the Connect unary JSON protocol for ``cleanup.v1.CleanupService``:
``POST /cleanup.v1.CleanupService/FinalizeCleanup`` with body ``{}``.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from k8s_cleanup import __version__
from k8s_cleanup.cleanup.errors import IllegalNotificationError
from k8s_cleanup.cleanup.notification import FinalizeNotifier

logger = logging.getLogger(__name__)

FINALIZE_CLEANUP_PATH = "/cleanup.v1.CleanupService/FinalizeCleanup"


class FinalizeCleanupRequest(BaseModel):
    pass


class FinalizeCleanupResponse(BaseModel):
    pass


def create_app(notifier: FinalizeNotifier) -> FastAPI:
    """Build the notification API bound to a notifier."""
    app = FastAPI(
        title="k8s-cleanup",
        description="Finalize notifications for the cleanup agent",
        version=__version__,
    )

    @app.exception_handler(IllegalNotificationError)
    async def illegal_notification_handler(request: Request, exc: IllegalNotificationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"code": "failed_precondition", "message": str(exc)})

    @app.post(FINALIZE_CLEANUP_PATH, response_model=FinalizeCleanupResponse)
    async def finalize_cleanup(request: Optional[FinalizeCleanupRequest] = None) -> FinalizeCleanupResponse:
        """Notify the cleanup agent that it may self-destruct."""
        logger.info("Received request to FinalizeCleanup")
        notifier.notify()
        return FinalizeCleanupResponse()

    return app


class NotificationServer:
    """Runs the notification API with uvicorn in a background thread.

    Attributes:
        host: Bind address
        port: Listen port
    """

    def __init__(self, app: FastAPI, port: int, host: str = "0.0.0.0", shutdown_timeout: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.shutdown_timeout = shutdown_timeout
        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=host,
                port=port,
                log_level="warning",
                timeout_graceful_shutdown=int(shutdown_timeout),
            )
        )
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        logger.info(f"Notification server starting on {self.host}:{self.port}...")
        self._thread = threading.Thread(target=self._run, name="notification-server", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            self._server.run()
        except (OSError, SystemExit) as e:
            logger.error(f"Notification server stopped, unable to handle further FinalizeCleanup requests: {e}")

    def stop(self) -> None:
        """Ask uvicorn to exit and wait for the thread."""
        if self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(self.shutdown_timeout)
        if self._thread.is_alive():
            logger.error("Failed to shut down notification server within timeout")
            return
        logger.info("Notification server gracefully shut down")
