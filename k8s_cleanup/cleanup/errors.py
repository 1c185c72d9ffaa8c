"""Exceptions raised by the cleanup pipeline."""

from __future__ import annotations

from typing import Optional

from k8s_cleanup.models.directive import ResourceKind


class CleanupError(Exception):
    """Base class for cleanup errors."""


class ResourceNotFoundError(CleanupError):
    """Raised by the backend when the requested object does not exist."""

    def __init__(self, kind: ResourceKind, name: str, namespace: str = "") -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location} not found")


class RetryExhaustedError(CleanupError):
    """Raised when a retryable operation still fails after the last attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"gave up after {attempts} attempts: {last_error}")


class VerificationTimeoutError(CleanupError):
    """Raised when a resource is still present after the deletion timeout."""

    def __init__(self, kind: ResourceKind, name: str, namespace: str, timeout: float) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.timeout = timeout
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location} still present after {timeout:.0f}s")


class IllegalNotificationError(CleanupError):
    """Raised when cleanup is notified while no run is waiting for it."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "illegally notified cleanup prior to cleanup resources call")


class OwnerReferenceError(CleanupError):
    """Raised when owner references cannot be set on the agent's RBAC objects."""


class DirectiveFailedError(CleanupError):
    """Raised when a must-delete directive could not be satisfied."""

    def __init__(self, kind: ResourceKind, name: str, namespace: str, cause: BaseException) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.cause = cause
        target = name or "<all>"
        if namespace:
            target = f"{namespace}/{target}"
        super().__init__(f"resource deletion failed for {kind} {target}: {cause}")


class PlanLoadError(CleanupError):
    """Raised when a cleanup config file cannot be read or parsed."""


class OperationCancelledError(CleanupError):
    """Raised when a blocking wait is interrupted by the stop event."""
