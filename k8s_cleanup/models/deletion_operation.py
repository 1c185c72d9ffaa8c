"""Cleanup operation model.

Represents one complete pass over the resource deletion plan.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class OperationStatus(Enum):
    """Operation execution status."""

    EXECUTING = "executing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class SelfDestructReason(Enum):
    """How the self-destruct wait was resolved."""

    IMMEDIATE = "immediate"
    NOTIFIED = "notified"
    TIMEOUT = "timeout"


@dataclass
class CleanupOperation:
    """Cleanup operation entity.

    State transitions:
        executing → completed (all directives succeeded)
        executing → partial (best-effort directives failed)
        executing → failed (a must-delete directive or ownership chaining failed)

    Attributes:
        operation_id: Unique identifier for the operation
        started_at: When the pass started (UTC)
        status: Current execution status
        total_directives: Number of directives in the plan
        succeeded_count: Directives processed without error
        failed_count: Directives that failed
        self_destruct: How the self-destruct wait resolved (optional)
        completed_at: When the pass finished (optional)
        duration_seconds: Total duration (optional)
    """

    operation_id: str
    started_at: datetime
    status: OperationStatus
    total_directives: int
    succeeded_count: int = 0
    failed_count: int = 0
    self_destruct: Optional[SelfDestructReason] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def finish(self, status: OperationStatus, completed_at: datetime) -> None:
        """Mark the operation finished with the given status."""
        self.status = status
        self.completed_at = completed_at
        self.duration_seconds = (completed_at - self.started_at).total_seconds()

    def validate(self) -> bool:
        """Validate operation invariants.

        Validation rules:
            - succeeded_count + failed_count <= total_directives
            - completed_at must not be before started_at

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.succeeded_count + self.failed_count > self.total_directives:
            raise ValueError("Directive counts exceed total")

        if self.completed_at and self.completed_at < self.started_at:
            raise ValueError("Completion time before start time")

        return True
