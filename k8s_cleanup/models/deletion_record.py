"""Deletion record model.

Outcome of processing a single directive of the resource plan.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class DeletionStatus(Enum):
    """Directive deletion status."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class DeletionRecord:
    """Deletion record entity.

    Each record belongs to a CleanupOperation and tracks the outcome of one
    directive. Soft failures of best-effort directives are recorded as failed
    even though they do not abort the run.

    Validation rules:
        - status=failed: requires error_message
        - status=succeeded: no error_message

    Attributes:
        record_id: Unique identifier for this record
        operation_id: Parent operation identifier
        resource_kind: Kind string (group/version, Resource=plural)
        name: Resource name, empty for bulk directives
        namespace: Namespace, empty for cluster-wide directives
        must_delete: Whether the directive was required to succeed
        status: Deletion outcome
        timestamp: When processing of the directive finished (UTC)
        error_message: Human-readable error if failed (optional)
    """

    record_id: str
    operation_id: str
    resource_kind: str
    name: str
    namespace: str
    must_delete: bool
    status: DeletionStatus
    timestamp: datetime
    error_message: Optional[str] = None

    def validate(self) -> bool:
        """Validate record invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status == DeletionStatus.FAILED and not self.error_message:
            raise ValueError("Failed status requires error_message")
        if self.status == DeletionStatus.SUCCEEDED and self.error_message:
            raise ValueError("Succeeded status cannot have an error message")
        return True
