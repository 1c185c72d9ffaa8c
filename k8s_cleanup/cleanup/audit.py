"""Audit storage for cleanup runs.

Stores run reports as YAML so a truncated or failed cleanup can be traced
after the agent has removed itself (when the report directory is on a
persistent volume or host path).
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from k8s_cleanup.models.deletion_operation import CleanupOperation
from k8s_cleanup.models.deletion_record import DeletionRecord


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


class AuditStorage:
    """Cleanup report storage and retrieval.

    Storage structure:
        <storage_dir>/
            2025/
                11/
                    operation-op_123.yaml

    Attributes:
        storage_dir: Base directory for reports
    """

    def __init__(self, storage_dir: str) -> None:
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_operation(self, operation: CleanupOperation, records: list[DeletionRecord]) -> Path:
        """Write the report for one cleanup run.

        Overwrites an existing report with the same operation ID.

        Args:
            operation: Cleanup operation to log
            records: Per-directive records of the operation

        Returns:
            Path of the written report
        """
        year_month_dir = self.storage_dir / str(operation.started_at.year) / f"{operation.started_at.month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        audit_data = {
            "metadata": {
                "version": "1.0",
                "log_type": "resource_cleanup",
                "created_at": datetime.utcnow().isoformat() + "Z",
            },
            "operation": {
                "operation_id": operation.operation_id,
                "started_at": _isoformat(operation.started_at),
                "completed_at": _isoformat(operation.completed_at),
                "status": operation.status.value,
                "total_directives": operation.total_directives,
                "succeeded_count": operation.succeeded_count,
                "failed_count": operation.failed_count,
                "self_destruct": operation.self_destruct.value if operation.self_destruct else None,
                "duration_seconds": operation.duration_seconds,
            },
            "records": [
                {
                    "record_id": record.record_id,
                    "operation_id": record.operation_id,
                    "resource_kind": record.resource_kind,
                    "name": record.name,
                    "namespace": record.namespace,
                    "must_delete": record.must_delete,
                    "status": record.status.value,
                    "timestamp": _isoformat(record.timestamp),
                    "error_message": record.error_message,
                }
                for record in records
            ],
        }

        audit_file = year_month_dir / f"operation-{operation.operation_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)
        return audit_file
