"""Data models for cleanup plans and run reports."""

from __future__ import annotations

from .deletion_operation import CleanupOperation, OperationStatus, SelfDestructReason
from .deletion_record import DeletionRecord, DeletionStatus
from .directive import DeleteDirective, OwnerReference, ResourceKind

__all__ = [
    "CleanupOperation",
    "DeleteDirective",
    "DeletionRecord",
    "DeletionStatus",
    "OperationStatus",
    "OwnerReference",
    "ResourceKind",
    "SelfDestructReason",
]
