"""Resource cleanup module.

This module deletes the files and Kubernetes resources listed in the cleanup
configs, then lets the agent remove its own workload and RBAC objects.

Classes:
    ResourceCleaner: Main orchestrator for a cleanup run
    ResourceDeleter: Single and bulk resource deletion
    OwnerReferenceChainer: Owner references for the agent's RBAC objects
    SelfDestructCoordinator: Finalize notification / timeout race
    FinalizeNotifier: Notification session shared with the endpoint
    FileCleaner: Local file deletion
    AuditStorage: Run report storage and retrieval
"""

from __future__ import annotations

__all__ = [
    "ResourceCleaner",
    "ResourceDeleter",
    "OwnerReferenceChainer",
    "SelfDestructCoordinator",
    "FinalizeNotifier",
    "FileCleaner",
    "AuditStorage",
]
