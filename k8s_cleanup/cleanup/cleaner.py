"""Resource cleaner for the self-destructing cleanup agent.

Main orchestrator: walks the resource plan once, deletes each entry, and
prepares and times the deletion of the agent's own workload, which is always
the last entry.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Optional

from k8s_cleanup.cleanup.audit import AuditStorage
from k8s_cleanup.cleanup.coordinator import SelfDestructCoordinator
from k8s_cleanup.cleanup.deleter import ResourceDeleter
from k8s_cleanup.cleanup.errors import DirectiveFailedError, OperationCancelledError
from k8s_cleanup.cleanup.notification import FinalizeNotifier
from k8s_cleanup.cleanup.ownership import OwnerReferenceChainer
from k8s_cleanup.cleanup.waiter import DeletionWaiter
from k8s_cleanup.config import Config
from k8s_cleanup.models.deletion_operation import CleanupOperation, OperationStatus
from k8s_cleanup.models.deletion_record import DeletionRecord, DeletionStatus
from k8s_cleanup.models.directive import DeleteDirective

logger = logging.getLogger(__name__)


class ResourceCleaner:
    """Resource cleaner orchestrator.

    Coordinates deletion of the configured resources, ownership chaining of
    the agent's RBAC objects and the self-destruct wait. Must-delete failures
    abort the run; best-effort failures are logged and recorded.

    Attributes:
        backend: Resource backend
        notifier: Notification session shared with the notification endpoint
        settings: Agent configuration
        stop_event: Event that cancels in-flight waits
        audit_storage: Report storage (optional)
        deleter: Single and bulk resource deleter
        chainer: Owner reference chainer for the agent's RBAC objects
        coordinator: Self-destruct coordinator
    """

    def __init__(
        self,
        backend,
        notifier: FinalizeNotifier,
        settings: Config,
        stop_event: Optional[threading.Event] = None,
        audit_storage: Optional[AuditStorage] = None,
    ) -> None:
        self.backend = backend
        self.notifier = notifier
        self.settings = settings
        self.stop_event = stop_event or threading.Event()
        self.audit_storage = audit_storage

        waiter = DeletionWaiter(
            backend,
            interval=settings.deletion_interval,
            timeout=settings.deletion_timeout,
            stop_event=self.stop_event,
        )
        self.deleter = ResourceDeleter(
            backend,
            waiter,
            blocking=settings.blocking_deletion,
            backoff=settings.backoff,
            max_workers=settings.max_workers,
            stop_event=self.stop_event,
        )
        self.chainer = OwnerReferenceChainer(
            backend,
            sa_name=settings.sa_name,
            role_name=settings.role_name,
            role_binding_name=settings.role_binding_name,
            cluster_role_name=settings.cluster_role_name,
            cluster_role_binding_name=settings.cluster_role_binding_name,
        )
        self.coordinator = SelfDestructCoordinator(
            cleanup_timeout=settings.cleanup_timeout,
            blocking=settings.blocking_deletion,
            stop_event=self.stop_event,
        )

    def cleanup_resources(self, directives: list[DeleteDirective]) -> CleanupOperation:
        """Delete every resource in the plan, the agent's own workload last.

        Args:
            directives: Ordered plan; the last entry is the agent's own workload

        Returns:
            CleanupOperation with per-run counts

        Raises:
            DirectiveFailedError: If a must-delete directive fails
            OwnerReferenceError: If the RBAC objects cannot be chained to the workload
            OperationCancelledError: If the stop event is set mid-run
        """
        operation_id = f"op_{uuid.uuid4()}"
        operation = CleanupOperation(
            operation_id=operation_id,
            started_at=datetime.utcnow(),
            status=OperationStatus.EXECUTING,
            total_directives=len(directives),
        )
        records: list[DeletionRecord] = []

        signal = self.notifier.open()
        try:
            last = len(directives) - 1
            for index, directive in enumerate(directives):
                if index == last:
                    self.chainer.set_owner_references(directive)
                    operation.self_destruct = self.coordinator.await_self_destruct(signal)
                    self.notifier.close()

                error = self._process_directive(directive)
                records.append(self._record(operation_id, directive, error))
                if error is None:
                    operation.succeeded_count += 1
                    continue

                operation.failed_count += 1
                if directive.must_delete:
                    logger.error(
                        f"Resource deletion failed: {directive.kind} "
                        f"{directive.namespace}/{directive.name or '<all>'}: {error}"
                    )
                    raise DirectiveFailedError(directive.kind, directive.name, directive.namespace, error) from error
                logger.warning(
                    f"Best-effort resource deletion failed, continuing: {directive.kind} "
                    f"{directive.namespace}/{directive.name or '<all>'}: {error}"
                )
        except Exception:
            self._finish(operation, records, OperationStatus.FAILED)
            raise
        finally:
            self.notifier.close()

        status = OperationStatus.PARTIAL if operation.failed_count else OperationStatus.COMPLETED
        self._finish(operation, records, status)
        return operation

    def _process_directive(self, directive: DeleteDirective) -> Optional[Exception]:
        """Dispatch one directive; returns its error instead of raising it.

        Cancellation is never turned into a directive error.
        """
        try:
            if directive.is_bulk:
                self.deleter.delete_all_resources(directive)
            else:
                self.deleter.delete_single_resource(directive)
        except OperationCancelledError:
            raise
        except Exception as e:
            return e
        return None

    def _record(self, operation_id: str, directive: DeleteDirective, error: Optional[Exception]) -> DeletionRecord:
        return DeletionRecord(
            record_id=f"rec_{uuid.uuid4()}",
            operation_id=operation_id,
            resource_kind=str(directive.kind),
            name=directive.name,
            namespace=directive.namespace,
            must_delete=directive.must_delete,
            status=DeletionStatus.FAILED if error is not None else DeletionStatus.SUCCEEDED,
            timestamp=datetime.utcnow(),
            error_message=(str(error) or type(error).__name__) if error is not None else None,
        )

    def _finish(self, operation: CleanupOperation, records: list[DeletionRecord], status: OperationStatus) -> None:
        operation.finish(status, datetime.utcnow())
        if self.audit_storage is None:
            return
        try:
            path = self.audit_storage.log_operation(operation, records)
            logger.info(f"Cleanup report written to {path}")
        except OSError as e:
            logger.error(f"Failed to write cleanup report: {e}")
