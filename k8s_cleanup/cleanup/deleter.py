"""Kubernetes resource deletion.

Deletes single named resources and every resource of a kind, with retry on
transient API failures and optional blocking until the resources are gone.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from k8s_cleanup.cleanup.backend import NAMESPACE_KIND
from k8s_cleanup.cleanup.errors import OperationCancelledError, ResourceNotFoundError
from k8s_cleanup.cleanup.retry import DEFAULT_BACKOFF, Backoff, is_retryable, retry_on_error
from k8s_cleanup.cleanup.waiter import DeletionWaiter
from k8s_cleanup.models.directive import DeleteDirective

logger = logging.getLogger(__name__)


class ResourceDeleter:
    """Resource deletion strategies.

    Single resources are deleted in the caller's thread. Bulk deletion in
    blocking mode fans out over a thread pool in two phases: every deletion is
    initiated before any of them is verified, so all objects converge to
    absence concurrently.

    Attributes:
        backend: Resource backend
        waiter: Deletion poller
        blocking: Wait for each deletion to complete before returning
        backoff: Retry schedule for delete requests
        max_workers: Upper bound on bulk deletion threads (None: one per item)
        stop_event: Event that interrupts retries and waits
    """

    def __init__(
        self,
        backend,
        waiter: DeletionWaiter,
        blocking: bool = True,
        backoff: Backoff = DEFAULT_BACKOFF,
        max_workers: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.backend = backend
        self.waiter = waiter
        self.blocking = blocking
        self.backoff = backoff
        self.max_workers = max_workers
        self.stop_event = stop_event or threading.Event()

    def delete_resource(
        self,
        directive: DeleteDirective,
        name: str,
        namespace: str,
        wait_for_deletion: bool,
    ) -> None:
        """Delete one resource with retries, optionally waiting until it is gone.

        A resource that is already absent counts as deleted. When retries fail
        for a best-effort directive the failure is logged and the optional wait
        still runs.

        Args:
            directive: Directive the resource belongs to
            name: Resource name
            namespace: Resource namespace ("" for cluster-scoped)
            wait_for_deletion: Poll until the resource no longer exists

        Raises:
            Exception: Deletion or verification failure for must-delete
                directives; verification failure for best-effort directives
        """
        kind = directive.kind

        def attempt() -> None:
            try:
                self.backend.delete(kind, name, namespace)
            except ResourceNotFoundError:
                logger.warning(f"Resource not found, skipping: {kind} {namespace}/{name}")
            except Exception as e:
                logger.warning(f"Resource deletion failed: {kind} {namespace}/{name}: {e}")
                raise

        try:
            retry_on_error(attempt, backoff=self.backoff, retryable=is_retryable, stop_event=self.stop_event)
        except OperationCancelledError:
            raise
        except Exception as e:
            if directive.must_delete:
                logger.error(f"Resource deletion failed after retries: {kind} {namespace}/{name}: {e}")
                raise
            logger.warning(f"Resource deletion failed after retries: {kind} {namespace}/{name}: {e}")

        if wait_for_deletion:
            try:
                self.waiter.wait_for_deletion(kind, name, namespace)
            except Exception as e:
                logger.error(f"Failed to verify resource deletion: {kind} {namespace}/{name}: {e}")
                raise

    def delete_single_resource(self, directive: DeleteDirective) -> None:
        """Delete the resource a named directive points at."""
        logger.info(f"Deleting resource {directive.kind} {directive.namespace}/{directive.name}")
        self.delete_resource(directive, directive.name, directive.namespace, self.blocking)

    def delete_all_resources(self, directive: DeleteDirective) -> None:
        """Delete every resource of the directive's kind.

        Limited to the directive's namespace when one is set, otherwise across
        all namespaces. Finding nothing to delete is not an error.
        """
        logger.info(f"Deleting all resources of type {directive.kind} (namespace: {directive.namespace or '<all>'})")

        items = self.list_matching_resources(directive)
        if not items:
            logger.warning(
                f"No resources found, skipping: {directive.kind} (namespace: {directive.namespace or '<all>'})"
            )
            return

        if self.blocking:
            self._delete_all_blocking(directive, items)
        else:
            self._delete_all_non_blocking(directive, items)

    def list_matching_resources(self, directive: DeleteDirective) -> list[dict[str, Any]]:
        """List the resources a bulk directive matches.

        Namespaced kinds are listed namespace by namespace; cluster-scoped kinds
        with a single global listing.
        """
        kind = directive.kind
        if not self.backend.is_namespaced(kind):
            try:
                return self.backend.list(kind)
            except Exception as e:
                logger.error(f"Failed to list resources {kind}: {e}")
                raise

        try:
            namespaces = self.backend.list(NAMESPACE_KIND)
        except Exception as e:
            logger.error(f"Failed to list namespaces: {e}")
            raise

        items: list[dict[str, Any]] = []
        for namespace in namespaces:
            ns = (namespace.get("metadata") or {}).get("name", "")
            if directive.namespace and directive.namespace != ns:
                logger.debug(f"Skipping namespace {ns} for {kind}")
                continue
            try:
                items.extend(self.backend.list(kind, ns))
            except Exception as e:
                logger.error(f"Failed to list resources {kind} in namespace {ns}: {e}")
                raise
        return items

    def _item_location(self, directive: DeleteDirective, item: dict[str, Any]) -> tuple[str, str]:
        metadata = item.get("metadata") or {}
        return metadata.get("name", ""), metadata.get("namespace") or directive.namespace

    def _delete_all_blocking(self, directive: DeleteDirective, items: list[dict[str, Any]]) -> None:
        """Initiate every deletion, then verify every deletion.

        Verification covers all items even when some initiations failed; a
        must-delete initiation error is raised after verification finishes.
        """
        initiate_error = self._run_phase(directive, items, self._initiate_deletion, "deletion")
        verify_error = self._run_phase(directive, items, self._verify_deletion, "deletion verification")
        if initiate_error is not None:
            raise initiate_error
        if verify_error is not None:
            raise verify_error

    def _initiate_deletion(self, directive: DeleteDirective, item: dict[str, Any]) -> None:
        name, namespace = self._item_location(directive, item)
        logger.info(f"Deleting resource {directive.kind} {namespace}/{name}")
        self.delete_resource(directive, name, namespace, wait_for_deletion=False)

    def _verify_deletion(self, directive: DeleteDirective, item: dict[str, Any]) -> None:
        name, namespace = self._item_location(directive, item)
        self.waiter.wait_for_deletion(directive.kind, name, namespace)

    def _run_phase(
        self,
        directive: DeleteDirective,
        items: list[dict[str, Any]],
        task: Callable[[DeleteDirective, dict[str, Any]], None],
        description: str,
    ) -> Optional[Exception]:
        """Run ``task`` for every item concurrently and join.

        Returns:
            First collected error for must-delete directives, otherwise None.
            Cancellation always wins.
        """
        workers = len(items) if self.max_workers is None else max(1, min(self.max_workers, len(items)))
        errors: list[Exception] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cleanup") as executor:
            futures = [(item, executor.submit(task, directive, item)) for item in items]
            for item, future in futures:
                try:
                    future.result()
                except Exception as e:
                    name, namespace = self._item_location(directive, item)
                    logger.error(f"Resource {description} failed: {directive.kind} {namespace}/{name}: {e}")
                    errors.append(e)

        for error in errors:
            if isinstance(error, OperationCancelledError):
                raise error
        if errors and directive.must_delete:
            return errors[0]
        return None

    def _delete_all_non_blocking(self, directive: DeleteDirective, items: list[dict[str, Any]]) -> None:
        for item in items:
            name, namespace = self._item_location(directive, item)
            logger.info(f"Deleting resource {directive.kind} {namespace}/{name}")
            self.delete_resource(directive, name, namespace, wait_for_deletion=False)
