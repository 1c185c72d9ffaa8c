"""Tests for ResourceDeleter.

Test coverage for single and bulk deletion, blocking and non-blocking modes,
retry behaviour and must-delete failure handling.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from k8s_cleanup.cleanup.deleter import ResourceDeleter
from k8s_cleanup.cleanup.errors import RetryExhaustedError, VerificationTimeoutError
from k8s_cleanup.cleanup.retry import Backoff
from k8s_cleanup.cleanup.waiter import DeletionWaiter
from k8s_cleanup.models.directive import DeleteDirective
from tests.fixtures.backend import CLUSTER_ISSUERS, CONFIGMAPS, DEPLOYMENTS, FakeBackend

FAST_BACKOFF = Backoff(steps=5, duration=0.001, factor=2.0, jitter=0.0, cap=0.01)


def _deleter(backend: FakeBackend, blocking: bool = True, timeout: float = 1.0, **kwargs) -> ResourceDeleter:
    waiter = DeletionWaiter(backend, interval=0.01, timeout=timeout)
    return ResourceDeleter(backend, waiter, blocking=blocking, backoff=FAST_BACKOFF, **kwargs)


@pytest.fixture
def backend() -> FakeBackend:
    """Backend with two namespaces holding configmaps and a deployment."""
    fake = FakeBackend()
    fake.add_namespace("default")
    fake.add_namespace("team-a")
    fake.add(CONFIGMAPS, "settings", "default")
    fake.add(CONFIGMAPS, "flags", "team-a")
    fake.add(CONFIGMAPS, "limits", "team-a")
    fake.add(DEPLOYMENTS, "web", "default")
    return fake


class TestDeleteSingleResource:
    """Test suite for named directives."""

    def test_deletes_and_waits(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default")

        _deleter(backend).delete_single_resource(directive)

        assert (DEPLOYMENTS, "default", "web") not in backend.objects
        assert backend.calls_for("delete") == [("delete", "deployments", "default", "web")]
        assert backend.calls_for("get") == [("get", "deployments", "default", "web")]

    def test_non_blocking_does_not_wait(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default")

        _deleter(backend, blocking=False).delete_single_resource(directive)

        assert backend.calls_for("get") == []

    @pytest.mark.parametrize("must_delete", [True, False])
    def test_already_absent_is_success(self, backend: FakeBackend, must_delete: bool) -> None:
        """Test deleting a resource that does not exist is not an error and is not retried."""
        before = dict(backend.objects)
        directive = DeleteDirective(DEPLOYMENTS, name="gone", namespace="default", must_delete=must_delete)

        _deleter(backend).delete_single_resource(directive)

        assert backend.calls_for("delete") == [("delete", "deployments", "default", "gone")]
        assert backend.calls_for("get") == [("get", "deployments", "default", "gone")]
        assert backend.objects == before

    def test_retries_transient_errors(self, backend: FakeBackend) -> None:
        failures = iter([TimeoutError("t1"), TimeoutError("t2")])
        backend.errors[("delete", "web")] = lambda: next(failures, None)
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default", must_delete=True)

        _deleter(backend).delete_single_resource(directive)

        assert len(backend.calls_for("delete")) == 3
        assert (DEPLOYMENTS, "default", "web") not in backend.objects

    def test_must_delete_raises_after_retries(self, backend: FakeBackend) -> None:
        backend.errors[("delete", "web")] = lambda: TimeoutError("timed out")
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default", must_delete=True)

        with pytest.raises(RetryExhaustedError):
            _deleter(backend).delete_single_resource(directive)

        assert len(backend.calls_for("delete")) == 5

    def test_must_delete_non_retryable_raises_once(self, backend: FakeBackend) -> None:
        backend.errors[("delete", "web")] = lambda: PermissionError("forbidden")
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default", must_delete=True)

        with pytest.raises(PermissionError):
            _deleter(backend).delete_single_resource(directive)

        assert len(backend.calls_for("delete")) == 1

    def test_best_effort_failure_still_waits(self, backend: FakeBackend) -> None:
        """Test best-effort delete failures are swallowed but verification still runs."""
        backend.errors[("delete", "web")] = lambda: PermissionError("forbidden")
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default")

        with pytest.raises(VerificationTimeoutError):
            _deleter(backend, timeout=0.03).delete_single_resource(directive)

    def test_best_effort_failure_non_blocking_is_silent(self, backend: FakeBackend) -> None:
        backend.errors[("delete", "web")] = lambda: PermissionError("forbidden")
        directive = DeleteDirective(DEPLOYMENTS, name="web", namespace="default")

        _deleter(backend, blocking=False).delete_single_resource(directive)


class TestDeleteAllResources:
    """Test suite for bulk directives."""

    def test_all_namespaces(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(CONFIGMAPS)

        _deleter(backend).delete_all_resources(directive)

        deleted = sorted((ns, name) for _, _, ns, name in backend.calls_for("delete"))
        assert deleted == [("default", "settings"), ("team-a", "flags"), ("team-a", "limits")]
        assert not any(kind == CONFIGMAPS for kind, _, _ in backend.objects)

    def test_single_namespace(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(CONFIGMAPS, namespace="team-a")

        _deleter(backend).delete_all_resources(directive)

        deleted = sorted(name for _, _, _, name in backend.calls_for("delete"))
        assert deleted == ["flags", "limits"]
        assert (CONFIGMAPS, "default", "settings") in backend.objects
        assert backend.calls_for("list") == [
            ("list", "namespaces", "", ""),
            ("list", "configmaps", "team-a", ""),
        ]

    def test_no_matches_is_noop(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(CONFIGMAPS, namespace="empty", must_delete=True)

        _deleter(backend).delete_all_resources(directive)

        assert backend.calls_for("delete") == []
        assert backend.calls_for("get") == []

    def test_blocking_initiates_all_before_verifying(self, backend: FakeBackend) -> None:
        """Test every delete request is sent before the first existence check."""
        for name in ("flags", "limits", "settings"):
            backend.linger[name] = 2
        directive = DeleteDirective(CONFIGMAPS)

        _deleter(backend).delete_all_resources(directive)

        ops = [call[0] for call in backend.calls if call[0] in ("delete", "get")]
        assert ops.count("delete") == 3
        last_delete = max(i for i, op in enumerate(ops) if op == "delete")
        first_get = min(i for i, op in enumerate(ops) if op == "get")
        assert last_delete < first_get
        assert not any(kind == CONFIGMAPS for kind, _, _ in backend.objects)

    def test_blocking_must_delete_error_after_verification(self, backend: FakeBackend) -> None:
        """Test a failed initiation does not stop verification of the other items."""
        backend.errors[("delete", "flags")] = lambda: PermissionError("forbidden")
        backend.linger["flags"] = 1
        directive = DeleteDirective(CONFIGMAPS, must_delete=True)

        with pytest.raises(PermissionError):
            _deleter(backend).delete_all_resources(directive)

        verified = sorted(name for _, _, _, name in backend.calls_for("get"))
        assert "limits" in verified
        assert "settings" in verified

    def test_blocking_best_effort_errors_swallowed(self, backend: FakeBackend) -> None:
        backend.errors[("delete", "flags")] = lambda: PermissionError("forbidden")
        backend.linger["flags"] = 1
        directive = DeleteDirective(CONFIGMAPS)

        _deleter(backend).delete_all_resources(directive)

    def test_blocking_verification_timeout_must_delete(self, backend: FakeBackend) -> None:
        backend.linger["settings"] = 1000
        directive = DeleteDirective(CONFIGMAPS, namespace="default", must_delete=True)

        with pytest.raises(VerificationTimeoutError):
            _deleter(backend, timeout=0.03).delete_all_resources(directive)

    def test_max_workers_bounds_pool(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(CONFIGMAPS)

        _deleter(backend, max_workers=1).delete_all_resources(directive)

        assert len(backend.calls_for("delete")) == 3

    def test_non_blocking_sequential_without_verification(self, backend: FakeBackend) -> None:
        directive = DeleteDirective(CONFIGMAPS)

        _deleter(backend, blocking=False).delete_all_resources(directive)

        assert len(backend.calls_for("delete")) == 3
        assert backend.calls_for("get") == []

    def test_cluster_scoped_single_listing(self) -> None:
        backend = FakeBackend()
        backend.add_namespace("default")
        backend.add(CLUSTER_ISSUERS, "letsencrypt")
        backend.add(CLUSTER_ISSUERS, "selfsigned")
        directive = DeleteDirective(CLUSTER_ISSUERS)

        _deleter(backend).delete_all_resources(directive)

        assert backend.calls_for("list") == [("list", "clusterissuers", "", "")]
        deleted = sorted((ns, name) for _, _, ns, name in backend.calls_for("delete"))
        assert deleted == [("", "letsencrypt"), ("", "selfsigned")]

    def test_namespace_listing_failure_propagates(self) -> None:
        backend = Mock()
        backend.is_namespaced.return_value = True
        backend.list.side_effect = PermissionError("cannot list namespaces")
        deleter = ResourceDeleter(backend, Mock(), blocking=True, backoff=FAST_BACKOFF)

        with pytest.raises(PermissionError):
            deleter.delete_all_resources(DeleteDirective(CONFIGMAPS))
