"""Runtime configuration for the cleanup agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from k8s_cleanup.cleanup.retry import DEFAULT_BACKOFF, Backoff

DEFAULT_FILE_CONFIG_PATH = "/tmp/spectro-cleanup/file-config.json"
DEFAULT_RESOURCE_CONFIG_PATH = "/tmp/spectro-cleanup/resource-config.json"
DEFAULT_SA_NAME = "spectro-cleanup"
DEFAULT_ROLE_NAME = "spectro-cleanup-role"
DEFAULT_ROLE_BINDING_NAME = "spectro-cleanup-rolebinding"


@dataclass
class Config:
    """Cleanup agent settings.

    Attributes:
        blocking_deletion: Wait for each resource to be gone before moving on
        deletion_interval: Seconds between deletion checks
        deletion_timeout: Seconds to wait for a resource to be deleted
        cleanup_timeout: Seconds to wait for a finalize notification before self-destructing
        enable_grpc_server: Serve the FinalizeCleanup notification endpoint
        grpc_port: Port of the notification endpoint
        file_config_path: JSON list of files to delete
        resource_config_path: JSON list of resources to delete
        sa_name: ServiceAccount of the cleanup workload
        role_name: Role of the cleanup workload
        role_binding_name: RoleBinding of the cleanup workload
        cluster_role_name: ClusterRole of the cleanup workload; replaces role_name when set
        cluster_role_binding_name: ClusterRoleBinding; replaces role_binding_name when set
        report_dir: Directory for YAML run reports (optional)
        max_workers: Cap on concurrent bulk deletions (optional)
        debug: Enable debug logging
        backoff: Retry schedule for delete requests
    """

    blocking_deletion: bool = True
    deletion_interval: float = 2.0
    deletion_timeout: float = 300.0
    cleanup_timeout: float = 30.0
    enable_grpc_server: bool = False
    grpc_port: int = 8080
    file_config_path: str = DEFAULT_FILE_CONFIG_PATH
    resource_config_path: str = DEFAULT_RESOURCE_CONFIG_PATH
    sa_name: str = DEFAULT_SA_NAME
    role_name: str = DEFAULT_ROLE_NAME
    role_binding_name: str = DEFAULT_ROLE_BINDING_NAME
    cluster_role_name: str = ""
    cluster_role_binding_name: str = ""
    report_dir: Optional[str] = None
    max_workers: Optional[int] = None
    debug: bool = False
    backoff: Backoff = field(default=DEFAULT_BACKOFF)

    def validate(self) -> bool:
        """Validate settings.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any setting is invalid
        """
        if bool(self.cluster_role_name) != bool(self.cluster_role_binding_name):
            raise ValueError("cluster-role-name and cluster-role-binding-name must be set together")
        if self.deletion_interval <= 0:
            raise ValueError("deletion-interval-seconds must be positive")
        if self.deletion_timeout <= 0:
            raise ValueError("deletion-timeout-seconds must be positive")
        if self.cleanup_timeout < 0:
            raise ValueError("cleanup-timeout cannot be negative")
        if not 0 < self.grpc_port < 65536:
            raise ValueError(f"grpc-port must be between 1 and 65535, got {self.grpc_port}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max-workers must be at least 1")
        return True
