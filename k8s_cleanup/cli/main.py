"""Main CLI entry point using Typer."""

import logging
import signal
import threading
import time
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..cleanup.audit import AuditStorage
from ..cleanup.backend import KubernetesBackend, create_dynamic_client
from ..cleanup.cleaner import ResourceCleaner
from ..cleanup.errors import CleanupError
from ..cleanup.files import FileCleaner
from ..cleanup.notification import FinalizeNotifier
from ..cleanup.plan import load_directives
from ..config import (
    DEFAULT_FILE_CONFIG_PATH,
    DEFAULT_RESOURCE_CONFIG_PATH,
    DEFAULT_ROLE_BINDING_NAME,
    DEFAULT_ROLE_NAME,
    DEFAULT_SA_NAME,
    Config,
)
from ..models.deletion_operation import CleanupOperation
from ..server.app import NotificationServer, create_app
from ..utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="k8s-cleanup",
    help="Self-destructing cleanup agent for Kubernetes workloads",
    add_completion=False,
)

# Create Rich console for output
console = Console()


@app.command()
def version():
    """Show version information."""
    console.print(f"k8s-cleanup version {__version__}")


def install_signal_handlers(stop_event: threading.Event) -> dict:
    """Set the stop event on SIGTERM/SIGINT.

    Returns:
        Previous handlers keyed by signal number
    """

    def handle(signum, frame):
        logger.info(f"Received signal {signal.Signals(signum).name}, stopping")
        stop_event.set()

    return {signum: signal.signal(signum, handle) for signum in (signal.SIGTERM, signal.SIGINT)}


def restore_signal_handlers(handlers: dict) -> None:
    for signum, handler in handlers.items():
        if handler is not None:
            signal.signal(signum, handler)


def print_summary(operation: CleanupOperation) -> None:
    table = Table(title="Cleanup Summary")
    table.add_column("Operation")
    table.add_column("Status")
    table.add_column("Directives", justify="right")
    table.add_column("Succeeded", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Self-destruct")
    table.add_row(
        operation.operation_id,
        operation.status.value,
        str(operation.total_directives),
        str(operation.succeeded_count),
        str(operation.failed_count),
        operation.self_destruct.value if operation.self_destruct else "-",
    )
    console.print(table)


@app.command()
def run(
    blocking_deletion: bool = typer.Option(
        True,
        "--blocking-deletion/--no-blocking-deletion",
        envvar="BLOCKING_DELETION",
        help="Block until each resource is deleted before proceeding to the next",
    ),
    deletion_interval_seconds: int = typer.Option(
        2, "--deletion-interval-seconds", envvar="DELETION_INTERVAL_SECONDS", help="Interval to poll for deletion"
    ),
    deletion_timeout_seconds: int = typer.Option(
        300, "--deletion-timeout-seconds", envvar="DELETION_TIMEOUT_SECONDS", help="Time to wait for deletion"
    ),
    cleanup_timeout: int = typer.Option(
        30, "--cleanup-timeout", envvar="CLEANUP_TIMEOUT_SECONDS", help="Seconds to wait before self-destructing"
    ),
    enable_grpc_server: bool = typer.Option(
        False, "--enable-grpc-server", envvar="ENABLE_GRPC_SERVER", help="Serve FinalizeCleanup requests"
    ),
    grpc_port: int = typer.Option(8080, "--grpc-port", envvar="GRPC_PORT", help="Port for FinalizeCleanup requests"),
    file_config_path: str = typer.Option(
        DEFAULT_FILE_CONFIG_PATH, "--file-config-path", envvar="FILE_CONFIG_PATH", help="JSON list of files to delete"
    ),
    resource_config_path: str = typer.Option(
        DEFAULT_RESOURCE_CONFIG_PATH,
        "--resource-config-path",
        envvar="RESOURCE_CONFIG_PATH",
        help="JSON list of resources to delete",
    ),
    sa_name: str = typer.Option(DEFAULT_SA_NAME, "--sa-name", envvar="SA_NAME", help="ServiceAccount name"),
    role_name: str = typer.Option(DEFAULT_ROLE_NAME, "--role-name", envvar="ROLE_NAME", help="Role name"),
    role_binding_name: str = typer.Option(
        DEFAULT_ROLE_BINDING_NAME, "--role-binding-name", envvar="ROLE_BINDING_NAME", help="RoleBinding name"
    ),
    cluster_role_name: str = typer.Option(
        "", "--cluster-role-name", envvar="CLUSTER_ROLE_NAME", help="ClusterRole name; overrides --role-name"
    ),
    cluster_role_binding_name: str = typer.Option(
        "",
        "--cluster-role-binding-name",
        envvar="CLUSTER_ROLE_BINDING_NAME",
        help="ClusterRoleBinding name; overrides --role-binding-name",
    ),
    report_dir: Optional[str] = typer.Option(
        None, "--report-dir", envvar="REPORT_DIR", help="Directory for YAML cleanup reports"
    ),
    max_workers: Optional[int] = typer.Option(
        None, "--max-workers", envvar="MAX_WORKERS", help="Cap on concurrent bulk deletions"
    ),
    debug: bool = typer.Option(False, "--debug", envvar="DEBUG", help="Enable debug logging"),
):
    """Delete the configured files and resources, then self-destruct."""
    setup_logging(level="DEBUG" if debug else "INFO", verbose=debug)

    settings = Config(
        blocking_deletion=blocking_deletion,
        deletion_interval=float(deletion_interval_seconds),
        deletion_timeout=float(deletion_timeout_seconds),
        cleanup_timeout=float(cleanup_timeout),
        enable_grpc_server=enable_grpc_server,
        grpc_port=grpc_port,
        file_config_path=file_config_path,
        resource_config_path=resource_config_path,
        sa_name=sa_name,
        role_name=role_name,
        role_binding_name=role_binding_name,
        cluster_role_name=cluster_role_name,
        cluster_role_binding_name=cluster_role_binding_name,
        report_dir=report_dir,
        max_workers=max_workers,
        debug=debug,
    )
    try:
        settings.validate()
    except ValueError as e:
        console.print(f"✗ Invalid configuration: {e}", style="bold red")
        raise typer.Exit(code=1)

    logger.info("Starting k8s-cleanup")
    start_time = time.monotonic()

    stop_event = threading.Event()
    previous_handlers = install_signal_handlers(stop_event)
    notifier = FinalizeNotifier()

    server = None
    if settings.enable_grpc_server:
        server = NotificationServer(create_app(notifier), port=settings.grpc_port)
        server.start()

    try:
        backend = KubernetesBackend(create_dynamic_client())

        FileCleaner(settings.file_config_path).cleanup_files()
        logger.info(f"File cleanup complete (duration {time.monotonic() - start_time:.1f}s)")

        directives = load_directives(settings.resource_config_path)
        audit_storage = AuditStorage(settings.report_dir) if settings.report_dir else None
        cleaner = ResourceCleaner(backend, notifier, settings, stop_event=stop_event, audit_storage=audit_storage)
        operation = cleaner.cleanup_resources(directives)
        logger.info(f"Resource cleanup complete (duration {time.monotonic() - start_time:.1f}s)")
        print_summary(operation)

        if server is not None:
            # the workload is being deleted; keep serving until the kubelet terminates us
            stop_event.wait()

    except CleanupError as e:
        logger.error(f"Cleanup failed: {e}")
        console.print(f"✗ Cleanup failed: {e}", style="bold red")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.exception("Unexpected error during cleanup")
        console.print(f"✗ Error: {e}", style="bold red")
        raise typer.Exit(code=2)
    finally:
        if server is not None:
            server.stop()
        restore_signal_handlers(previous_handlers)

    logger.info(f"Cleanup finished (total duration {time.monotonic() - start_time:.1f}s)")


if __name__ == "__main__":
    app()
