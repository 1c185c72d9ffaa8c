"""Cleanup config loading.

Both config files are JSON arrays mounted into the cleanup workload. A missing
file means there is nothing to delete.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from k8s_cleanup.cleanup.errors import PlanLoadError
from k8s_cleanup.models.directive import DeleteDirective

logger = logging.getLogger(__name__)

FILES_TO_DELETE = "filesToDelete"
RESOURCES_TO_DELETE = "resourcesToDelete"


def read_config(path: str, config_type: str) -> Optional[bytes]:
    """Read a cleanup config file.

    Args:
        path: Path to the config file
        config_type: Label used in log messages

    Returns:
        File contents, or None if the file does not exist

    Raises:
        PlanLoadError: If the file exists but cannot be read
    """
    config_path = Path(path)
    logger.debug(f"Reading cleanup config {config_type} from {config_path}")
    try:
        return config_path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"WARNING: {config_type} config file not found. Skipping.")
        return None
    except OSError as e:
        logger.error(f"Failed to read {config_type} config file {config_path}: {e}")
        raise PlanLoadError(f"failed to read config file {config_path}: {e}") from e


def _parse_array(raw: bytes, config_type: str) -> list[Any]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.error(f"Failed to unmarshal {config_type} config: {e}")
        raise PlanLoadError(f"failed to unmarshal {config_type} config: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        logger.error(f"Invalid {config_type} config: expected a JSON array")
        raise PlanLoadError(f"invalid {config_type} config: expected a JSON array, got {type(data).__name__}")
    return data


def load_directives(path: str) -> list[DeleteDirective]:
    """Load the ordered resource deletion plan.

    The last directive must be the cleanup workload's own Pod/DaemonSet/Job.

    Raises:
        PlanLoadError: If the file is unreadable, not JSON, or has malformed entries
    """
    raw = read_config(path, RESOURCES_TO_DELETE)
    if raw is None:
        return []

    directives = []
    for index, entry in enumerate(_parse_array(raw, RESOURCES_TO_DELETE)):
        try:
            directives.append(DeleteDirective.from_dict(entry))
        except ValueError as e:
            logger.error(f"Invalid {RESOURCES_TO_DELETE} entry {index}: {e}")
            raise PlanLoadError(f"invalid {RESOURCES_TO_DELETE} entry {index}: {e}") from e
    return directives


def load_file_paths(path: str) -> list[str]:
    """Load the list of local files to delete.

    Raises:
        PlanLoadError: If the file is unreadable, not JSON, or has non-string entries
    """
    raw = read_config(path, FILES_TO_DELETE)
    if raw is None:
        return []

    paths = _parse_array(raw, FILES_TO_DELETE)
    for index, entry in enumerate(paths):
        if not isinstance(entry, str):
            raise PlanLoadError(f"invalid {FILES_TO_DELETE} entry {index}: expected a string path")
    return paths
