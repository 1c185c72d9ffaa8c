"""Local file cleanup."""

from __future__ import annotations

import logging
import os

from k8s_cleanup.cleanup.plan import load_file_paths

logger = logging.getLogger(__name__)


class FileCleaner:
    """Deletes the files listed in the file cleanup config.

    Removal errors are logged and skipped; only an unreadable or malformed
    config fails the step.
    """

    def __init__(self, config_path: str) -> None:
        self.config_path = config_path

    def cleanup_files(self) -> list[str]:
        """Delete every configured file.

        Returns:
            Paths that were removed
        """
        removed = []
        for file_path in load_file_paths(self.config_path):
            logger.info(f"Deleting file {file_path}")
            try:
                os.remove(file_path)
            except OSError as e:
                logger.error(f"File deletion failed for {file_path}: {e}")
                continue
            logger.info(f"File deletion successful: {file_path}")
            removed.append(file_path)
        return removed
