"""Utility classes for the photo cluster map application."""

import logging
import os
from pathlib import Path

from .exceptions import FileOperationError
from .ingest import LocalFile
from .types import Progress


class LoggingSetup:
    """Handles logging configuration."""

    @staticmethod
    def setup_logging(level: int = logging.INFO) -> logging.Logger:
        """Set up logging configuration."""
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        return logging.getLogger("photo_cluster_map")


class FileScanner:
    """Collects file handles from a directory, the way a folder upload does."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def scan(self, root: str | Path, recursive: bool = True) -> list[LocalFile]:
        """
        List every regular file under root, sorted by path.

        Media-type filtering is left to the ingestion pipeline.

        Raises:
            FileOperationError: If root is missing or cannot be listed
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise FileOperationError(f"Directory does not exist: {root_path}")

        self.logger.info(f"Scanning directory: {root_path}")
        paths: list[Path] = []
        try:
            if recursive:
                for dirpath, _, filenames in os.walk(root_path):
                    paths.extend(Path(dirpath) / filename for filename in filenames)
            else:
                paths.extend(path for path in root_path.iterdir() if path.is_file())
        except (OSError, PermissionError) as e:
            raise FileOperationError(f"Error accessing folder {root_path}: {e}") from e

        files = [LocalFile(path) for path in sorted(paths)]
        self.logger.info(f"Found {len(files)} files")
        return files


class ProgressReporter:
    """Logs ingestion progress updates."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def __call__(self, progress: Progress) -> None:
        self.logger.info(
            f"Processing photos... ({progress.processed}/{progress.total}, "
            f"{progress.fraction:.0%})"
        )
