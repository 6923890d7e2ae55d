"""File operation utilities for ImageKit.

Provides atomic writes and safe directory handling for filesystem-backed disks.
"""

import os
import shutil
import threading
from pathlib import Path
from typing import Optional, Union

from ..exceptions import StorageError
from .logging import get_logger

logger = get_logger("imagekit.file_ops")


class FileOperationError(StorageError):
    """Base exception for file operations."""
    pass


class AtomicWriter:
    """Atomic file writing with automatic rollback on failure."""

    def __init__(self, target_path: Union[str, Path]):
        """Initialize atomic writer.

        Args:
            target_path: Final destination path, written in binary mode
        """
        self.target_path = Path(target_path)
        self.temp_path: Optional[Path] = None
        self.temp_file = None

    def __enter__(self):
        """Create temporary file for writing."""
        # Temp file lives beside the target so the final rename stays atomic
        self.temp_path = self.target_path.with_name(
            f'.{self.target_path.name}.tmp{os.getpid()}_{threading.get_ident()}'
        )

        self.temp_file = open(self.temp_path, 'wb')

        return self.temp_file

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Close temp file and rename or cleanup."""
        if self.temp_file:
            self.temp_file.close()

        if exc_type is None and self.temp_path:
            try:
                if self.target_path.exists():
                    shutil.copystat(self.target_path, self.temp_path)

                self.temp_path.replace(self.target_path)
                logger.debug(f"Atomically wrote {self.target_path}")

            except OSError as e:
                logger.error(f"Failed to rename temp file: {e}")
                if self.temp_path.exists():
                    self.temp_path.unlink()
                raise FileOperationError(f"Atomic write failed: {e}") from e
        else:
            if self.temp_path and self.temp_path.exists():
                self.temp_path.unlink()
                logger.debug(f"Cleaned up temp file after error: {self.temp_path}")


def atomic_write_bytes(path: Union[str, Path], content: bytes) -> Path:
    """Write ``content`` to ``path`` atomically, creating parent directories."""
    target = Path(path)
    DirectoryManager.create_directory(target.parent)
    with AtomicWriter(target) as f:
        f.write(content)
    return target


class DirectoryManager:
    """Directory helpers."""

    @staticmethod
    def create_directory(path: Union[str, Path], parents: bool = True) -> Path:
        """Create directory if it doesn't exist.

        Args:
            path: Directory path
            parents: Create parent directories

        Returns:
            Path object
        """
        dir_path = Path(path)
        try:
            dir_path.mkdir(parents=parents, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Cannot create directory {dir_path}: {e}") from e
        return dir_path
