"""Shared plumbing for services that operate on a storage disk."""

from typing import Optional

from ..config import Config
from ..storage import Disk, DiskManager


class DiskBoundService:
    """Holds the configuration, the disk manager and the active disk name."""

    def __init__(self, config: Config, disks: Optional[DiskManager] = None, disk: Optional[str] = None):
        """
        Args:
            config: Configuration to read defaults from
            disks: Disk manager; one is built from ``config`` when omitted
            disk: Active disk name, defaults to ``config.storage.disk``
        """
        self.config = config
        self.disks = disks or DiskManager(config)
        self._disk = disk or config.storage.disk

    def set_disk(self, disk: str):
        self._disk = disk
        return self

    def get_disk(self) -> str:
        return self._disk

    def _storage(self, disk: Optional[str] = None) -> Disk:
        return self.disks.disk(disk or self._disk)
