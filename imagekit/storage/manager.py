"""Named disk resolution."""

import threading
from typing import Callable, Dict, Optional

from ..config import Config, DiskConfig
from ..exceptions import StorageError
from ..utils.logging import get_logger
from .base import Disk
from .local import LocalDisk

logger = get_logger("imagekit.storage.manager")

DiskFactory = Callable[[str, DiskConfig], Disk]


def _local_factory(name: str, disk_config: DiskConfig) -> Disk:
    if not disk_config.root:
        raise StorageError(f"Disk '{name}' has no root directory configured")
    return LocalDisk(name, disk_config.root, url=disk_config.url, secret=disk_config.secret)


class DiskManager:
    """Builds and caches disks from the ``storage.disks`` configuration.

    Only the ``local`` driver ships; other drivers are registered with
    ``extend``.
    """

    def __init__(self, config: Config):
        self.config = config
        self._disks: Dict[str, Disk] = {}
        self._drivers: Dict[str, DiskFactory] = {'local': _local_factory}
        self._lock = threading.Lock()

    def extend(self, driver: str, factory: DiskFactory) -> None:
        """Register a factory for a custom driver name."""
        self._drivers[driver] = factory

    def set(self, name: str, disk: Disk) -> None:
        """Use a pre-built disk for ``name``."""
        with self._lock:
            self._disks[name] = disk

    def has(self, name: str) -> bool:
        return name in self._disks or name in self.config.storage.disks

    def disk(self, name: Optional[str] = None) -> Disk:
        """Return the disk called ``name`` (the configured default when omitted).

        Raises:
            StorageError: if the disk is not configured or its driver is unknown
        """
        name = name or self.config.storage.disk
        with self._lock:
            if name in self._disks:
                return self._disks[name]

            disk_config = self.config.storage.disks.get(name)
            if disk_config is None:
                raise StorageError(f"Disk [{name}] is not configured")

            factory = self._drivers.get(disk_config.driver)
            if factory is None:
                raise StorageError(f"Driver [{disk_config.driver}] is not supported for disk [{name}]")

            disk = factory(name, disk_config)
            self._disks[name] = disk
            logger.debug(f"Resolved disk {name} ({disk_config.driver})")
            return disk
