"""Storage disks for ImageKit."""

from .base import Disk
from .local import LocalDisk
from .manager import DiskManager

__all__ = ['Disk', 'LocalDisk', 'DiskManager']
