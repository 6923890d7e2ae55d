"""Storage disk contract."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Union

from ..exceptions import StorageError

Expiration = Union[datetime, timedelta, int]


class Disk(ABC):
    """A named object store addressed by relative, forward-slash paths."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def put(self, path: str, content: bytes) -> None:
        """Write ``content`` at ``path``, replacing any existing object."""

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Read the object at ``path``.

        Raises:
            NotFound: if nothing is stored there
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete the object at ``path``; False when nothing was deleted."""

    @abstractmethod
    def url(self, path: str) -> str:
        pass

    @abstractmethod
    def size(self, path: str) -> int:
        """Size in bytes of the object at ``path``."""

    def path(self, path: str) -> str:
        """Absolute filesystem location; only filesystem-backed disks have one."""
        raise StorageError(f"Disk '{self.name}' is not backed by a local filesystem")

    def temporary_url(self, path: str, expiration: Expiration) -> str:
        raise StorageError(f"Disk '{self.name}' does not support temporary URLs")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
