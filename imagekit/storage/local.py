"""Filesystem-backed disk."""

import hashlib
import hmac
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, urlencode

from ..exceptions import NotFound, StorageError
from ..utils.file_ops import atomic_write_bytes
from ..utils.logging import get_logger
from .base import Disk, Expiration

logger = get_logger("imagekit.storage.local")


def _expires_at(expiration: Expiration) -> int:
    if isinstance(expiration, datetime):
        return int(expiration.timestamp())
    if isinstance(expiration, timedelta):
        return int(time.time() + expiration.total_seconds())
    return int(time.time()) + int(expiration)


class LocalDisk(Disk):
    """Disk rooted at a local directory, optionally served under a base URL."""

    def __init__(
        self,
        name: str,
        root: Union[str, Path],
        url: Optional[str] = None,
        secret: Optional[str] = None,
    ):
        super().__init__(name)
        self.root = Path(root).resolve()
        self.base_url = url.rstrip('/') if url else None
        self._secret = secret

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip('/')).resolve()
        if target != self.root and self.root not in target.parents:
            raise StorageError(f"Path escapes the root of disk '{self.name}': {path}")
        return target

    def put(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        atomic_write_bytes(target, content)
        logger.debug(f"[{self.name}] wrote {path} ({len(content)} bytes)")

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFound(f"File not found on disk '{self.name}': {path}")
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read {path} from disk '{self.name}': {e}") from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        try:
            target.unlink()
        except OSError as e:
            logger.warning(f"[{self.name}] could not delete {path}: {e}")
            return False
        return True

    def url(self, path: str) -> str:
        path = path.lstrip('/')
        if self.base_url is None:
            return self._resolve(path).as_uri()
        return f"{self.base_url}/{quote(path)}"

    def path(self, path: str) -> str:
        return str(self._resolve(path))

    def size(self, path: str) -> int:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFound(f"File not found on disk '{self.name}': {path}")
        return target.stat().st_size

    def _signature(self, path: str, expires: int) -> str:
        message = f"{self.name}:{path.lstrip('/')}:{expires}".encode('utf-8')
        return hmac.new(self._secret.encode('utf-8'), message, hashlib.sha256).hexdigest()

    def temporary_url(self, path: str, expiration: Expiration) -> str:
        """Signed URL valid until ``expiration``.

        Requires the disk to be configured with a ``secret``.
        """
        if not self._secret:
            return super().temporary_url(path, expiration)

        expires = _expires_at(expiration)
        query = urlencode({'expires': expires, 'signature': self._signature(path, expires)})
        return f"{self.url(path)}?{query}"

    def verify_signature(self, path: str, expires: Union[int, str], signature: str) -> bool:
        """Check a signature produced by ``temporary_url`` and that it has not expired."""
        if not self._secret:
            return False
        try:
            expires = int(expires)
        except (TypeError, ValueError):
            return False
        if expires < time.time():
            return False
        return hmac.compare_digest(self._signature(path, expires), signature or '')
