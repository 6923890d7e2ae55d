"""Persistence and retrieval of images on the configured disks."""

import posixpath
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from aiohttp import web

from ..exceptions import InvalidInput
from ..models import UploadedImage
from ..storage.base import Expiration
from ..utils.image_processing import mime_type_for, extension_of
from ..utils.logging import get_logger
from ..utils.naming import generate_name, random_string
from .base import DiskBoundService

logger = get_logger("imagekit.storage")


@dataclass
class SavedOriginal:
    """Where ``save_original`` put an upload."""
    image: UploadedImage
    image_name: str
    image_path: str
    full_path: str


def join_path(directory: str, name: str) -> str:
    """Join a storage directory and file name with exactly one slash."""
    directory = directory.rstrip('/')
    return f"{directory}/{name}" if directory else name


class StorageService(DiskBoundService):
    """Reads and writes images on the active disk."""

    def generate_file_name(self, upload: UploadedImage) -> str:
        return generate_name(upload, self.config.processing.naming_strategy)

    def save_original(
        self,
        upload: UploadedImage,
        path: str,
        name: Optional[str] = None,
        extension: Optional[str] = None,
    ) -> SavedOriginal:
        """Persist the upload's bytes unchanged.

        Args:
            upload: The pending upload
            path: Relative directory on the disk
            name: Base name; generated by the naming strategy when omitted
            extension: Extension override; the upload's own when omitted

        Returns:
            The stored file name, directory and full relative path
        """
        name = name or self.generate_file_name(upload)
        image_name = f"{name}.{extension or upload.extension}"
        full_path = join_path(path, image_name)

        self._storage().put(full_path, upload.read())
        logger.info(f"Stored {full_path} on disk {self._disk}")

        return SavedOriginal(
            image=upload,
            image_name=image_name,
            image_path=path.rstrip('/') + '/',
            full_path=full_path,
        )

    def save_watermark(self, upload: UploadedImage, name: Optional[str] = None) -> str:
        """Persist an uploaded watermark under ``watermark_storage_path``.

        Returns:
            Relative path of the stored watermark
        """
        name = name or f"watermark_{int(time.time())}_{random_string(10)}"
        full_path = join_path(self.config.storage.watermark_storage_path, f"{name}.{upload.extension or 'png'}")

        self._storage().put(full_path, upload.read())
        logger.info(f"Stored watermark {full_path} on disk {self._disk}")
        return full_path

    def url(self, path: str, disk: Optional[str] = None) -> str:
        return self._storage(disk).url(path)

    def path(self, path: str, disk: Optional[str] = None) -> str:
        return self._storage(disk).path(path)

    def exists(self, path: str, disk: Optional[str] = None) -> bool:
        return self._storage(disk).exists(path)

    def get_image(self, path: str, disk: Optional[str] = None) -> Optional[bytes]:
        """Stored bytes, or None when nothing is stored at ``path``."""
        storage = self._storage(disk)
        if not storage.exists(path):
            return None
        return storage.get(path)

    def get_file_size(self, path: str, disk: Optional[str] = None) -> int:
        return self._storage(disk).size(path)

    def _require(self, path: str, disk: Optional[str]) -> bytes:
        content = self.get_image(path, disk)
        if content is None:
            raise InvalidInput(f"Image file does not exist: {path}")
        return content

    def response(
        self,
        path: str,
        disk: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> web.Response:
        """Build an HTTP response serving the stored image.

        Args:
            path: Relative path of the image
            disk: Disk name, the active disk when omitted
            options: ``content_type``, ``headers``, ``cache`` (False disables
                caching, a number sets ``max-age``), ``disposition``
                (``inline`` by default) and ``filename``

        Raises:
            InvalidInput: if the image does not exist
        """
        options = dict(options or {})
        content = self._require(path, disk)

        headers: Dict[str, str] = dict(options.get('headers') or {})
        headers['Content-Type'] = options.get('content_type') or mime_type_for(extension_of(path))
        headers['Content-Length'] = str(len(content))

        if 'cache' in options:
            cache = options['cache']
            if cache is False:
                headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
                headers['Pragma'] = 'no-cache'
                headers['Expires'] = '0'
            elif isinstance(cache, (int, float)) and not isinstance(cache, bool):
                headers['Cache-Control'] = f'public, max-age={int(cache)}'

        disposition = options.get('disposition') or 'inline'
        filename = options.get('filename') or posixpath.basename(path)
        headers['Content-Disposition'] = f'{disposition}; filename="{filename}"'

        return web.Response(body=content, status=200, headers=headers)

    def download(
        self,
        path: str,
        name: Optional[str] = None,
        disk: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> web.Response:
        """Attachment response for the stored image, saved as ``name``."""
        options = dict(options or {})
        options['disposition'] = 'attachment'
        options['filename'] = name or posixpath.basename(path)
        return self.response(path, disk, options)

    def temporary_url(self, path: str, expiration: Expiration, disk: Optional[str] = None) -> str:
        """Expiring URL for the stored image.

        Raises:
            InvalidInput: if the image does not exist
            StorageError: if the disk cannot sign URLs
        """
        storage = self._storage(disk)
        if not storage.exists(path):
            raise InvalidInput(f"Image file does not exist: {path}")
        return storage.temporary_url(path, expiration)

    def delete_image(self, image_name: str, path: str, sizes: Optional[Iterable[str]] = None) -> bool:
        """Delete an image and its size derivatives.

        Derivatives are ``{path}/{label}_{image_name}``; missing ones are
        ignored.

        Returns:
            True only if the original was deleted
        """
        storage = self._storage()

        for label in sizes or []:
            derivative = join_path(path, f"{label}_{image_name}")
            if storage.exists(derivative):
                storage.delete(derivative)
                logger.debug(f"Deleted derivative {derivative}")

        original = join_path(path, image_name)
        deleted = storage.exists(original) and storage.delete(original)
        if deleted:
            logger.info(f"Deleted {original} from disk {self._disk}")
        else:
            logger.warning(f"Nothing deleted at {original} on disk {self._disk}")
        return deleted
