"""Re-encoding of stored images at a target quality."""

from typing import Optional

from ..exceptions import InvalidInput
from ..utils import image_processing
from ..utils.logging import get_logger
from .base import DiskBoundService

logger = get_logger("imagekit.compression")


def quality_for_size(size_bytes: int) -> int:
    """Quality heuristic: bigger files get compressed harder."""
    size_kb = size_bytes / 1024

    if size_kb <= 100:
        return 95
    if size_kb <= 500:
        return 85
    if size_kb <= 1000:
        return 75
    if size_kb <= 2000:
        return 60
    return 50


class CompressionService(DiskBoundService):
    """Compresses stored images in place."""

    def resolve_quality(self, quality: Optional[int], size_bytes: int) -> int:
        """Explicit quality, else the configured one, else the size heuristic."""
        if quality is not None:
            return int(quality)
        if self.config.processing.compression_quality is not None:
            return int(self.config.processing.compression_quality)
        return quality_for_size(size_bytes)

    def compress_image(self, image_path: str, quality: Optional[int] = None) -> int:
        """Re-encode the stored image at the resolved quality.

        Args:
            image_path: Relative path on the active disk
            quality: 0-100; resolved from config or file size when None

        Returns:
            The quality used

        Raises:
            InvalidInput: if there is nothing stored at ``image_path``
        """
        storage = self._storage()
        if not storage.exists(image_path):
            raise InvalidInput(f"Image file does not exist: {image_path}")

        content = storage.get(image_path)
        resolved = self.resolve_quality(quality, len(content))

        img = image_processing.decode(content, image_path)
        try:
            storage.put(image_path, image_processing.encode(img, image_path, quality=resolved, fallback_format=img.format))
        finally:
            img.close()

        logger.debug(f"Compressed {image_path} at quality {resolved}")
        return resolved
