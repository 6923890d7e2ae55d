"""Single-box resizing and multi-size derivative generation."""

from typing import Iterable, Optional

from ..exceptions import InvalidInput
from ..models import Dimensions
from ..utils import image_processing
from ..utils.logging import get_logger
from .base import DiskBoundService
from .storage_service import join_path

logger = get_logger("imagekit.resize")


class ResizeService(DiskBoundService):
    """Resizes stored images in place or into labelled copies."""

    @property
    def catalog(self):
        return self.config.processing.multi_size_dimensions

    def set_dimensions_image(self, image_path: str, dimensions: Optional[Dimensions], aspect_ratio: bool = True) -> bool:
        """Resize the stored image at ``image_path`` in place.

        Args:
            image_path: Relative path on the active disk
            dimensions: Target box; None or an empty box is a no-op
            aspect_ratio: Fit inside the box instead of stretching to it

        Returns:
            True if the image was rewritten

        Raises:
            InvalidInput: if there is nothing stored at ``image_path``
        """
        if dimensions is None or dimensions.is_empty():
            return False

        storage = self._storage()
        if not storage.exists(image_path):
            raise InvalidInput(f"Image file does not exist: {image_path}")

        img = image_processing.decode(storage.get(image_path), image_path)
        try:
            resized = image_processing.resize(img, dimensions.width, dimensions.height, aspect_ratio)
            try:
                storage.put(image_path, image_processing.encode(resized, image_path, fallback_format=img.format))
            finally:
                resized.close()
        finally:
            img.close()

        logger.debug(f"Resized {image_path} to fit {dimensions.width}x{dimensions.height} (aspect={aspect_ratio})")
        return True

    def resize_image(self, base_path: str, image_name: str, labels: Iterable[str]) -> None:
        """Write a ``{label}_{image_name}`` copy for every size label.

        Copies are made from the stored original as it currently is, with
        the aspect ratio preserved.

        Raises:
            InvalidInput: for unknown labels, incomplete size definitions or
                a missing original
        """
        storage = self._storage()
        original_path = join_path(base_path, image_name)

        for label in labels:
            dims = self.catalog.get(label)
            if dims is None:
                raise InvalidInput(f"Size '{label}' is not defined in resize options.")
            if dims.width is None or dims.height is None:
                raise InvalidInput(f"Width and height for size '{label}' must be defined.")

            if not storage.exists(original_path):
                raise InvalidInput(f"Original image file does not exist: {original_path}")

            img = image_processing.decode(storage.get(original_path), original_path)
            try:
                resized = image_processing.resize(img, dims.width, dims.height, keep_aspect=True)
                try:
                    target = join_path(base_path, f"{label}_{image_name}")
                    storage.put(target, image_processing.encode(resized, image_name, fallback_format=img.format))
                finally:
                    resized.close()
            finally:
                img.close()

            logger.debug(f"Generated {label} size for {original_path}")
