"""Watermark compositing."""

import posixpath
from pathlib import Path
from typing import Mapping, Optional, Union

from PIL import Image

from ..exceptions import InvalidInput
from ..models import WatermarkSpec
from ..utils import image_processing
from ..utils.file_ops import atomic_write_bytes
from ..utils.image_processing import WatermarkPosition
from ..utils.logging import get_logger
from ..utils.paths import is_absolute_path
from .base import DiskBoundService
from .storage_service import join_path

logger = get_logger("imagekit.watermark")


class WatermarkService(DiskBoundService):
    """Overlays a watermark image onto stored images."""

    def _read_overlay(self, image_path: str) -> bytes:
        """Bytes of a watermark given as an absolute path, a disk path or a public asset."""
        if is_absolute_path(image_path):
            source = Path(image_path)
            if not source.is_file():
                raise InvalidInput(f"Watermark image file does not exist: {image_path}")
            return source.read_bytes()

        storage = self._storage()
        if storage.exists(image_path):
            return storage.get(image_path)

        fallback = Path(self.config.storage.public_path or '') / image_path
        if self.config.storage.public_path and fallback.is_file():
            return fallback.read_bytes()

        raise InvalidInput(f"Watermark image file does not exist: {image_path}")

    @staticmethod
    def _with_opacity(overlay: Image.Image, opacity: int) -> Image.Image:
        """Scale the overlay's alpha channel by ``opacity`` percent."""
        overlay = overlay.convert('RGBA')
        alpha = overlay.getchannel('A')
        alpha = alpha.point(lambda value: int(value * opacity / 100))
        overlay.putalpha(alpha)
        return overlay

    def apply_watermark(self, image_path: str, spec: Union[WatermarkSpec, Mapping, None]) -> None:
        """Composite the watermark onto the stored image and overwrite it.

        Args:
            image_path: Relative path of the target image on the active disk
            spec: Watermark settings; ``image_path`` is required

        Raises:
            InvalidInput: if the target or the overlay cannot be found
        """
        if isinstance(spec, Mapping):
            spec = WatermarkSpec.from_dict(spec)
        if spec is None or not spec.image_path:
            raise InvalidInput("Watermark image path is required.")

        storage = self._storage()
        if not storage.exists(image_path):
            raise InvalidInput(f"Image file does not exist: {image_path}")

        base = image_processing.decode(storage.get(image_path), image_path)
        try:
            self._composite(storage, image_path, base, spec)
        finally:
            base.close()

    def _composite(self, storage, image_path: str, base: Image.Image, spec: WatermarkSpec) -> None:
        overlay = image_processing.decode(self._read_overlay(spec.image_path), spec.image_path)
        try:
            if spec.width or spec.height:
                resized = image_processing.resize(overlay, spec.width or None, spec.height or None, keep_aspect=True)
                overlay.close()
                overlay = resized

            opacity = 100 if spec.opacity is None else int(spec.opacity)
            if opacity < 100:
                faded = self._with_opacity(overlay, opacity)
                overlay.close()
                overlay = faded
            elif overlay.mode != 'RGBA':
                converted = overlay.convert('RGBA')
                overlay.close()
                overlay = converted

            try:
                position = WatermarkPosition(spec.position or WatermarkPosition.BOTTOM_RIGHT.value)
            except ValueError as e:
                raise InvalidInput(f"Invalid watermark position '{spec.position}'") from e
            x = 10 if spec.x is None else int(spec.x)
            y = 10 if spec.y is None else int(spec.y)
            coords = image_processing.anchor_position(base.size, overlay.size, position, x, y)

            source_format = base.format
            canvas = base.convert('RGBA')
            try:
                canvas.paste(overlay, coords, mask=overlay)
                if base.mode not in ('RGBA', 'LA', 'P'):
                    flattened = canvas.convert(base.mode if base.mode in ('RGB', 'L') else 'RGB')
                else:
                    flattened = canvas
                storage.put(image_path, image_processing.encode(flattened, image_path, fallback_format=source_format))
                if flattened is not canvas:
                    flattened.close()
            finally:
                canvas.close()
        finally:
            overlay.close()

        logger.debug(f"Applied watermark {spec.image_path} to {image_path} at {position.value} {coords}")

    def resize_watermark_image(self, watermark_path: str, width: Optional[int], height: Optional[int]) -> str:
        """Store a resized copy of a watermark next to the source.

        Returns:
            ``watermark_path`` unchanged when no size is requested, otherwise
            the path of the ``{stem}_{width|auto}x{height|auto}`` copy
        """
        if (width is None and height is None) or (width == 0 and height == 0):
            return watermark_path

        overlay = image_processing.decode(self._read_overlay(watermark_path), watermark_path)
        try:
            resized = image_processing.resize(overlay, width or None, height or None, keep_aspect=True)
        finally:
            overlay.close()

        directory = posixpath.dirname(watermark_path.replace('\\', '/'))
        stem, extension = posixpath.splitext(posixpath.basename(watermark_path))
        extension = extension.lstrip('.') or 'png'
        file_name = f"{stem or 'watermark'}_{width or 'auto'}x{height or 'auto'}.{extension}"
        resized_path = join_path(directory, file_name)

        try:
            content = image_processing.encode(resized, resized_path, fallback_format='PNG')
        finally:
            resized.close()

        if is_absolute_path(watermark_path):
            atomic_write_bytes(resized_path, content)
        else:
            self._storage().put(resized_path, content)

        logger.debug(f"Resized watermark {watermark_path} to {resized_path}")
        return resized_path
