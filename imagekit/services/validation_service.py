"""Input validation for uploads, names, paths and processing options.

Every check raises ``InvalidInput`` naming the offending value. Nothing here
mutates state; watermark checks may probe storage for existence.
"""

from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from ..exceptions import InvalidInput
from ..models import UploadedImage, WatermarkSpec
from ..utils.image_processing import WatermarkPosition, probe_dimensions
from ..utils.logging import get_logger
from ..utils.paths import is_absolute_path
from .base import DiskBoundService

logger = get_logger("imagekit.validation")


def is_numeric(value: Any) -> bool:
    """True for ints, floats and numeric strings (booleans excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


class ValidationService(DiskBoundService):
    """Validation rules driven by the ``validation`` config section."""

    @property
    def allowed_extensions(self):
        return self.config.validation.allowed_extensions

    def validate_image(self, upload: Optional[UploadedImage]) -> None:
        """Validate an upload before anything is persisted.

        Args:
            upload: The pending upload

        Raises:
            InvalidInput: if the upload is missing, unreadable, has a
                disallowed extension, or exceeds the size or pixel limits
        """
        if upload is None or not upload.is_valid():
            raise InvalidInput("Invalid image file provided.")

        extension = upload.extension
        if extension not in self.allowed_extensions:
            raise InvalidInput(
                f"Unsupported file extension '{extension}'. "
                f"Allowed extensions are: {', '.join(self.allowed_extensions)}"
            )

        max_file_size = self.config.validation.max_file_size
        if max_file_size is not None and upload.size > max_file_size * 1024:
            raise InvalidInput(f"File size exceeds maximum allowed size of {max_file_size}KB.")

        self._validate_pixel_dimensions(upload)

    def _validate_pixel_dimensions(self, upload: UploadedImage) -> None:
        limits = self.config.validation.max_dimensions
        if limits.width is None and limits.height is None:
            return

        size = probe_dimensions(upload.read())
        if size is None:
            # Undecodable images fail later in the pipeline
            logger.debug(f"Could not probe dimensions of {upload.original_name}, skipping limit check")
            return

        width, height = size
        if limits.width is not None and width > limits.width:
            raise InvalidInput(
                f"Image width ({width}px) exceeds maximum allowed width ({limits.width}px)."
            )
        if limits.height is not None and height > limits.height:
            raise InvalidInput(
                f"Image height ({height}px) exceeds maximum allowed height ({limits.height}px)."
            )

    def validate_image_name(self, name: Optional[str]) -> None:
        if not name:
            raise InvalidInput("Image name cannot be empty.")

    def validate_extension(self, extension: Optional[str]) -> None:
        if not extension:
            raise InvalidInput("Extension cannot be empty.")

        if extension.lower() not in self.allowed_extensions:
            raise InvalidInput(
                f"Invalid file extension '{extension}'. "
                f"Allowed extensions are: {', '.join(self.allowed_extensions)}"
            )

    def validate_path(self, path: Optional[str]) -> None:
        """Reject empty, absolute and traversal-prone paths."""
        if not path:
            raise InvalidInput("Path is invalid or does not exist.")

        if is_absolute_path(path):
            raise InvalidInput(
                f"Absolute paths are not allowed. Please use a relative path instead. Provided path: {path}"
            )

        if '..' in path or '//' in path:
            raise InvalidInput(f"Invalid path format. Path cannot contain '..' or '//'. Provided path: {path}")

    def validate_dimensions(self, width: Any, height: Any) -> None:
        """Both sides may be None; anything else must be numeric."""
        if width is not None and not is_numeric(width):
            raise InvalidInput(f"Width must be a numeric value or None, got {width!r}.")
        if height is not None and not is_numeric(height):
            raise InvalidInput(f"Height must be a numeric value or None, got {height!r}.")

    def validate_resize_options(self, labels: Iterable[str], catalog: Optional[Mapping[str, Any]]) -> None:
        if not catalog:
            raise InvalidInput(
                "Resize options are not defined. Please check 'multi_size_dimensions' in your configuration."
            )

        for label in labels:
            if label not in catalog:
                raise InvalidInput(
                    f"Size '{label}' is not defined. Please check 'multi_size_dimensions' in your configuration."
                )

    def validate_compression_ratio(self, ratio: Any) -> None:
        if ratio is None:
            return
        if not is_numeric(ratio) or not 0 <= float(ratio) <= 100:
            raise InvalidInput(f"Compression ratio must be between 0 and 100, got {ratio!r}.")

    def validate_watermark(
        self,
        spec: Union[WatermarkSpec, Mapping[str, Any], None],
        disk: Optional[str] = None,
    ) -> None:
        """Validate a watermark spec; an empty spec is always valid.

        Relative image paths are looked up on ``disk`` (the active disk when
        omitted), then under the public assets directory. Absolute paths are
        checked on the local filesystem.
        """
        if isinstance(spec, Mapping):
            spec = WatermarkSpec.from_dict(spec)
        if spec is None or spec.is_empty():
            return

        if not spec.image_path:
            raise InvalidInput("Watermark image file is required.")

        if not self.watermark_exists(spec.image_path, disk):
            raise InvalidInput(f"Watermark image file does not exist: {spec.image_path}")

        if spec.position is not None and spec.position not in WatermarkPosition.values():
            raise InvalidInput(
                f"Invalid watermark position '{spec.position}'. "
                f"Valid positions are: {', '.join(WatermarkPosition.values())}"
            )

        if spec.opacity is not None and not (is_numeric(spec.opacity) and 0 <= float(spec.opacity) <= 100):
            raise InvalidInput(f"Watermark opacity must be between 0 and 100, got {spec.opacity!r}.")

        x = 10 if spec.x is None else spec.x
        y = 10 if spec.y is None else spec.y
        if not (is_numeric(x) and is_numeric(y)) or int(float(x)) < 0 or int(float(y)) < 0:
            raise InvalidInput(f"Watermark x and y coordinates cannot be negative, got ({x!r}, {y!r}).")

    def watermark_exists(self, image_path: str, disk: Optional[str] = None) -> bool:
        if is_absolute_path(image_path):
            return Path(image_path).is_file()

        if self._storage(disk).exists(image_path):
            return True

        public_path = self.config.storage.public_path
        return bool(public_path) and (Path(public_path) / image_path).is_file()
