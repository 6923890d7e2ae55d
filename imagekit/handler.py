"""Fluent image pipeline.

``ImageHandler`` accumulates options through chained setters, then runs a
terminal operation that validates the staged upload, stores the original
and applies resize, watermark, compression and multi-size steps to the
stored file in that order before projecting the requested metadata.

Example:
    handler = ImageHandler.make()
    name = handler.image(upload).resize(800, 600).sizes(['small']).save()
"""

import hashlib
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .config import Config, config as default_config
from .events import EventDispatcher, ImageDeleted, ImageSaved, ImageSaving, dispatcher as default_dispatcher
from .exceptions import InvalidInput
from .models import Dimensions, HandlerState, PipelineConfig, StoredImageResult, UploadedImage, WatermarkSpec
from .services import CompressionService, ResizeService, StorageService, ValidationService, WatermarkService
from .storage import DiskManager
from .storage.base import Expiration
from .utils.image_processing import extension_of, mime_type_for, probe_dimensions
from .utils.logging import get_logger
from .utils.naming import slugify
from .utils.paths import PathNormalizer, is_absolute_path, is_url, url_path

logger = get_logger("imagekit.handler")

UploadLike = Union[UploadedImage, str, Path]


def _as_upload(value: Optional[UploadLike]) -> Optional[UploadedImage]:
    if value is None or isinstance(value, UploadedImage):
        return value
    return UploadedImage.from_path(value)


def _as_int(value: Any) -> Optional[int]:
    return None if value is None else int(float(value))


class ImageHandler:
    """Configures and runs the image pipeline.

    An instance is meant to serve one logical request (see ``make``). When
    an instance is shared, terminal operations are serialized and
    ``exclusive()`` holds the same lock across a configure+save sequence.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        disks: Optional[DiskManager] = None,
        events: Optional[EventDispatcher] = None,
    ):
        """Initialize the handler from configuration defaults.

        Args:
            config: Configuration, the global one when omitted
            disks: Disk manager shared by all services
            events: Dispatcher receiving lifecycle events
        """
        self.config = config or default_config
        self.disks = disks or DiskManager(self.config)
        self.events = events or default_dispatcher

        self.validation = ValidationService(self.config, self.disks)
        self.storage = StorageService(self.config, self.disks)
        self.resizer = ResizeService(self.config, self.disks)
        self.watermarker = WatermarkService(self.config, self.disks)
        self.compressor = CompressionService(self.config, self.disks)

        storage_config = self.config.storage
        public_disk = storage_config.disks.get('public')
        self.paths = PathNormalizer(
            self.validation.validate_path,
            roots=[public_disk.root if public_disk else None, storage_config.public_path, storage_config.base_path],
        )

        self._lock = threading.RLock()
        self._processing = False
        self._image: Optional[UploadedImage] = None
        self._images: List[UploadedImage] = []
        self._pipeline = self._defaults()
        self._apply_disk(self._pipeline.disk)

    @classmethod
    def make(cls, config: Optional[Config] = None, **kwargs) -> "ImageHandler":
        """Fresh handler for one logical request."""
        return cls(config, **kwargs)

    def _defaults(self) -> PipelineConfig:
        processing = self.config.processing
        watermark = self.config.watermark

        return PipelineConfig(
            saved_path=self.paths.normalize_configured(self.config.storage.default_saved_path),
            disk=self.config.storage.disk,
            dimensions=processing.dimensions if not processing.dimensions.is_empty() else None,
            aspect_ratio=processing.aspect_ratio,
            watermark=WatermarkSpec.from_dict(watermark.spec()) if watermark.enabled else None,
            compress=True,
            compression_ratio=None,
            multi_size=list(processing.multi_size_options) if processing.enable_multi_size else None,
        )

    def _apply_disk(self, disk: str) -> None:
        for service in (self.validation, self.storage, self.resizer, self.watermarker, self.compressor):
            service.set_disk(disk)

    @property
    def state(self) -> HandlerState:
        if self._processing:
            return HandlerState.PROCESSING
        if self._image is not None or self._images:
            return HandlerState.CONFIGURED
        return HandlerState.IDLE

    @property
    def pipeline(self) -> PipelineConfig:
        """Snapshot of the accumulated options."""
        return self._pipeline.copy()

    @contextmanager
    def exclusive(self):
        """Hold the handler lock across a configure+save sequence."""
        with self._lock:
            yield self

    # Configuration

    def set_image(self, image: UploadLike) -> "ImageHandler":
        upload = _as_upload(image)
        self.validation.validate_image(upload)
        self._image = upload
        return self

    def set_images(self, images: Iterable[UploadLike]) -> "ImageHandler":
        uploads = [_as_upload(image) for image in images]
        for upload in uploads:
            self.validation.validate_image(upload)
        self._images = uploads
        return self

    def set_image_name(self, name: str) -> "ImageHandler":
        self.validation.validate_image_name(name)
        slug = slugify(name)
        if not slug:
            raise InvalidInput(f"Image name {name!r} has no usable characters.")
        self._pipeline.image_name = slug
        return self

    def set_extension(self, extension: str) -> "ImageHandler":
        self.validation.validate_extension(extension)
        self._pipeline.extension = extension.lower()
        return self

    def set_image_path(self, path: str) -> "ImageHandler":
        self._pipeline.saved_path = self.paths.normalize(path)
        return self

    def set_dimensions(self, width: Optional[int] = None, height: Optional[int] = None) -> "ImageHandler":
        """Resize target for the stored original; (None, None) disables resizing."""
        self.validation.validate_dimensions(width, height)
        self._pipeline.dimensions = Dimensions(_as_int(width), _as_int(height))
        return self

    def set_watermark(
        self,
        source: Optional[UploadLike] = None,
        position: Optional[str] = None,
        opacity: Optional[int] = None,
        offset: Union[Sequence[int], Mapping[str, int], None] = None,
        x: Optional[int] = None,
        y: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> "ImageHandler":
        """Configure the watermark; calling it with no arguments disables it.

        Args:
            source: An ``UploadedImage`` to store as a new watermark, or the
                path of an existing one (disk-relative, absolute or a URL)
            position: Anchor, one of ``WatermarkPosition`` values
            opacity: 0-100
            offset: ``(x, y)`` or ``{'x': .., 'y': ..}``; wins over x/y
            x: Horizontal inset from the anchor (default 10)
            y: Vertical inset from the anchor (default 10)
            width: Watermark width; a resized copy is stored
            height: Watermark height; a resized copy is stored
        """
        spec = WatermarkSpec()

        if source:
            if isinstance(source, UploadedImage):
                self.validation.validate_image(source)
                image_path = self.storage.save_watermark(source)
            else:
                image_path = str(source)
                if is_url(image_path):
                    image_path = url_path(image_path).lstrip('/')
                elif not is_absolute_path(image_path):
                    image_path = image_path.lstrip('/')

            if width is not None or height is not None:
                image_path = self.watermarker.resize_watermark_image(image_path, width, height)
            spec.image_path = image_path

        if position:
            spec.position = position
        if opacity is not None:
            spec.opacity = opacity

        if isinstance(offset, Mapping) and 'x' in offset and 'y' in offset:
            spec.x, spec.y = int(offset['x']), int(offset['y'])
        elif offset is not None and not isinstance(offset, Mapping) and len(offset) == 2:
            spec.x, spec.y = int(offset[0]), int(offset[1])
        elif x is not None or y is not None:
            spec.x = 10 if x is None else x
            spec.y = 10 if y is None else y

        spec.width = width
        spec.height = height

        if spec.is_empty():
            self._pipeline.watermark = None
            return self

        self.validation.validate_watermark(spec, self._pipeline.disk)
        self._pipeline.watermark = spec
        return self

    def compress_image(self, compress: bool = True, compression_ratio: Optional[int] = None) -> "ImageHandler":
        self.validation.validate_compression_ratio(compression_ratio)
        self._pipeline.compress = compress
        self._pipeline.compression_ratio = _as_int(compression_ratio)
        return self

    def set_multi_size_options(self, labels: Optional[Iterable[str]] = None) -> "ImageHandler":
        """Select size labels to generate; None restores the configured default."""
        if labels is None:
            self._pipeline.multi_size = self._defaults().multi_size
            return self

        labels = list(labels)
        self.validation.validate_resize_options(labels, self.config.processing.multi_size_dimensions)
        self._pipeline.multi_size = labels
        return self

    def set_disk(self, disk: str) -> "ImageHandler":
        # Resolve eagerly so unknown disks fail at the call site
        self.disks.disk(disk)
        self._pipeline.disk = disk
        self._apply_disk(disk)
        return self

    def get_disk(self) -> str:
        return self._pipeline.disk

    def reset(self) -> "ImageHandler":
        """Drop staged images and restore every option to its configured default."""
        self._image = None
        self._images = []
        self._pipeline = self._defaults()
        self._apply_disk(self._pipeline.disk)
        return self

    # Terminal operations

    def save_image(self, return_keys: Optional[List[str]] = None) -> Union[str, Any, Dict[str, Any]]:
        """Run the pipeline on the staged image.

        Args:
            return_keys: Fields to return, ``processing.return_keys`` by default

        Returns:
            A single value for one key, otherwise a mapping of the requested keys
        """
        with self._lock:
            self._processing = True
            try:
                return self._process(self._image, return_keys)
            finally:
                self._processing = False
                self._image = None
                self._pipeline.image_name = None
                self._pipeline.extension = None

    def save_gallery(
        self,
        image_column: Optional[str] = None,
        fk_column: Optional[str] = None,
        fk_id: Any = None,
        alt_text: Union[str, Sequence[Optional[str]], None] = None,
        return_keys: Optional[List[str]] = None,
    ) -> List[Any]:
        """Run the pipeline on every staged image, in order.

        With ``image_column`` each result is wrapped in a row mapping that
        also carries ``fk_column: fk_id`` (when both are given) and ``alt``
        (shared text, or per image when ``alt_text`` is a list).
        """
        with self._lock:
            if not self._images:
                raise InvalidInput("No images provided. Use set_images() first.")

            alt_texts = list(alt_text) if isinstance(alt_text, (list, tuple)) else None
            data = []

            self._processing = True
            try:
                for index, upload in enumerate(self._images):
                    self._pipeline.image_name = None
                    result = self._process(upload, return_keys)

                    if not image_column:
                        data.append(result)
                        continue

                    row = {image_column: result}
                    if fk_column and fk_id:
                        row[fk_column] = fk_id

                    if alt_texts is not None:
                        current_alt = alt_texts[index] if index < len(alt_texts) else None
                    else:
                        current_alt = alt_text
                    if current_alt:
                        row['alt'] = current_alt

                    data.append(row)
            finally:
                self._processing = False
                self._images = []
                self._image = None
                self._pipeline.image_name = None
                self._pipeline.extension = None

            logger.info(f"Saved gallery of {len(data)} image(s) to {self._pipeline.saved_path}")
            return data

    def _process(self, upload: Optional[UploadedImage], return_keys: Optional[List[str]]):
        if upload is None:
            raise InvalidInput("No image provided. Use set_image() first.")

        pipeline = self._pipeline
        self.validation.validate_image(upload)

        self.events.dispatch(ImageSaving(upload, pipeline.saved_path, pipeline.options()))

        saved = self.storage.save_original(upload, pipeline.saved_path, pipeline.image_name, pipeline.extension)
        full_path = saved.full_path
        original_size = self.storage.get_file_size(full_path)

        if pipeline.dimensions is not None and not pipeline.dimensions.is_empty():
            logger.debug(f"Resizing {full_path}")
            self.resizer.set_dimensions_image(full_path, pipeline.dimensions, pipeline.aspect_ratio)

        if pipeline.watermark is not None and pipeline.watermark.image_path:
            logger.debug(f"Watermarking {full_path}")
            self.watermarker.apply_watermark(full_path, pipeline.watermark)

        if pipeline.compress:
            logger.debug(f"Compressing {full_path}")
            self.compressor.compress_image(full_path, pipeline.compression_ratio)

        if pipeline.multi_size:
            logger.debug(f"Generating sizes {pipeline.multi_size} for {full_path}")
            self.resizer.resize_image(pipeline.saved_path, saved.image_name, pipeline.multi_size)

        self.events.dispatch(ImageSaved(saved.image_name, pipeline.saved_path, full_path))

        result = self._build_result(saved.image_name, pipeline.saved_path, full_path, original_size)
        logger.info(f"Saved image {full_path} on disk {pipeline.disk}")
        return result.project(return_keys or self.config.processing.return_keys)

    def _build_result(self, image_name: str, path: str, full_path: str, original_size: int) -> StoredImageResult:
        content = self.storage.get_image(full_path) or b''
        width, height = probe_dimensions(content) or (None, None)
        extension = extension_of(image_name)

        return StoredImageResult(
            name=image_name,
            path=path,
            full_path=full_path,
            size=round(len(content) / 1024, 2),
            original_size=round(original_size / 1024, 2),
            url=self.storage.url(full_path),
            extension=extension,
            mime_type=mime_type_for(extension),
            width=width,
            height=height,
            disk=self._pipeline.disk,
            hash=hashlib.md5(content).hexdigest() if content else None,
            created_at=datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        )

    # Deletion

    def delete_image(self, image_name: str, path: str, sizes: Optional[Iterable[str]] = None) -> bool:
        """Delete an image and its size derivatives.

        ``sizes`` defaults to the currently selected size labels.
        """
        with self._lock:
            path = self.paths.normalize(path)
            labels = list(sizes) if sizes is not None else list(self._pipeline.multi_size or [])
            success = self.storage.delete_image(image_name, path, labels)
            self.events.dispatch(ImageDeleted(image_name, path, success))
            return success

    def delete_gallery(self, image_names: Iterable[str], path: str, sizes: Optional[Iterable[str]] = None) -> int:
        """Delete several images; returns how many originals were deleted."""
        with self._lock:
            path = self.paths.normalize(path)
            labels = list(sizes) if sizes is not None else list(self._pipeline.multi_size or [])
            deleted = 0
            for image_name in image_names:
                success = self.storage.delete_image(image_name, path, labels)
                if success:
                    deleted += 1
                self.events.dispatch(ImageDeleted(image_name, path, success))
            return deleted

    # Retrieval

    def get_image(self, path: str, disk: Optional[str] = None) -> Optional[bytes]:
        return self.storage.get_image(path, disk)

    def get_image_url(self, path: str, disk: Optional[str] = None) -> str:
        return self.storage.url(path, disk)

    def get_image_path(self, path: str, disk: Optional[str] = None) -> str:
        return self.storage.path(path, disk)

    def image_exists(self, path: str, disk: Optional[str] = None) -> bool:
        return self.storage.exists(path, disk)

    def response(self, path: str, disk: Optional[str] = None, options: Optional[Mapping[str, Any]] = None):
        return self.storage.response(path, disk, options)

    def download(
        self,
        path: str,
        name: Optional[str] = None,
        disk: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ):
        return self.storage.download(path, name, disk, options)

    def temporary_url(self, path: str, expiration: Expiration, disk: Optional[str] = None) -> str:
        return self.storage.temporary_url(path, expiration, disk)

    # Fluent aliases
    image = set_image
    images = set_images
    name = set_image_name
    extension = set_extension
    path = set_image_path
    save_to = set_image_path
    resize = set_dimensions
    dimensions = set_dimensions
    watermark = set_watermark
    compress = compress_image
    sizes = set_multi_size_options
    save = save_image
