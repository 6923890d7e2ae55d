"""ImageKit: image ingestion pipeline.

Validates uploads, stores originals on a named disk, and applies resizing,
watermarking, compression and multi-size generation before returning
metadata about the stored file.
"""

from .config import Config, config
from .events import EventDispatcher, ImageDeleted, ImageSaved, ImageSaving, dispatcher
from .exceptions import ImageKitError, InvalidInput, NotFound, StorageError
from .handler import ImageHandler
from .models import Dimensions, HandlerState, RETURN_KEYS, StoredImageResult, UploadedImage, WatermarkSpec
from .utils.naming import NamingStrategy

__version__ = "1.0.0"

__all__ = [
    'Config',
    'config',
    'Dimensions',
    'dispatcher',
    'EventDispatcher',
    'HandlerState',
    'ImageDeleted',
    'ImageHandler',
    'ImageKitError',
    'ImageSaved',
    'ImageSaving',
    'InvalidInput',
    'NamingStrategy',
    'NotFound',
    'RETURN_KEYS',
    'StorageError',
    'StoredImageResult',
    'UploadedImage',
    'WatermarkSpec',
]
