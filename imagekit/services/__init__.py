"""Image pipeline services."""

from .compression_service import CompressionService
from .resize_service import ResizeService
from .storage_service import StorageService
from .validation_service import ValidationService
from .watermark_service import WatermarkService

__all__ = [
    'CompressionService',
    'ResizeService',
    'StorageService',
    'ValidationService',
    'WatermarkService',
]
