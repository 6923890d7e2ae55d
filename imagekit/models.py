"""Data containers shared by the ImageKit services and handler."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

# Fields a terminal operation may project into its return value
RETURN_KEYS = (
    'name', 'path', 'full_path', 'size', 'original_size', 'url', 'extension',
    'mime_type', 'width', 'height', 'disk', 'hash', 'created_at',
)


@dataclass(frozen=True)
class Dimensions:
    """Pixel box; either side may be None."""
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["Dimensions"]:
        if value is None:
            return None
        if isinstance(value, Dimensions):
            return value
        if isinstance(value, Mapping):
            return cls(width=value.get('width'), height=value.get('height'))
        width, height = value
        return cls(width=width, height=height)

    def is_empty(self) -> bool:
        return not self.width and not self.height

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {'width': self.width, 'height': self.height}


@dataclass
class UploadedImage:
    """An upload waiting to be persisted.

    Backed either by a local temp file (``path``) or by in-memory ``content``.
    """
    original_name: str
    path: Optional[Path] = None
    content: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: Union[str, Path], original_name: Optional[str] = None) -> "UploadedImage":
        file_path = Path(path)
        return cls(original_name=original_name or file_path.name, path=file_path)

    @classmethod
    def from_bytes(cls, content: bytes, original_name: str) -> "UploadedImage":
        return cls(original_name=original_name, content=content)

    @property
    def extension(self) -> str:
        """Declared extension, lowercased, without the dot."""
        return os.path.splitext(self.original_name)[1].lstrip('.').lower()

    @property
    def size(self) -> int:
        """Declared size in bytes."""
        if self.content is not None:
            return len(self.content)
        if self.path is not None and self.path.is_file():
            return self.path.stat().st_size
        return 0

    def is_valid(self) -> bool:
        if self.content is not None:
            return len(self.content) > 0
        return self.path is not None and self.path.is_file() and os.access(self.path, os.R_OK)

    def read(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is None:
            raise OSError(f"Upload {self.original_name} has no backing file")
        return self.path.read_bytes()


class HandlerState(Enum):
    """Lifecycle of an ``ImageHandler``."""
    IDLE = "idle"
    CONFIGURED = "configured"
    PROCESSING = "processing"


@dataclass
class WatermarkSpec:
    """Overlay settings. A spec with no fields set means "no watermark"."""
    image_path: Optional[str] = None
    position: Optional[str] = None
    opacity: Optional[int] = None
    x: Optional[int] = None
    y: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["WatermarkSpec"]:
        if not data:
            return None
        return cls(
            image_path=data.get('image_path', data.get('image')),
            position=data.get('position'),
            opacity=data.get('opacity'),
            x=data.get('x'),
            y=data.get('y'),
            width=data.get('width'),
            height=data.get('height'),
        )

    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class PipelineConfig:
    """Accumulated fluent configuration for one handler."""
    saved_path: str
    disk: str
    image_name: Optional[str] = None
    extension: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    aspect_ratio: bool = True
    watermark: Optional[WatermarkSpec] = None
    compress: bool = True
    compression_ratio: Optional[int] = None
    multi_size: Optional[List[str]] = None

    def copy(self) -> "PipelineConfig":
        return replace(
            self,
            watermark=replace(self.watermark) if self.watermark else None,
            multi_size=list(self.multi_size) if self.multi_size is not None else None,
        )

    def options(self) -> Dict[str, Any]:
        """Resolved option set published with the ``saving`` event."""
        return {
            'dimensions': self.dimensions.to_dict() if self.dimensions else None,
            'watermark': self.watermark.to_dict() if self.watermark else None,
            'compress': self.compress,
            'resize': list(self.multi_size) if self.multi_size else None,
        }


@dataclass
class StoredImageResult:
    """Metadata computed from the final stored state of one image."""
    name: str
    path: str
    full_path: str
    size: float
    original_size: float
    url: str
    extension: str
    mime_type: str
    width: Optional[int]
    height: Optional[int]
    disk: str
    hash: Optional[str]
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def project(self, return_keys: List[str]) -> Union[str, Any, Dict[str, Any]]:
        """Select the requested fields.

        A single key returns that value alone (falling back to the name when
        the key is unknown or has no value); several keys return a mapping of
        the available ones, in request order.
        """
        available = {key: value for key, value in self.to_dict().items() if value is not None}

        if len(return_keys) == 1:
            return available.get(return_keys[0], self.name)

        return {key: available[key] for key in return_keys if key in available}
