"""Image codec helpers for ImageKit.

Wraps the Pillow primitives the services share: decoding stored bytes,
mapping file extensions to encoder formats, aspect-ratio aware target size
computation, anchor placement and re-encoding that preserves the original
container format.
"""

import io
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..exceptions import InvalidInput
from .logging import get_logger

logger = get_logger("imagekit.image_processing")


class ImageFormat(Enum):
    """Encoder formats we re-encode to."""
    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"


class WatermarkPosition(Enum):
    """Watermark anchor positions."""
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    CENTER = "center"

    @classmethod
    def values(cls):
        return [position.value for position in cls]


EXTENSION_FORMATS: Dict[str, ImageFormat] = {
    'jpg': ImageFormat.JPEG,
    'jpeg': ImageFormat.JPEG,
    'png': ImageFormat.PNG,
    'webp': ImageFormat.WEBP,
}

MIME_TYPES: Dict[str, str] = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'svg': 'image/svg+xml',
    'bmp': 'image/bmp',
    'ico': 'image/x-icon',
}

DEFAULT_QUALITY = 90


def extension_of(path: str) -> str:
    """Lowercased extension of ``path`` without the dot."""
    return PurePosixPath(path).suffix.lstrip('.').lower()


def mime_type_for(extension: str) -> str:
    """MIME type for an extension, ``application/octet-stream`` when unknown."""
    return MIME_TYPES.get((extension or '').lower(), 'application/octet-stream')


def format_for(path: str) -> Optional[ImageFormat]:
    """Encoder format for the extension of ``path``; None lets the codec decide."""
    return EXTENSION_FORMATS.get(extension_of(path))


def decode(content: bytes, source: str = '<bytes>') -> Image.Image:
    """Decode image bytes into a fully loaded Pillow image.

    Raises:
        InvalidInput: if the bytes are not a decodable image
    """
    try:
        img = Image.open(io.BytesIO(content))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Failed to decode image {source}: {e}")
        raise InvalidInput(f"File is not a readable image: {source}") from e
    return img


def probe_dimensions(content: bytes) -> Optional[Tuple[int, int]]:
    """Return (width, height) without decoding pixel data, or None if unknown."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def target_size(
    original: Tuple[int, int],
    width: Optional[int],
    height: Optional[int],
    keep_aspect: bool,
) -> Tuple[int, int]:
    """Compute the resize target for the requested box.

    With ``keep_aspect`` the image is scaled to fit inside the box; an omitted
    side is derived from the other one. Without it the image is stretched and
    an omitted side keeps its original length. A zero side counts as omitted.
    """
    orig_w, orig_h = original
    width = width or None
    height = height or None
    if width is None and height is None:
        return orig_w, orig_h

    if not keep_aspect:
        return max(1, int(width or orig_w)), max(1, int(height or orig_h))

    ratio = orig_w / orig_h
    if width is not None and height is not None:
        new_w = int(width)
        new_h = int(round(new_w / ratio))
        if new_h > height:
            new_h = int(height)
            new_w = int(round(new_h * ratio))
    elif width is not None:
        new_w = int(width)
        new_h = int(round(new_w / ratio))
    else:
        new_h = int(height)
        new_w = int(round(new_h * ratio))

    return max(1, new_w), max(1, new_h)


def resize(img: Image.Image, width: Optional[int], height: Optional[int], keep_aspect: bool = True) -> Image.Image:
    """Resize to the requested box, returning a new image."""
    size = target_size(img.size, width, height, keep_aspect)
    if size == img.size:
        return img.copy()
    return img.resize(size, Image.Resampling.LANCZOS)


def anchor_position(
    canvas: Tuple[int, int],
    overlay: Tuple[int, int],
    position: WatermarkPosition,
    x: int,
    y: int,
) -> Tuple[int, int]:
    """Top-left paste coordinate for ``overlay`` at ``position`` offset inward by (x, y)."""
    canvas_w, canvas_h = canvas
    wm_w, wm_h = overlay

    if position == WatermarkPosition.TOP_LEFT:
        return x, y
    if position == WatermarkPosition.TOP_RIGHT:
        return canvas_w - wm_w - x, y
    if position == WatermarkPosition.BOTTOM_LEFT:
        return x, canvas_h - wm_h - y
    if position == WatermarkPosition.CENTER:
        return (canvas_w - wm_w) // 2 + x, (canvas_h - wm_h) // 2 + y
    return canvas_w - wm_w - x, canvas_h - wm_h - y


def _flatten(img: Image.Image) -> Image.Image:
    """Convert to RGB, compositing transparency onto white."""
    if img.mode in ('RGBA', 'LA', 'P'):
        if img.mode == 'P':
            img = img.convert('RGBA')
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1] if img.mode in ('RGBA', 'LA') else None)
        return background
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


def encode(
    img: Image.Image,
    path: str,
    quality: Optional[int] = None,
    fallback_format: Optional[str] = None,
) -> bytes:
    """Encode ``img`` in the container implied by ``path``'s extension.

    Unrecognized extensions keep the source image's own format.
    """
    image_format = format_for(path)
    save_format = image_format.value if image_format else (fallback_format or img.format or 'PNG')
    quality = DEFAULT_QUALITY if quality is None else max(0, min(100, int(quality)))

    save_kwargs = {}
    if save_format == 'JPEG':
        img = _flatten(img)
        save_kwargs = {'quality': quality, 'optimize': True}
    elif save_format == 'PNG':
        # PNG is lossless; quality has no bearing on the zlib level
        save_kwargs = {'compress_level': 9, 'optimize': True}
    elif save_format == 'WEBP':
        if img.mode not in ('RGB', 'RGBA'):
            img = img.convert('RGBA' if 'A' in img.mode or img.mode == 'P' else 'RGB')
        save_kwargs = {'quality': quality, 'method': 6}

    buffer = io.BytesIO()
    img.save(buffer, save_format, **save_kwargs)
    return buffer.getvalue()
