"""
Shared fixtures for the ImageKit test suite.

Provides isolated disks under a temporary base path, a configuration
pointing at them, Pillow-generated uploads and an event recorder.
"""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from PIL import Image

from imagekit.config import Config, DiskConfig
from imagekit.events import EventDispatcher
from imagekit.exceptions import NotFound
from imagekit.handler import ImageHandler
from imagekit.models import UploadedImage
from imagekit.storage import Disk, DiskManager
from imagekit.utils.logging import LogConfig


# ============================================================================
# Image helpers
# ============================================================================

def image_bytes(
    size: Tuple[int, int] = (800, 600),
    color=(180, 40, 40),
    image_format: str = 'JPEG',
    mode: str = 'RGB',
) -> bytes:
    """Encode a solid-colour image in memory."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, image_format)
    return buffer.getvalue()


def open_image(content: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(content))
    img.load()
    return img


class MemoryDisk(Disk):
    """Disk without a filesystem behind it."""

    def __init__(self, name: str):
        super().__init__(name)
        self.objects: Dict[str, bytes] = {}

    def put(self, path, content):
        self.objects[path] = bytes(content)

    def get(self, path):
        if path not in self.objects:
            raise NotFound(path)
        return self.objects[path]

    def exists(self, path):
        return path in self.objects

    def delete(self, path):
        return self.objects.pop(path, None) is not None

    def url(self, path):
        return f"memory://{path}"

    def size(self, path):
        return len(self.get(path))


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    """Keep library logging out of test output."""
    LogConfig.reset()
    LogConfig.setup_logging(level="OFF")
    yield
    LogConfig.reset()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir):
    """Configuration whose disks all live under the temporary directory."""
    config = Config.from_dict({'storage': {'base_path': str(temp_dir)}})
    config.storage.disks['signed'] = DiskConfig(
        root=str(temp_dir / 'storage' / 'signed'),
        url='https://cdn.example.com/files',
        secret='test-secret',
    )
    return config


@pytest.fixture
def disks(test_config):
    return DiskManager(test_config)


@pytest.fixture
def public_disk(disks):
    return disks.disk('public')


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def recorded_events(dispatcher) -> List[object]:
    """Every event published through ``dispatcher``, in order."""
    events: List[object] = []
    dispatcher.subscribe(None, events.append)
    return events


@pytest.fixture
def handler(test_config, disks, dispatcher):
    return ImageHandler(test_config, disks, dispatcher)


@pytest.fixture
def make_upload(temp_dir):
    """Factory writing a Pillow image to disk and wrapping it as an upload."""
    incoming = temp_dir / 'incoming'
    incoming.mkdir(exist_ok=True)

    def _make(
        name: str = 'test.jpg',
        size: Tuple[int, int] = (800, 600),
        color=(180, 40, 40),
        mode: str = 'RGB',
        original_name: Optional[str] = None,
    ) -> UploadedImage:
        path = incoming / name
        Image.new(mode, size, color).save(path)
        return UploadedImage.from_path(path, original_name)

    return _make


@pytest.fixture
def stored_watermark(public_disk):
    """A 20x10 opaque red watermark stored on the public disk."""
    public_disk.put('watermark.png', image_bytes((20, 10), (255, 0, 0, 255), 'PNG', 'RGBA'))
    return 'watermark.png'
