"""Configuration management for ImageKit.

Settings are grouped into dataclass sections and resolved in three layers:
built-in defaults, an optional JSON file, then ``IMAGEKIT_*`` environment
variables.
"""

import os
import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .models import Dimensions


def _default_base_path() -> str:
    return str(Path(os.environ.get("IMAGEKIT_BASE_PATH", os.getcwd())).resolve())


@dataclass
class DiskConfig:
    """A named storage disk."""

    driver: str = "local"
    root: str = ""
    url: Optional[str] = None
    # Enables signed temporary URLs on this disk
    secret: Optional[str] = None


@dataclass
class StorageConfig:
    """Storage configuration settings."""

    disk: str = "public"
    default_saved_path: str = "uploads/images"
    watermark_storage_path: str = "watermarks"
    base_path: str = field(default_factory=_default_base_path)
    # Directory holding publicly served assets (watermark fallback lookups)
    public_path: Optional[str] = None
    disks: Dict[str, DiskConfig] = field(default_factory=dict)

    def __post_init__(self):
        if not self.public_path:
            self.public_path = str(Path(self.base_path) / "public")

        self.disks = {
            name: disk if isinstance(disk, DiskConfig) else DiskConfig(**disk)
            for name, disk in self.disks.items()
        }

        base = Path(self.base_path)
        self.disks.setdefault("local", DiskConfig(root=str(base / "storage" / "app")))
        self.disks.setdefault(
            "public", DiskConfig(root=str(base / "storage" / "app" / "public"), url="/storage")
        )


@dataclass
class ValidationConfig:
    """Upload acceptance limits."""

    allowed_extensions: List[str] = field(default_factory=lambda: ["jpg", "jpeg", "png", "webp"])
    max_file_size: Optional[int] = None  # KB
    max_dimensions: Dimensions = field(default_factory=Dimensions)

    def __post_init__(self):
        self.allowed_extensions = [ext.lower() for ext in self.allowed_extensions]
        self.max_dimensions = Dimensions.from_value(self.max_dimensions) or Dimensions()


@dataclass
class ProcessingConfig:
    """Pipeline defaults."""

    naming_strategy: Union[str, Callable[[Any], str]] = "default"
    dimensions: Dimensions = field(default_factory=Dimensions)
    aspect_ratio: bool = True
    enable_multi_size: bool = False
    multi_size_options: List[str] = field(default_factory=lambda: ["small", "medium", "large"])
    multi_size_dimensions: Dict[str, Dimensions] = field(default_factory=lambda: {
        "small": Dimensions(300, 300),
        "medium": Dimensions(600, 600),
        "large": Dimensions(1024, 1024),
    })
    compression_quality: Optional[int] = None  # None = size based
    return_keys: List[str] = field(default_factory=lambda: ["name"])

    def __post_init__(self):
        self.dimensions = Dimensions.from_value(self.dimensions) or Dimensions()
        self.multi_size_dimensions = {
            label: Dimensions.from_value(dims) for label, dims in (self.multi_size_dimensions or {}).items()
        }


@dataclass
class WatermarkConfig:
    """Default watermark settings."""

    enabled: bool = False
    image: Optional[str] = "watermark.png"
    position: str = "bottom-right"
    opacity: int = 50
    x: int = 10
    y: int = 10
    width: Optional[int] = None
    height: Optional[int] = None

    def spec(self) -> Dict[str, Any]:
        return {
            "image_path": self.image,
            "position": self.position,
            "opacity": self.opacity,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: str = "INFO"
    file: bool = False
    console: bool = True


# Flat option names accepted in config files, mapped to their section
_FLAT_KEYS = {
    "disk": ("storage", "disk"),
    "default_saved_path": ("storage", "default_saved_path"),
    "watermark_storage_path": ("storage", "watermark_storage_path"),
    "base_path": ("storage", "base_path"),
    "public_path": ("storage", "public_path"),
    "disks": ("storage", "disks"),
    "allowed_extensions": ("validation", "allowed_extensions"),
    "max_file_size": ("validation", "max_file_size"),
    "max_dimensions": ("validation", "max_dimensions"),
    "naming_strategy": ("processing", "naming_strategy"),
    "dimensions": ("processing", "dimensions"),
    "aspect_ratio": ("processing", "aspect_ratio"),
    "aspectRatio": ("processing", "aspect_ratio"),
    "enable_multi_size": ("processing", "enable_multi_size"),
    "multi_size_options": ("processing", "multi_size_options"),
    "multi_size_dimensions": ("processing", "multi_size_dimensions"),
    "compression_quality": ("processing", "compression_quality"),
    "return_keys": ("processing", "return_keys"),
    "enable_watermark": ("watermark", "enabled"),
}

_SECTIONS = {
    "storage": StorageConfig,
    "validation": ValidationConfig,
    "processing": ProcessingConfig,
    "watermark": WatermarkConfig,
    "logging": LoggingConfig,
}


class Config:
    """Main configuration class."""

    def __init__(self, config_file: Optional[str] = None, load_env: bool = True):
        """Initialize configuration.

        Args:
            config_file: Path to configuration file; searched for when omitted
            load_env: Apply ``IMAGEKIT_*`` environment overrides
        """
        self.config_file = config_file or self._find_config_file()

        self.storage = StorageConfig()
        self.validation = ValidationConfig()
        self.processing = ProcessingConfig()
        self.watermark = WatermarkConfig()
        self.logging = LoggingConfig()

        if self.config_file and os.path.exists(self.config_file):
            self.load(self.config_file)

        if load_env:
            self._load_from_env()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], load_env: bool = False) -> "Config":
        """Build a configuration from a mapping, ignoring config files."""
        instance = cls.__new__(cls)
        instance.config_file = None
        instance._apply(data)
        if load_env:
            instance._load_from_env()
        return instance

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations.

        Returns:
            Path to config file or None
        """
        search_paths = [
            "imagekit.json",
            "config.json",
            os.path.expanduser("~/.imagekit/config.json"),
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        return None

    def load(self, config_file: str):
        """Load configuration from file.

        Args:
            config_file: Path to configuration file
        """
        with open(config_file, 'r') as f:
            data = json.load(f)

        self._apply(data)

    def _apply(self, data: Mapping[str, Any]):
        sections: Dict[str, Dict[str, Any]] = {name: {} for name in _SECTIONS}

        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, Mapping):
                sections[key].update(value)
            elif key == "watermark" and value is None:
                sections["watermark"]["image"] = None
            elif key in _FLAT_KEYS:
                section, attr = _FLAT_KEYS[key]
                sections[section][attr] = value

        # Watermark blocks may spell the image as image_path
        if "image_path" in sections["watermark"]:
            sections["watermark"]["image"] = sections["watermark"].pop("image_path")

        for name, section_cls in _SECTIONS.items():
            current = getattr(self, name, None)
            values = asdict(current) if current is not None else {}
            if name == "storage" and current is not None and "base_path" in sections[name]:
                # Default disks and public path follow a new base path
                values.pop("disks")
                values.pop("public_path")
            values.update(sections[name])
            allowed = {f.name for f in fields(section_cls)}
            setattr(self, name, section_cls(**{k: v for k, v in values.items() if k in allowed}))

    def save(self, config_file: Optional[str] = None):
        """Save configuration to file.

        Args:
            config_file: Path to configuration file
        """
        config_file = config_file or self.config_file
        if not config_file:
            config_file = "imagekit.json"

        with open(config_file, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve configuration values using dotted paths or flat option names."""
        if not key:
            return default

        if key in _FLAT_KEYS:
            section, attr = _FLAT_KEYS[key]
            return getattr(getattr(self, section), attr)

        current: Any = self
        for part in [part for part in key.split('.') if part]:
            if isinstance(current, dict):
                if part not in current:
                    return default
                current = current[part]
                continue

            if hasattr(current, part):
                current = getattr(current, part)
                continue

            return default

        return current

    def _load_from_env(self):
        """Load configuration from environment variables."""
        # Storage
        if "IMAGEKIT_DISK" in os.environ:
            self.storage.disk = os.environ["IMAGEKIT_DISK"]
        if "IMAGEKIT_DEFAULT_SAVED_PATH" in os.environ:
            self.storage.default_saved_path = os.environ["IMAGEKIT_DEFAULT_SAVED_PATH"]

        # Validation
        if "IMAGEKIT_MAX_FILE_SIZE" in os.environ:
            self.validation.max_file_size = int(os.environ["IMAGEKIT_MAX_FILE_SIZE"])

        # Processing
        if "IMAGEKIT_NAMING_STRATEGY" in os.environ:
            self.processing.naming_strategy = os.environ["IMAGEKIT_NAMING_STRATEGY"]
        if "IMAGEKIT_COMPRESSION_QUALITY" in os.environ:
            self.processing.compression_quality = int(os.environ["IMAGEKIT_COMPRESSION_QUALITY"])

        # Logging
        if "IMAGEKIT_LOG_LEVEL" in os.environ:
            self.logging.level = os.environ["IMAGEKIT_LOG_LEVEL"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Configuration dictionary
        """
        processing = asdict(self.processing)
        if callable(self.processing.naming_strategy):
            processing["naming_strategy"] = "custom"

        return {
            "storage": asdict(self.storage),
            "validation": asdict(self.validation),
            "processing": processing,
            "watermark": asdict(self.watermark),
            "logging": asdict(self.logging),
        }


# Global configuration instance
config = Config()
