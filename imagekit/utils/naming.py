"""Base filename generation for stored images.

Names never carry an extension; callers append it.
"""

import hashlib
import re
import secrets
import string
import time
import unicodedata
import uuid
from enum import Enum
from typing import Any, Callable, Union

from .logging import get_logger

logger = get_logger("imagekit.naming")

_ALPHABET = string.ascii_letters + string.digits


class NamingStrategy(Enum):
    """Built-in naming strategies."""
    DEFAULT = "default"
    UUID = "uuid"
    HASH = "hash"
    TIMESTAMP = "timestamp"

    @classmethod
    def parse(cls, value: Union[str, "NamingStrategy", None]) -> "NamingStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown naming strategy {value!r}, using default")
            return cls.DEFAULT


NameGenerator = Callable[[Any], str]


def random_string(length: int) -> str:
    """Random alphanumeric string, safe in URLs and file names."""
    return ''.join(secrets.choice(_ALPHABET) for _ in range(length))


def slugify(text: str, separator: str = '-') -> str:
    """ASCII, lowercase, URL-safe slug of ``text``."""
    normalized = unicodedata.normalize('NFKD', str(text)).encode('ascii', 'ignore').decode('ascii')
    normalized = normalized.replace('@', f'{separator}at{separator}').lower()
    normalized = re.sub(r'[^a-z0-9\s_-]', '', normalized.replace('_', separator))
    normalized = re.sub(r'[\s_-]+', separator, normalized)
    return normalized.strip(separator)


def _default_name() -> str:
    return f"{slugify('image')}_{int(time.time())}_{random_string(20)}"


def _uuid_name() -> str:
    return str(uuid.uuid4())


def _hash_name(upload) -> str:
    content = upload.read()
    return hashlib.md5(content + str(int(time.time())).encode('ascii')).hexdigest()


def _timestamp_name() -> str:
    return f"{int(time.time())}_{random_string(16)}"


def generate_name(upload, strategy: Union[str, NamingStrategy, NameGenerator, None] = None) -> str:
    """Generate a base filename for ``upload``.

    Args:
        upload: The pending upload (its bytes feed the ``hash`` strategy)
        strategy: A ``NamingStrategy``, its string value, or a callable
            ``(upload) -> str`` for custom naming

    Returns:
        Base name without extension
    """
    if callable(strategy) and not isinstance(strategy, (str, NamingStrategy)):
        return str(strategy(upload))

    resolved = NamingStrategy.parse(strategy or NamingStrategy.DEFAULT)
    if resolved == NamingStrategy.UUID:
        return _uuid_name()
    if resolved == NamingStrategy.HASH:
        return _hash_name(upload)
    if resolved == NamingStrategy.TIMESTAMP:
        return _timestamp_name()
    return _default_name()
