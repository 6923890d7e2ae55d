"""Path normalization for storage-relative image paths.

Caller-supplied paths must always be relative. Configured defaults may carry
legacy absolute paths, which are re-rooted against the known application roots
before being rejected.
"""

import re
from typing import Callable, Iterable, Optional, Union
from pathlib import Path
from urllib.parse import urlparse

from ..exceptions import InvalidInput
from .logging import get_logger

logger = get_logger("imagekit.paths")

DEFAULT_SAVED_PATH = 'uploads/images'

_DRIVE_PATTERN = re.compile(r'^[a-zA-Z]:[\\/]')
_SLASHES_PATTERN = re.compile(r'/{2,}')


def is_absolute_path(path: str) -> bool:
    """True for POSIX absolute paths and Windows drive paths."""
    return path.startswith('/') or bool(_DRIVE_PATTERN.match(path))


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme in ('http', 'https', 'ftp', 's3') and parsed.netloc)


def url_path(value: str) -> str:
    """Path component of a URL, or ``value`` unchanged when it is not a URL."""
    if is_url(value):
        return urlparse(value).path or value
    return value


class PathNormalizer:
    """Reduce paths to the safe relative form stored in ``saved_path``."""

    def __init__(
        self,
        validate: Callable[[str], None],
        roots: Optional[Iterable[Union[str, Path]]] = None,
    ):
        """
        Args:
            validate: Path validator raising ``InvalidInput`` on unsafe paths
            roots: Absolute application roots that configured paths may be
                re-rooted against, most specific first
        """
        self._validate = validate
        self._roots = [self._clean(str(root)).rstrip('/') for root in (roots or []) if root]

    @staticmethod
    def _clean(path: str) -> str:
        path = path.replace('\\', '/')
        if _DRIVE_PATTERN.match(path):
            return path[:3] + _SLASHES_PATTERN.sub('/', path[3:])
        return _SLASHES_PATTERN.sub('/', path)

    def _finish(self, path: str) -> str:
        path = self._clean(path.lstrip('/')).rstrip('/')
        self._validate(path)
        return path

    def normalize(self, path: str) -> str:
        """Normalize a caller-supplied path.

        Raises:
            InvalidInput: on absolute or otherwise unsafe paths
        """
        if is_url(path):
            path = url_path(path).lstrip('/')

        if is_absolute_path(path):
            raise InvalidInput(
                f"Absolute paths are not allowed. Please use a relative path instead. Provided path: {path}"
            )

        return self._finish(path)

    def normalize_configured(self, path: Optional[str]) -> str:
        """Normalize a configured default path, re-rooting legacy absolute paths."""
        if not path:
            return DEFAULT_SAVED_PATH

        if is_absolute_path(path):
            cleaned = self._clean(path)
            for root in self._roots:
                if cleaned.startswith(root + '/'):
                    relative = cleaned[len(root) + 1:]
                    if relative.startswith('public/'):
                        relative = relative[len('public/'):]
                    logger.debug(f"Re-rooted configured path {path} to {relative}")
                    return self._finish(relative)

            raise InvalidInput(
                "Absolute paths are not allowed in config. Please use a relative path instead. "
                f"Provided path: {path}. Use '{DEFAULT_SAVED_PATH}' instead of an absolute path."
            )

        return self._finish(path)
