"""Exception types raised by ImageKit.

``InvalidInput`` covers every bad caller argument and is raised at the point of
the bad call (or at the start of a terminal operation). ``NotFound`` is kept
distinct for operations that require a stored object to exist.
"""


class ImageKitError(Exception):
    """Base exception for all ImageKit failures."""
    pass


class InvalidInput(ImageKitError, ValueError):
    """Bad caller input: malformed name, path, dimensions, watermark, upload."""
    pass


class NotFound(ImageKitError, FileNotFoundError):
    """A referenced storage object does not exist."""
    pass


class StorageError(ImageKitError):
    """Backend failure or a capability the disk driver does not support."""
    pass
