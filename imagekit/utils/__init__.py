"""Utility helpers for ImageKit."""

from .logging import get_logger, setup_logging
from .naming import NamingStrategy, generate_name, slugify
from .paths import PathNormalizer

__all__ = ['get_logger', 'setup_logging', 'NamingStrategy', 'generate_name', 'slugify', 'PathNormalizer']
