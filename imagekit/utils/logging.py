"""Logging configuration for ImageKit.

Provides centralized logging setup with proper formatting,
size-rotated log files and unified logger naming.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import threading
from pathlib import Path
from typing import Optional, Union


def _normalize_logger_name(name: Optional[str]) -> Optional[str]:
    """Return a clean logger name without forcing an ImageKit prefix."""

    if name is None:
        return None

    normalized = name.strip().lstrip(".")
    return normalized or None


class LogConfig:
    """Centralized logging configuration."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    ROOT_LOGGER = "imagekit"
    DEFAULT_LEVEL = INFO
    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    LOG_DIR = Path(os.environ.get("IMAGEKIT_LOG_DIR", Path.cwd() / "storage" / "logs"))
    LOG_FILE = "imagekit.log"
    MAX_BYTES = 10 * 1024 * 1024
    BACKUP_COUNT = 5

    _initialised = False
    _init_lock = threading.Lock()

    @classmethod
    def _resolve_level(cls, level: Optional[Union[str, int]]) -> Optional[int]:
        if level is None:
            return cls.DEFAULT_LEVEL
        if isinstance(level, int):
            return level
        text = str(level).strip().upper()
        if not text:
            return cls.DEFAULT_LEVEL
        if text in {"OFF", "NONE", "DISABLED", "DISABLE"}:
            return None
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARN": logging.WARNING,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(text, cls.DEFAULT_LEVEL)

    @classmethod
    def setup_logging(
        cls,
        level: Optional[Union[str, int]] = None,
        log_file: Union[bool, str, Path] = False,
        console: bool = True,
        stream=None,
        format_string: Optional[str] = None,
        date_format: Optional[str] = None,
    ) -> None:
        """Setup logging ONLY for the imagekit logger, never touch root logger.

        Host applications own the root logger; we only configure our own
        'imagekit' logger hierarchy and let records propagate upwards.
        """
        with cls._init_lock:
            if cls._initialised:
                return

            if level is None and os.environ.get("IMAGEKIT_LOGGING_DISABLED") == "1":
                level = logging.CRITICAL

            resolved_level = cls._resolve_level(level)
            format_string = format_string or cls.DEFAULT_FORMAT
            date_format = date_format or cls.DEFAULT_DATE_FORMAT

            formatter = logging.Formatter(format_string, date_format)

            ik_logger = logging.getLogger(cls.ROOT_LOGGER)
            ik_logger.setLevel(resolved_level or logging.CRITICAL)
            ik_logger.handlers.clear()
            ik_logger.propagate = True

            if resolved_level is None:
                cls._initialised = True
                return

            if console:
                console_handler = logging.StreamHandler(stream or sys.stdout)
                console_handler.setLevel(resolved_level)
                console_handler.setFormatter(formatter)
                ik_logger.addHandler(console_handler)

            log_path = None
            file_enabled = bool(log_file)
            requested_path: Optional[Path] = None
            if isinstance(log_file, (str, Path)):
                requested_path = Path(log_file)
                file_enabled = True

            if file_enabled:
                try:
                    candidate = requested_path or (cls.LOG_DIR / cls.LOG_FILE)
                    candidate.parent.mkdir(parents=True, exist_ok=True)
                    file_handler = logging.handlers.RotatingFileHandler(
                        candidate,
                        maxBytes=cls.MAX_BYTES,
                        backupCount=cls.BACKUP_COUNT,
                    )
                    file_handler.setLevel(resolved_level)
                    file_handler.setFormatter(formatter)
                    ik_logger.addHandler(file_handler)
                    log_path = candidate
                except OSError as exc:
                    ik_logger.warning("imagekit.logging file handler disabled: %s", exc)

            cls._configure_module_loggers()

            ik_logger.debug("ImageKit logging initialized")
            ik_logger.debug("Log level: %s", logging.getLevelName(resolved_level))
            if log_path:
                ik_logger.debug("Log file: %s", log_path)

            cls._initialised = True

    @classmethod
    def _configure_module_loggers(cls) -> None:
        logging.getLogger("PIL").setLevel(logging.WARNING)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        normalized = _normalize_logger_name(name) or name or cls.ROOT_LOGGER
        logger = logging.getLogger(normalized)

        if os.environ.get("IMAGEKIT_LOGGING_DISABLED") == "1":
            logger.setLevel(logging.CRITICAL)

        return logger

    @classmethod
    def reset(cls) -> None:
        """Drop our handlers so ``setup_logging`` can run again."""
        with cls._init_lock:
            ik_logger = logging.getLogger(cls.ROOT_LOGGER)
            for handler in ik_logger.handlers[:]:
                ik_logger.removeHandler(handler)
                handler.close()
            cls._initialised = False


def get_logger(name: str) -> logging.Logger:
    if not LogConfig._initialised:
        LogConfig.setup_logging()
    return LogConfig.get_logger(name)


def setup_logging(**kwargs) -> None:
    LogConfig.setup_logging(**kwargs)
