#!/usr/bin/env python3
"""
Logging for the ``ringbox`` logger tree.

Warnings and errors go to stderr through rich. Everything from DEBUG up
goes to a daily rotating file once ``configure`` has been given a
directory, which the configuration manager does as soon as it is loaded
(``logging.directory`` and ``logging.level``).
"""

import logging
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from .exceptions import ConfigurationError

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_FILE_BYTES = 5 * 1024 * 1024
KEPT_FILES = 3


def resolve_level(level: Union[str, int]) -> int:
    """Numeric level for ``level``, given as a number or a name like ``"debug"``"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ConfigurationError(f"Unknown log level: {level}", config_key="logging.level")
    return value


class RingboxLogger:
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if RingboxLogger._initialized:
            return

        self.logger = logging.getLogger("ringbox")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.logger.handlers.clear()

        self.console_handler = RichHandler(console=Console(stderr=True), show_path=False)
        self.console_handler.setLevel(logging.WARNING)
        self.logger.addHandler(self.console_handler)

        self.file_handler: Optional[RotatingFileHandler] = None
        self.logs_dir: Optional[Path] = None

        RingboxLogger._initialized = True

    @property
    def log_file(self) -> Optional[Path]:
        if self.file_handler is None:
            return None
        return Path(self.file_handler.baseFilename)

    def configure(self, directory: Union[str, Path], level: Union[str, int] = "INFO") -> Path:
        """
        Send the file log to ``directory`` and set the level of the tree

        Raises:
            ConfigurationError: For an unknown level or a directory that cannot be created
        """
        numeric = resolve_level(level)
        logs_dir = Path(directory).expanduser()

        if self.file_handler is None or logs_dir != self.logs_dir:
            try:
                logs_dir.mkdir(parents=True, exist_ok=True)
                handler = RotatingFileHandler(
                    logs_dir / f"ringbox_{datetime.now():%Y%m%d}.log",
                    maxBytes=MAX_FILE_BYTES,
                    backupCount=KEPT_FILES,
                    encoding="utf-8",
                )
            except OSError as e:
                raise ConfigurationError(f"Cannot write logs to {logs_dir}: {e}",
                                         config_key="logging.directory") from e

            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            if self.file_handler is not None:
                self.logger.removeHandler(self.file_handler)
                self.file_handler.close()
            self.logger.addHandler(handler)
            self.file_handler = handler
            self.logs_dir = logs_dir

        self.logger.setLevel(numeric)
        return self.log_file

    def get_logger(self, name=None):
        if name:
            return logging.getLogger(f"ringbox.{name}")
        return self.logger

    def set_level(self, level):
        self.logger.setLevel(resolve_level(level))

    def clear_old_logs(self, days=7) -> int:
        """Delete rotated log files untouched for ``days``; returns how many went"""
        if self.logs_dir is None:
            return 0

        cutoff = time.time() - days * 86400
        removed = 0
        for path in self.logs_dir.glob("ringbox_*.log*"):
            if self.log_file is not None and path == self.log_file:
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError as e:
                self.logger.warning(f"Could not remove old log {path}: {e}")
        if removed:
            self.logger.debug(f"Removed {removed} old log files from {self.logs_dir}")
        return removed


logger = RingboxLogger()
