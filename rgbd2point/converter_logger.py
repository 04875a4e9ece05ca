"""
Converter Logger Module

Console logging is available as soon as the logger exists, so settings
loading is already reported; ``configure`` then applies the configured
level and optional log file.
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'  # e.g. 2024-05-01 12:00:00 - rgbd2point.pipeline - INFO - Extracted to point cloud.


def parse_level(level) -> int:
    """Accept a logging level number or name; unknown names mean INFO."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    return level if isinstance(level, int) else logging.INFO


class ConverterLogger:
    """Owns the handlers of the package logger for one conversion run"""

    def __init__(self, name="rgbd2point", log_file=None, level=logging.INFO):
        self.logger = logging.getLogger(name)
        self.formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        # Replace handlers left over from a previous run
        self.logger.handlers.clear()

        self.console_handler = logging.StreamHandler(sys.stdout)
        self.console_handler.setFormatter(self.formatter)
        self.logger.addHandler(self.console_handler)
        self.file_handler = None

        self.configure(level=level, log_file=log_file)

    def configure(self, level=logging.INFO, log_file=None):
        """Set the level of every handler and attach a log file if given."""
        level = parse_level(level)
        self.logger.setLevel(level)
        self.console_handler.setLevel(level)

        if log_file and self.file_handler is None:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_handler = logging.FileHandler(log_path)
            self.file_handler.setFormatter(self.formatter)
            self.logger.addHandler(self.file_handler)

        if self.file_handler is not None:
            self.file_handler.setLevel(level)

    def info(self, message):
        self.logger.info(message)

    def warning(self, message):
        self.logger.warning(message)

    def error(self, message):
        self.logger.error(message)

    def close(self):
        """Flush and detach all handlers"""
        for handler in list(self.logger.handlers):
            handler.flush()
            handler.close()
            self.logger.removeHandler(handler)
        self.file_handler = None
