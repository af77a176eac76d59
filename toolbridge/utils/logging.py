"""
Logging configuration and utilities.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)


def _file_handler(log_file: Path, max_file_size_mb: int, backup_count: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_file_size_mb * 1024 * 1024,
        backupCount=backup_count
    )


def setup_root_logger(log_file: Optional[Path] = None,
                      level: str = "INFO",
                      console_level: Optional[str] = None,
                      max_file_size_mb: int = 10,
                      backup_count: int = 5,
                      format_string: Optional[str] = None):
    """
    Set up the root logger for the application.

    The log file doubles as the "output channel" users are pointed to when
    an install fails, so it always records everything at ``level``.

    Args:
        log_file: Optional log file path
        level: Logging level
        console_level: Console threshold (defaults to ``level``)
        max_file_size_mb: Rotate the log file at this size
        backup_count: Rotated files to keep
        format_string: Log format (defaults to a format with file and line)
    """
    root_logger = logging.getLogger()

    # Clear any existing handlers
    root_logger.handlers.clear()

    root_logger.setLevel(getattr(logging, level.upper()))

    formatter = logging.Formatter(format_string or DETAILED_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(getattr(logging, (console_level or level).upper()))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = _file_handler(log_file, max_file_size_mb, backup_count)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
