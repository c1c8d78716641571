"""Logging configuration for polar_toolkit."""

import logging
import sys
from pathlib import Path
from typing import Optional

from polar_toolkit.config import Config

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class LevelFormatter(logging.Formatter):
    """Formatter that writes WARNING as WARN, like the download log always has."""

    LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}

    def format(self, record):
        original = record.levelname
        record.levelname = self.LEVEL_NAMES.get(original, original)
        try:
            return super().format(record)
        finally:
            record.levelname = original


def get_logger(
    name: str = "polar_toolkit",
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Get a configured logger instance.

    Every record is appended to the download log file. The CLI prints its own
    status lines, so records only reach the console with ``verbose``.
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers if they already exist
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))

    # Console handler
    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(LevelFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(console_handler)

    # File handler
    log_file = Path(log_file or Config.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(LevelFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger
