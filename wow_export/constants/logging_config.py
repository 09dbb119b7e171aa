"""Logging configuration for the application."""
import logging
from logging.handlers import RotatingFileHandler

from wow_export.common.env import get_env
from wow_export.constants.config import LOG_BACKUP_COUNT, LOG_MAX_BYTES

# Configure the package logger
LOG = logging.getLogger("wow_export")

# Console handler writes to stderr, the logger level decides what gets through
console_handler = logging.StreamHandler()

# Create formatter and add it to the handlers
formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
console_handler.setFormatter(formatter)

# Add the handlers to the logger
LOG.addHandler(console_handler)
LOG.setLevel(get_env("LOG_LEVEL", "INFO"))


def set_verbose(verbose: bool) -> None:
    """Switch verbose (DEBUG) output on or off.

    Turning it off restores the level from LOG_LEVEL, read from config/.env
    when the process environment does not set it.
    """
    LOG.setLevel(logging.DEBUG if verbose else get_env("LOG_LEVEL", "INFO"))


def setup_file_logging(log_file_path, max_bytes=LOG_MAX_BYTES, backup_count=LOG_BACKUP_COUNT):
    """Configure file logging with rotation.
    
    Args:
        log_file_path: Path to the log file
        max_bytes: Maximum size of log file before rotation (default: 5MB)
        backup_count: Number of backup log files to keep (default: 5)

    Returns:
        The handler that was added, so callers can detach it again
    """
    file_handler = RotatingFileHandler(
        log_file_path,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setFormatter(formatter)
    LOG.addHandler(file_handler)
    return file_handler
