"""Configuration-related constants and paths.

This module contains the file paths, environment variable names and defaults
used when resolving the exporter configuration.
"""
from pathlib import Path

# Project directory structure
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Configuration files - check both the current directory and the project root
def cfg_paths():
    """Config file candidates, in lookup order; cwd entries resolve at call time."""
    return [
        Path("config.yaml").resolve(),  # Current working directory
        Path("config/config.yaml").resolve(),  # config/ subdirectory of cwd
        PROJECT_ROOT / "config.yaml",  # Project root
        PROJECT_ROOT / "config" / "config.yaml"  # Project config/ directory
    ]

ENV_PATH = PROJECT_ROOT / "config" / ".env"

DEFAULT_OUTPUT_FILE = "expenses.csv"

# Environment variables
ENV_URL = "WHOOWESWHO_URL"
ENV_NAMES = "WHOOWESWHO_NAMES"
ENV_HEADERS = "WHOOWESWHO_HEADERS"
ENV_API_BASE = "WHOOWESWHO_API_BASE"

# Log file rotation
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5
