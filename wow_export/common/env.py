"""Environment variable loading utilities.

Centralizes .env file loading so every entry point sees the same values.
"""

import os
from functools import cache

from dotenv import load_dotenv

from wow_export.constants.config import ENV_PATH


@cache
def load_project_env() -> None:
    """Load config/.env once for the entire project.

    Variables already present in the process environment win over the file.
    """
    load_dotenv(ENV_PATH)


def get_env(key: str, default: str = None) -> str:
    """Get environment variable, loading .env if needed.

    Args:
        key: Environment variable name
        default: Default value if not found

    Returns:
        Environment variable value or default
    """
    load_project_env()
    return os.getenv(key, default)
