"""Parsing and formatting helpers shared by the exporter."""

from decimal import Decimal
from typing import Dict, Optional, Tuple

import pandas as pd
import yaml

from wow_export.common.errors import ConfigError
from wow_export.constants.logging_config import LOG
from wow_export.constants.whooweswho import (
    BOOK_AND_SHEET_PATTERN,
    DEFAULT_API_BASE,
    NAME_OVERRIDE_PATTERN,
    ROWS_ENDPOINT_TEMPLATE,
    URL_EXAMPLE,
)


def load_yaml(path):
    with open(path, "r") as f:
        return yaml.safe_load(f)


def parse_name_overrides(text: Optional[str]) -> Dict[int, str]:
    """Parse "id->name,id->name" into a mapping.

    Segments that do not look like id->name are ignored.

    Raises:
        ConfigError: If a matched id cannot be converted to an integer
    """
    names = {}
    for raw_id, name in NAME_OVERRIDE_PATTERN.findall(text or ""):
        try:
            participant_id = int(raw_id)
        except ValueError as e:
            raise ConfigError(f'Invalid participant id "{raw_id}" in names') from e
        names[participant_id] = name
        LOG.debug('registered name "%s" for id "%d"', name, participant_id)
    return names


def parse_extra_headers(text: Optional[str]) -> Dict[str, str]:
    """Parse "Name:Value,Name:Value" into request headers.

    Each segment is split on its first colon, so values may contain colons.

    Raises:
        ConfigError: If a segment has no colon or an empty header name
    """
    headers = {}
    for segment in (text or "").split(","):
        if not segment.strip():
            continue
        name, sep, value = segment.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ConfigError(f'Invalid request header "{segment}" (expected Name:Value)')
        headers[name] = value.strip()
    return headers


def extract_book_and_sheet(url: Optional[str]) -> Tuple[str, str]:
    """Extract the book and sheet ids from a browser or API url.

    Raises:
        ConfigError: If the url contains no /<book>/<sheet>/ pair
    """
    match = BOOK_AND_SHEET_PATTERN.search(url or "")
    if not match:
        raise ConfigError(
            f'Could not extract book/sheet from url: "{url or ""}" '
            f'(provide via param "url", e.g. "{URL_EXAMPLE}")'
        )
    return match.group(1), match.group(2)


def build_rows_url(book: str, sheet: str, api_base: str = DEFAULT_API_BASE) -> str:
    return ROWS_ENDPOINT_TEMPLATE.format(api_base=api_base.rstrip("/"), book=book, sheet=sheet)


def format_amount(value: Decimal) -> str:
    return f"{value:.2f}"


def format_time(timestamp: Optional[pd.Timestamp]) -> str:
    """Render a timestamp as ISO-8601, writing UTC as "Z"."""
    if timestamp is None or pd.isna(timestamp):
        return ""
    text = timestamp.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text
