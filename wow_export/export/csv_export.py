#!/usr/bin/env python3
"""Export the rows of a WhoOwesWho sheet to a CSV file.

Fetches every row of one sheet, names the participants, and writes one line
per row with a split column per participant.

Key features:
- Name overrides ("123456->Arnold") replace numeric participant ids
- Extra request headers (e.g. a session cookie) for private sheets
- Split columns in a stable order: overrides first, then ids as first seen
- Fail fast: any error aborts the export with a non-zero exit code
"""
# Standard library
import argparse
import sys
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

# Third-party
import pandas as pd

# Local application
from wow_export.common.env import get_env
from wow_export.common.errors import ConfigError, ExportError, WriteError
from wow_export.common.models import ExpenseItem, NameRegistry
from wow_export.common.utils import (
    extract_book_and_sheet,
    format_amount,
    format_time,
    load_yaml,
    parse_extra_headers,
    parse_name_overrides,
)
from wow_export.common.whooweswho_client import WhoOwesWhoClient
from wow_export.constants.config import (
    DEFAULT_OUTPUT_FILE,
    ENV_API_BASE,
    ENV_HEADERS,
    ENV_NAMES,
    ENV_URL,
    cfg_paths,
)
from wow_export.constants.export_columns import FIXED_COLUMNS, SPLIT_COLUMN_PREFIX
from wow_export.constants.logging_config import LOG, set_verbose, setup_file_logging
from wow_export.constants.whooweswho import (
    DEFAULT_API_BASE,
    HEADERS_EXAMPLE,
    NAME_OVERRIDE_EXAMPLE,
    URL_EXAMPLE,
)


@dataclass
class ExportConfig:
    """Everything a single export run needs."""

    url: str
    output: str = DEFAULT_OUTPUT_FILE
    names: Dict[int, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    skip_header: bool = False
    api_base: str = DEFAULT_API_BASE


def load_config_file() -> dict:
    """Load the first config.yaml found by cfg_paths(), or {} if there is none."""
    for path in cfg_paths():
        if path.exists():
            LOG.debug("Loading configuration from %s", path)
            config = load_yaml(path) or {}
            if not isinstance(config, dict):
                raise ConfigError(f"Configuration file {path} must contain a mapping")
            return config
    return {}


def _names_from_config(value) -> Dict[int, str]:
    if value is None:
        return {}
    if isinstance(value, str):
        return parse_name_overrides(value)
    if not isinstance(value, dict):
        raise ConfigError("'names' in config.yaml must be a mapping or an id->name string")
    names = {}
    for raw_id, name in value.items():
        try:
            names[int(raw_id)] = str(name)
        except ValueError as e:
            raise ConfigError(f'Invalid participant id "{raw_id}" in config.yaml names') from e
    return names


def _headers_from_config(value) -> Dict[str, str]:
    if value is None:
        return {}
    if isinstance(value, str):
        return parse_extra_headers(value)
    if not isinstance(value, dict):
        raise ConfigError("'headers' in config.yaml must be a mapping or a Name:Value string")
    return {str(name): str(header_value) for name, header_value in value.items()}


def resolve_config(args: argparse.Namespace, file_config: Optional[dict] = None) -> ExportConfig:
    """Merge CLI arguments, environment variables and config.yaml.

    CLI arguments win over environment variables, which win over config.yaml.
    Names from config.yaml are registered first so their columns come first.

    Raises:
        ConfigError: If no url is configured or a value cannot be parsed
    """
    if file_config is None:
        file_config = load_config_file()

    url = args.url or get_env(ENV_URL) or file_config.get("url")
    if not url:
        raise ConfigError(f'No sheet url given (provide via param "url", e.g. "{URL_EXAMPLE}")')

    names = _names_from_config(file_config.get("names"))
    names.update(parse_name_overrides(args.names or get_env(ENV_NAMES)))

    headers = _headers_from_config(file_config.get("headers"))
    headers.update(parse_extra_headers(args.headers or get_env(ENV_HEADERS)))

    return ExportConfig(
        url=url,
        output=args.output or file_config.get("output") or DEFAULT_OUTPUT_FILE,
        names=names,
        headers=headers,
        skip_header=bool(args.skip_header or file_config.get("skip_header", False)),
        api_base=get_env(ENV_API_BASE) or file_config.get("api_base") or DEFAULT_API_BASE,
    )


def discover_participants(items: Iterable[ExpenseItem], registry: NameRegistry) -> NameRegistry:
    """Give every payer and split recipient a name.

    Ids without an override are registered under their decimal form, in the
    order they are first seen.
    """
    for item in items:
        for participant_id in item.participant_ids():
            registry.ensure(participant_id)
    LOG.debug("Found the following involved persons: %s", registry.as_dict())
    return registry


def build_header(registry: NameRegistry) -> List[str]:
    header = [str(column) for column in FIXED_COLUMNS]
    header.extend(SPLIT_COLUMN_PREFIX + registry.name(pid) for pid in registry.ids())
    return header


def build_row(item: ExpenseItem, registry: NameRegistry) -> List[str]:
    """Render one item; split cells follow the registry's column order.

    The amount is not checked against the sum of the splits.
    """
    row = [
        format_time(item.timestamp),
        format_amount(item.amount),
        item.description.strip(),
        registry.name(item.payer_id),
    ]
    values = item.split_values()
    for participant_id in registry.ids():
        value = values.get(participant_id)
        row.append(format_amount(value) if value is not None else "")
    return row


def build_frame(items: List[ExpenseItem], registry: NameRegistry) -> pd.DataFrame:
    """One row per item, in the order the API returned them."""
    rows = [build_row(item, registry) for item in items]
    return pd.DataFrame(rows, columns=build_header(registry), dtype=str)


def write_csv(df: pd.DataFrame, path: str, skip_header: bool = False) -> None:
    """Write the frame as CSV.

    Raises:
        WriteError: If the file cannot be opened, written or flushed
    """
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            df.to_csv(f, index=False, header=not skip_header, lineterminator="\n")
    except OSError as e:
        raise WriteError(f"Could not write {path}: {e}") from e


def run_export(config: ExportConfig, client: Optional[WhoOwesWhoClient] = None) -> int:
    """Fetch, name and write the rows of the configured sheet.

    Args:
        config: Resolved export configuration
        client: Optional client, a new one is created from config otherwise

    Returns:
        Number of rows written
    """
    registry = NameRegistry(config.names)
    # Resolve the sheet before any network activity
    book, sheet = extract_book_and_sheet(config.url)

    if client is None:
        with WhoOwesWhoClient(api_base=config.api_base, headers=config.headers) as owned_client:
            items = owned_client.get_rows(book, sheet)
    else:
        items = client.get_rows(book, sheet)

    discover_participants(items, registry)
    for item in items:
        LOG.debug("%s", item.describe(registry))

    df = build_frame(items, registry)
    write_csv(df, config.output, skip_header=config.skip_header)

    LOG.info("Exported %d rows to file %s", len(items), config.output)
    return len(items)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export the rows of a WhoOwesWho sheet to CSV")
    parser.add_argument(
        "-output", "--output",
        dest="output",
        default=None,
        help=f"CSV output file (default: {DEFAULT_OUTPUT_FILE})"
    )
    parser.add_argument(
        "-url", "--url",
        dest="url",
        default=None,
        help=f'URL of the sheet, e.g. "{URL_EXAMPLE}" (or set {ENV_URL} env var)'
    )
    parser.add_argument(
        "-names", "--names",
        dest="names",
        default=None,
        help=f'Names to replace ids, e.g. "{NAME_OVERRIDE_EXAMPLE}"'
    )
    parser.add_argument(
        "-headers", "--headers",
        dest="headers",
        default=None,
        help=f'Additional request headers, e.g. "{HEADERS_EXAMPLE}"'
    )
    parser.add_argument(
        "-skip-header", "--skip-header",
        dest="skip_header",
        action="store_true",
        help="Skip the header line in the CSV"
    )
    parser.add_argument(
        "-v", "--verbose",
        dest="verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write logs to this file (rotated at 5MB)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script."""
    args = build_parser().parse_args(argv)

    set_verbose(args.verbose)
    if args.log_file:
        setup_file_logging(args.log_file)

    try:
        config = resolve_config(args)
        run_export(config)
    except ExportError as e:
        LOG.error("Error: %s", str(e))
        return 1
    except Exception as e:
        LOG.error("Error: %s", str(e), exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
