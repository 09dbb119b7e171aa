"""Export WhoOwesWho sheets to CSV."""

from .common.errors import ConfigError, DecodeError, ExportError, FetchError, WriteError
from .common.models import ExpenseItem, NameRegistry, Split
from .export.csv_export import ExportConfig, run_export

__all__ = [
    "ConfigError",
    "DecodeError",
    "ExportConfig",
    "ExpenseItem",
    "ExportError",
    "FetchError",
    "NameRegistry",
    "Split",
    "WriteError",
    "run_export",
]
