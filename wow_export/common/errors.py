"""Errors raised by the exporter.

Every failure is fatal: the CLI logs the message and exits non-zero.
"""


class ExportError(Exception):
    """Base class for all exporter failures."""


class ConfigError(ExportError):
    """Invalid or missing configuration (url, names, headers)."""


class FetchError(ExportError):
    """The rows could not be retrieved from the API."""


class DecodeError(FetchError):
    """The API answered but the body is not a JSON array of rows."""


class WriteError(ExportError):
    """The CSV output could not be written."""
