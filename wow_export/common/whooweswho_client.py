"""Client for the WhoOwesWho bookkeeping API.

Fetches all rows of one sheet with a single GET and decodes them into
ExpenseItem objects. There is no pagination and no retry: any failure is
raised to the caller.
"""

# Standard library
import json
import socket
import time
from decimal import Decimal
from typing import Dict, List, Optional

# Third-party
import requests

# Local application
from wow_export.common.errors import DecodeError, FetchError
from wow_export.common.models import ExpenseItem
from wow_export.common.utils import build_rows_url
from wow_export.constants.logging_config import LOG
from wow_export.constants.whooweswho import (
    DEFAULT_API_BASE,
    HTTP_TIMEOUT_SECONDS,
    RESPONSE_CHUNK_SIZE,
)


def decode_rows(body: bytes) -> List[ExpenseItem]:
    """Decode the Row endpoint's JSON array, keeping numbers as Decimal.

    Raises:
        DecodeError: If the body is not a JSON array of row objects
    """
    try:
        payload = json.loads(body, parse_float=Decimal)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"Could not decode response body: {e}") from e

    if not isinstance(payload, list):
        raise DecodeError(f"Expected a JSON array of rows, got {type(payload).__name__}")

    return [ExpenseItem.from_dict(row) for row in payload]


def _response_socket(response) -> Optional[socket.socket]:
    """Socket the streamed body is read from, or None when it cannot be reached.

    requests fixes the read timeout when the request is sent; bounding each body
    read by the time left needs the socket under urllib3 and http.client.
    """
    http_response = getattr(getattr(response, "raw", None), "_fp", None)
    reader = getattr(getattr(http_response, "fp", None), "raw", None)
    sock = getattr(reader, "_sock", None)
    return sock if isinstance(sock, socket.socket) else None


def _bound_next_read(sock: Optional[socket.socket], remaining: float) -> None:
    # http.client closes the socket once the last body byte is read
    if sock is not None and sock.fileno() != -1:
        sock.settimeout(remaining)


class WhoOwesWhoClient:
    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_base = api_base
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

        for name, value in self.headers.items():
            LOG.debug("Added request header %s=%s", name, value)

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def get_rows(self, book: str, sheet: str) -> List[ExpenseItem]:
        """Fetch every row of a sheet, newest first.

        Args:
            book: Book id
            sheet: Sheet id within the book

        Returns:
            Rows in the order the API returned them

        Raises:
            FetchError: On network failure, timeout or an HTTP error status
            DecodeError: If the body is not a JSON array of rows
        """
        url = build_rows_url(book, sheet, self.api_base)
        LOG.debug("query book=%s and sheet=%s via url: %s", book, sheet, url)
        body = self._get(url)
        return decode_rows(body)

    def _get(self, url: str) -> bytes:
        # The timeout covers the whole exchange, not just each socket operation
        deadline = time.monotonic() + self.timeout
        try:
            response = self.session.get(
                url, headers=self.headers, timeout=self._remaining(deadline, url), stream=True
            )
        except requests.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        try:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise FetchError(f"Request to {url} failed: {e}") from e

            sock = _response_socket(response)
            chunks = []
            try:
                _bound_next_read(sock, self._remaining(deadline, url))
                for chunk in response.iter_content(chunk_size=RESPONSE_CHUNK_SIZE):
                    _bound_next_read(sock, self._remaining(deadline, url))
                    chunks.append(chunk)
            except requests.RequestException as e:
                raise FetchError(f"Reading response from {url} failed: {e}") from e
        finally:
            response.close()

        return b"".join(chunks)

    def _remaining(self, deadline: float, url: str) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise FetchError(f"Request to {url} timed out after {self.timeout} seconds")
        return remaining
