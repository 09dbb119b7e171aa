"""Constants related to the WhoOwesWho bookkeeping API.

Endpoint templates, the patterns used to pull identifiers out of user input,
and the HTTP contract for the single request the exporter makes.
"""

import re

# Default API host, override with WHOOWESWHO_API_BASE
DEFAULT_API_BASE = "https://www.whooweswho.net"

# Rows of one sheet, newest first by creation time
ROWS_ENDPOINT_TEMPLATE = "{api_base}/api/Book/{book}/Sheet/{sheet}/Row?order=-ctime"

# Total time budget for the request, connect through last body byte
HTTP_TIMEOUT_SECONDS = 10

# Single-byte reads return as soon as data arrives, so each read is bounded by the time left
RESPONSE_CHUNK_SIZE = 1

# Matches the browser url ".../sheets/1234/6789/expenses" and the api url ".../Book/1234/Sheet/6789/Row"
BOOK_AND_SHEET_PATTERN = re.compile(r"/([0-9]+)(?:/Sheet)?/([0-9]+)/")

# "123456->Arnold,987654->Schwarz"
NAME_OVERRIDE_PATTERN = re.compile(r"([0-9]+)->([^,]+),?")

NAME_OVERRIDE_EXAMPLE = "123456->Arnold,987654->Schwarz"
HEADERS_EXAMPLE = "Cookie:session_cookie123,X-My-Header:42"
URL_EXAMPLE = "https://www.whooweswho.net/session#/sheets/1234/6789/expenses"


class RowFields:
    """JSON keys of a row returned by the Row endpoint."""

    DESCRIPTION = "description"
    AMOUNT = "amount"
    PAYER = "payor_id"
    SPLIT = "split"
    CTIME = "ctime"
    SPLIT_ID = "id"
    SPLIT_VALUE = "value"
