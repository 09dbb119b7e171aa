import itertools
import socket
import threading
import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
import requests

from wow_export.common import whooweswho_client
from wow_export.common.errors import DecodeError, FetchError
from wow_export.common.whooweswho_client import WhoOwesWhoClient, decode_rows
from wow_export.constants.whooweswho import HTTP_TIMEOUT_SECONDS


def test_get_rows_requests_sheet_newest_first(fake_session, sample_rows):
    session = fake_session(sample_rows)
    client = WhoOwesWhoClient(headers={"Cookie": "abc"}, session=session)

    items = client.get_rows("1234", "6789")

    session.get.assert_called_once()
    call = session.get.call_args
    assert call.args[0] == "https://www.whooweswho.net/api/Book/1234/Sheet/6789/Row?order=-ctime"
    assert call.kwargs["headers"] == {"Cookie": "abc"}
    assert call.kwargs["stream"] is True
    assert 0 < call.kwargs["timeout"] <= HTTP_TIMEOUT_SECONDS
    assert [item.payer_id for item in items] == [3, 2, 1]
    session.get.return_value.close.assert_called_once()


def test_custom_api_base(fake_session):
    session = fake_session([])
    client = WhoOwesWhoClient(api_base="http://localhost:8080", session=session)

    assert client.get_rows("1", "2") == []
    assert session.get.call_args.args[0] == "http://localhost:8080/api/Book/1/Sheet/2/Row?order=-ctime"


def test_network_error(fake_session):
    session = fake_session([])
    session.get.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(FetchError, match="connection refused"):
        WhoOwesWhoClient(session=session).get_rows("1", "2")


def test_timeout_is_fetch_error(fake_session):
    session = fake_session([])
    session.get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(FetchError):
        WhoOwesWhoClient(session=session).get_rows("1", "2")


def test_http_error_status(fake_session):
    session = fake_session([])
    session.get.return_value.raise_for_status.side_effect = requests.HTTPError("401 Client Error")

    with pytest.raises(FetchError, match="401"):
        WhoOwesWhoClient(session=session).get_rows("1", "2")


def test_slow_body_exceeds_total_timeout(fake_session, monkeypatch):
    session = fake_session(body=b"[]")
    clock = itertools.chain([0.0, 0.0], itertools.repeat(HTTP_TIMEOUT_SECONDS + 1.0))
    monkeypatch.setattr(whooweswho_client, "time", SimpleNamespace(monotonic=lambda: next(clock)))

    with pytest.raises(FetchError, match="timed out"):
        WhoOwesWhoClient(session=session).get_rows("1", "2")


def test_invalid_json_body(fake_session):
    session = fake_session(body=b"<html>login</html>")

    with pytest.raises(DecodeError):
        WhoOwesWhoClient(session=session).get_rows("1", "2")


def test_decode_rows_keeps_decimals():
    items = decode_rows(b'[{"amount": 0.1, "payor_id": 1, "split": [{"id": 1, "value": 0.1}]}]')

    assert items[0].amount == Decimal("0.1")
    assert items[0].splits[0].value == Decimal("0.1")


def test_decode_rows_requires_array():
    with pytest.raises(DecodeError, match="array"):
        decode_rows(b'{"rows": []}')


def test_context_manager_closes_session(fake_session):
    session = fake_session([])
    with WhoOwesWhoClient(session=session):
        pass
    session.close.assert_called_once()


@pytest.fixture
def trickling_server():
    """Start a local server that sends headers at once, then the body one byte per `delay` seconds."""
    servers = []

    def start(body: bytes, delay: float) -> str:
        listener = socket.create_server(("127.0.0.1", 0))
        stop = threading.Event()

        def serve():
            conn, _ = listener.accept()
            with conn:
                conn.recv(65536)
                conn.sendall(
                    b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                    b"Content-Length: %d\r\nConnection: close\r\n\r\n" % len(body)
                )
                for byte in body:
                    if stop.wait(delay):
                        return
                    try:
                        conn.sendall(bytes([byte]))
                    except OSError:
                        return

        thread = threading.Thread(target=serve, daemon=True)
        thread.start()
        servers.append((listener, stop, thread))
        return "http://127.0.0.1:%d" % listener.getsockname()[1]

    yield start

    for listener, stop, thread in servers:
        stop.set()
        thread.join(timeout=2)
        listener.close()


def test_trickled_body_is_cut_off_at_total_timeout(trickling_server):
    api_base = trickling_server(b"[]" + b" " * 13, delay=0.5)
    client = WhoOwesWhoClient(api_base=api_base, timeout=2)

    started = time.monotonic()
    with pytest.raises(FetchError):
        client.get_rows("1", "2")
    elapsed = time.monotonic() - started

    assert elapsed < 3


def test_body_within_budget_is_read(trickling_server):
    api_base = trickling_server(b'[{"amount": 1.5, "payor_id": 7}]', delay=0.001)

    items = WhoOwesWhoClient(api_base=api_base, timeout=5).get_rows("1", "2")

    assert [item.payer_id for item in items] == [7]
    assert items[0].amount == Decimal("1.5")
