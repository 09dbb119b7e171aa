import json
import logging
from unittest.mock import MagicMock

import pytest

from wow_export.common import env
from wow_export.constants.config import ENV_API_BASE, ENV_HEADERS, ENV_NAMES, ENV_URL
from wow_export.constants.logging_config import LOG, console_handler


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer .env values out of the tests."""
    for key in (ENV_URL, ENV_NAMES, ENV_HEADERS, ENV_API_BASE):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo level changes and file handlers added by main()."""
    env.load_project_env.cache_clear()
    yield
    env.load_project_env.cache_clear()
    LOG.setLevel(logging.INFO)
    for handler in list(LOG.handlers):
        if handler is not console_handler:
            LOG.removeHandler(handler)
            handler.close()


@pytest.fixture
def lunch_row():
    """Lunch paid by participant 1, split evenly with participant 2."""
    return {
        "description": " Lunch ",
        "amount": 10.0,
        "payor_id": 1,
        "split": [{"id": 1, "value": 5.0}, {"id": 2, "value": 5.0}],
        "ctime": "2024-01-01T12:00:00Z",
    }


@pytest.fixture
def sample_rows(lunch_row):
    """Newest first, as the Row endpoint returns them."""
    return [
        {
            "description": "Taxi, airport",
            "amount": 42.5,
            "payor_id": 3,
            "split": [{"id": 2, "value": 20}, {"id": 3, "value": 22.5}],
            "ctime": "2024-01-03T08:30:00Z",
        },
        {
            "description": "Deposit",
            "amount": 100,
            "payor_id": 2,
            "split": None,
            "ctime": "2024-01-02T09:00:00Z",
        },
        lunch_row,
    ]


def make_session(payload=None, body=None):
    """Fake requests.Session whose get() answers with the given JSON payload or raw body."""
    if body is None:
        body = json.dumps(payload).encode("utf-8")
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.iter_content.return_value = [body]
    session = MagicMock()
    session.get.return_value = response
    return session


@pytest.fixture
def fake_session():
    return make_session
