"""Shared fixtures for point-cli tests."""

import json
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
import requests
from loguru import logger

from pointcli.api import API_URL
from pointcli.config import ConfigStore


def make_response(body: Any = None, status: int = 200, url: str = API_URL) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.reason = "OK" if status < 400 else "Bad Request"
    r.url = url
    r.encoding = "utf-8"
    r.headers["Content-Type"] = "application/json"
    r._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return r


def make_session(routes: Dict[str, requests.Response]) -> MagicMock:
    """Session whose GET answers by path relative to the API URL."""
    session = MagicMock(spec=requests.Session)

    def _get(url, **kwargs):
        path = url[len(API_URL):] if url.startswith(API_URL) else url
        if path not in routes:
            return make_response({"message": f"Unknown route {path}"}, status=404, url=url)
        return routes[path]

    session.get.side_effect = _get
    return session


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger.remove()


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "point" / "config.toml")


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def devices_payload():
    return {
        "devices": [
            {
                "device_id": "abc123",
                "description": "Living Room",
                "offline": False,
                "active": True,
                "last_heard_from_at": "2024-01-05T10:30:00",
            },
            {
                "device_id": "def456",
                "description": "Kitchen",
                "offline": True,
                "active": False,
                "last_heard_from_at": "2024-01-04T08:15:00",
            },
        ]
    }


@pytest.fixture
def temperature_payload():
    return {
        "values": [
            {"value": 19.2, "datetime": "2024-01-05T09:00:00"},
            {"value": 19.8456, "datetime": "2024-01-05T10:30:00"},
        ]
    }


@pytest.fixture
def events_payload():
    return {
        "events": [
            {"type": "door:opened", "created_at": "2024-01-05T10:30:00", "text_params": [{"value": "Kitchen"}, {"value": "x"}]},
            {"type": "temperature_high", "created_at": "2024-01-05T09:00:00", "text_params": []},
        ]
    }
