import pytest
import requests

from conftest import make_response, make_session
from pointcli.api import API_URL, Client
from pointcli.errors import RemoteError


def test_bearer_header_and_url(devices_payload):
    session = make_session({"/devices": make_response(devices_payload)})
    client = Client(token="tok", session=session)
    devices = client.get_devices()
    assert [d["device_id"] for d in devices] == ["abc123", "def456"]
    url = session.get.call_args.args[0]
    assert url == f"{API_URL}/devices"
    assert session.get.call_args.kwargs["headers"] == {"Authorization": "Bearer tok"}


def test_token_request_is_unauthenticated():
    session = make_session({"/auth/token": make_response({"access_token": "new"})})
    client = Client(session=session)
    assert client.get_token("cid", "me@example.com", "pw") == {"access_token": "new"}
    kwargs = session.get.call_args.kwargs
    assert kwargs["headers"] == {}
    assert kwargs["params"] == {
        "client_id": "cid",
        "grant_type": "password",
        "username": "me@example.com",
        "password": "pw",
    }


def test_sensor_path(temperature_payload):
    session = make_session({"/devices/abc123/temperature": make_response(temperature_payload)})
    values = Client(token="tok", session=session).get_sensor("abc123", "temperature")
    assert values[-1]["value"] == 19.8456


def test_events_params(events_payload):
    session = make_session({"/events": make_response(events_payload)})
    events = Client(token="tok", session=session).get_events(limit=5)
    assert len(events) == 2
    assert session.get.call_args.kwargs["params"] == {"order": "desc", "limit": 5}


def test_server_message_surfaces():
    session = make_session({"/devices": make_response({"message": "Invalid token"}, status=401)})
    client = Client(token="bad", session=session)
    with pytest.raises(RemoteError) as exc:
        client.get_devices()
    assert exc.value.message == "Invalid token"
    assert exc.value.response.status_code == 401
    assert client.last_response is exc.value.response


def test_transport_error_wrapped():
    session = make_session({})
    session.get.side_effect = requests.ConnectionError("unreachable")
    with pytest.raises(RemoteError, match="unreachable"):
        Client(token="tok", session=session).get_devices()


def test_base_url_trailing_slash():
    client = Client(base_url="http://localhost:8000/")
    assert client._url("devices") == "http://localhost:8000/devices"
