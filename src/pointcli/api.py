from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from .errors import RemoteError

API_URL = "https://api.minut.com/draft1"


def _error_message(r: requests.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return r.text.strip() or f"HTTP {r.status_code} {r.reason or ''}".strip()


@dataclasses.dataclass
class Client:
    base_url: str = API_URL
    token: Optional[str] = None
    timeout: float = 10.0
    session: Optional[requests.Session] = None
    last_response: Optional[requests.Response] = dataclasses.field(default=None, repr=False)

    def _s(self) -> requests.Session:
        if self.session is None:
            self.session = requests.Session()
        return self.session

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url.rstrip('/')}{path}"

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = self._url(path)
        logger.debug("GET {}", url)
        try:
            r = self._s().get(url, params=params, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(str(e)) from e
        self.last_response = r
        logger.debug("{} -> {}", url, r.status_code)
        if not r.ok:
            raise RemoteError(_error_message(r), response=r)
        try:
            return r.json()
        except ValueError as e:
            raise RemoteError(f"Invalid JSON from {path}", response=r) from e

    # --- Auth ---
    def get_token(self, client_id: str, username: str, password: str) -> Dict[str, Any]:
        params = {
            "client_id": client_id,
            "grant_type": "password",
            "username": username,
            "password": password,
        }
        return self._get("/auth/token", params=params)

    # --- Devices ---
    def get_devices(self) -> List[Dict[str, Any]]:
        data = self._get("/devices")
        devices = data.get("devices") if isinstance(data, dict) else None
        return devices if isinstance(devices, list) else []

    # --- Sensors ---
    def get_sensor(self, device_id: str, endpoint: str) -> List[Dict[str, Any]]:
        data = self._get(f"/devices/{device_id}/{endpoint}")
        values = data.get("values") if isinstance(data, dict) else None
        return values if isinstance(values, list) else []

    # --- Timeline ---
    def get_events(self, limit: int = 10, order: str = "desc") -> List[Dict[str, Any]]:
        data = self._get("/events", params={"order": order, "limit": limit})
        events = data.get("events") if isinstance(data, dict) else None
        return events if isinstance(events, list) else []
