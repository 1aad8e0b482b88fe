"""Token and device-cache operations shared by the CLI commands.

Each function takes the :class:`~pointcli.config.ConfigStore` it reads and
writes; nothing here holds global state.
"""
from __future__ import annotations

from typing import List, Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape

from .api import Client
from .config import ConfigStore, DeviceRecord
from .errors import NoDevicesError, NotAuthenticatedError, RemoteError


def require_token(store: ConfigStore) -> str:
    token = store.token
    if not token:
        raise NotAuthenticatedError()
    return token


def authenticate(store: ConfigStore, client: Client, client_id: str, username: str, password: str,
                 console: Optional[Console] = None) -> List[DeviceRecord]:
    """Exchange credentials for a token, store it, then refresh the device cache.

    ``client`` must not carry a token. A failed token request leaves the
    store untouched; a failed refresh keeps the new token.
    """
    console = console or Console()
    data = client.get_token(client_id, username, password)
    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise RemoteError("No access token in response", response=client.last_response)
    store.set("token", token)
    logger.info("Stored access token for {}", username)
    console.print("[green]Access token generated and saved![/green]")

    refresh_client = Client(base_url=client.base_url, token=token, timeout=client.timeout, session=client.session)
    return fetch_devices(store, refresh_client, console)


def fetch_devices(store: ConfigStore, client: Client, console: Optional[Console] = None) -> List[DeviceRecord]:
    """Replace the cached device list with the one reported by the API."""
    console = console or Console()
    console.print("[green]Fetching Points...[/green]")
    devices = client.get_devices()
    console.print(f"Found {len(devices)} Point{'s' if len(devices) != 1 else ''}")
    records: List[DeviceRecord] = []
    for d in devices:
        rec = DeviceRecord(id=str(d.get("device_id", "")), name=str(d.get("description", "")))
        console.print(f"Name: {escape(rec.name)}")
        records.append(rec)
    store.set_devices(records)
    logger.debug("Cached {} device(s)", len(records))
    return records


def resolve_device(store: ConfigStore, name: Optional[str] = None) -> DeviceRecord:
    """Return the cached device called ``name``, else the first cached device."""
    devices = store.devices()
    if not devices:
        raise NoDevicesError()
    if name is not None:
        for d in devices:
            if d.name == name:
                return d
        logger.debug("No cached device named {!r}; using {!r}", name, devices[0].name)
    return devices[0]
