from __future__ import annotations

import dataclasses
import re
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Union

import requests
from rich.console import Console
from rich.markup import escape

from .config import DeviceRecord
from .errors import NoDataError

DATE_FORMAT = "%H:%M %d/%m/%Y"


@dataclasses.dataclass(frozen=True)
class Sensor:
    endpoint: str
    label: str
    unit: str = ""
    decimals: Optional[int] = None


SENSORS: Dict[str, Sensor] = {
    "temp": Sensor("temperature", "Temp", "°C", decimals=2),
    "humidity": Sensor("humidity", "Humidity", "%"),
    "sound": Sensor("sound_avg_levels", "Avg sound"),
    "light": Sensor("part_als", "Avg light"),
    "lightir": Sensor("part_als_ir", "Avg light IR"),
    "pressure": Sensor("pressure", "Avg pressure"),
}


@dataclasses.dataclass(frozen=True)
class SensorSample:
    value: Any
    timestamp: Optional[datetime]


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def format_date(value: Union[str, datetime, None], tz: Optional[tzinfo] = None) -> str:
    """Format a timestamp as ``HH:MM DD/MM/YYYY``.

    Timezone-aware values are converted to ``tz`` (local time by default).
    Unparseable strings are returned as given.
    """
    try:
        dt = parse_datetime(value)
    except ValueError:
        return str(value)
    if dt is None:
        return "-"
    if dt.tzinfo is not None:
        dt = dt.astimezone(tz)
    return dt.strftime(DATE_FORMAT)


def format_value(value: Any, decimals: Optional[int] = None) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)
    if decimals is not None:
        value = round(value, decimals)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def latest_sample(values: Optional[Iterable[Dict[str, Any]]]) -> SensorSample:
    # API returns samples oldest first
    items = list(values or [])
    if not items:
        raise NoDataError()
    newest = items[-1]
    if not isinstance(newest, dict) or newest.get("value") is None:
        raise NoDataError()
    return SensorSample(value=newest["value"], timestamp=parse_datetime(newest.get("datetime")))


# Acronyms, capitalised or lower-case words and digit runs
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def prettify_event_type(s: str) -> str:
    """``door:opened:remotely`` -> ``Door Opened Remotely``."""
    words = _WORD_RE.findall(s.replace(":", " "))
    return " ".join(w[:1].upper() + w[1:] for w in words)


# --- Console output ---
def print_sensor(console: Console, device_name: str, sensor: Sensor, sample: SensorSample) -> None:
    console.print(f"Point: [green]{escape(device_name)}[/green]")
    value = format_value(sample.value, sensor.decimals)
    console.print(f"{sensor.label}: [green]{escape(value)}{sensor.unit}[/green]")
    console.print(f"Time: [green]{format_date(sample.timestamp)}[/green]")


def sensor_json(device: DeviceRecord, sensor: Sensor, sample: SensorSample) -> Dict[str, Any]:
    value = sample.value
    if sensor.decimals is not None and isinstance(value, (int, float)):
        value = round(value, sensor.decimals)
    return {
        "device": {"id": device.id, "name": device.name},
        "sensor": sensor.endpoint,
        "value": value,
        "unit": sensor.unit or None,
        "datetime": sample.timestamp.isoformat() if sample.timestamp else None,
    }


def _mark(flag: bool) -> str:
    return "✔" if flag else "✗"


def print_devices(console: Console, devices: List[Dict[str, Any]], verbose: bool = False) -> None:
    for i, device in enumerate(devices):
        if i:
            console.print()
        console.print(f"Name: [green]{escape(str(device.get('description', '')))}[/green]")
        console.print(f"ID: [green]{escape(str(device.get('device_id', '')))}[/green]")
        if verbose:
            console.print(f"Online: [green]{_mark(not device.get('offline'))}[/green]")
            console.print(f"Active: [green]{_mark(bool(device.get('active')))}[/green]")
            console.print(f"Last seen: [green]{format_date(device.get('last_heard_from_at'))}[/green]")


def event_device(event: Dict[str, Any]) -> Optional[str]:
    params = event.get("text_params") or []
    if params and isinstance(params[0], dict) and params[0].get("value") is not None:
        return str(params[0]["value"])
    return None


def print_timeline(console: Console, events: List[Dict[str, Any]]) -> None:
    # Events arrive newest first
    console.print("[green]→ Present[/green]")
    for event in events:
        console.print("[green]↓[/green]")
        console.print(f"Date:   [green]{format_date(event.get('created_at'))}[/green]")
        device = event_device(event)
        if device is not None:
            console.print(f"Device: [green]{escape(device)}[/green]")
        console.print(f"Event:  [green]{escape(prettify_event_type(str(event.get('type', ''))))}[/green]")
    console.print("[green]→ Past[/green]")


def timeline_json(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "created_at": e.get("created_at"),
            "device": event_device(e),
            "type": e.get("type"),
            "event": prettify_event_type(str(e.get("type", ""))),
        }
        for e in events
    ]


def print_response(console: Console, r: Optional[requests.Response]) -> None:
    """Dump a raw HTTP response for ``--debug``."""
    if r is None:
        return
    try:
        body: Any = r.json()
    except ValueError:
        body = r.text
    console.print({
        "url": r.url,
        "status": r.status_code,
        "reason": r.reason,
        "headers": dict(r.headers),
        "elapsed_ms": round(r.elapsed.total_seconds() * 1000, 1) if r.elapsed is not None else None,
        "body": body,
    })
