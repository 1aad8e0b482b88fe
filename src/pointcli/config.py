from __future__ import annotations

import dataclasses
import json
import os
import tomllib
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger


def env_default(name: str, default: str) -> str:
    return os.environ.get(name, default)


CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".config", "point-cli")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.toml")


@dataclasses.dataclass(frozen=True)
class DeviceRecord:
    id: str
    name: str


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    # Non-ASCII stays literal UTF-8; TOML rejects surrogate-pair escapes and a raw DEL
    return json.dumps(str(value), ensure_ascii=False).replace("\x7f", "\\u007f")


def _is_table_array(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and bool(value) and all(isinstance(v, dict) for v in value)


def _dump(data: Dict[str, Any]) -> str:
    # Top-level keys must precede any [[table]] header
    lines: list[str] = []
    for key, value in data.items():
        if value is None or _is_table_array(value):
            continue
        lines.append(f"{key} = {_toml_value(value)}")
    for key, value in data.items():
        if not _is_table_array(value):
            continue
        for item in value:
            lines.append("")
            lines.append(f"[[{key}]]")
            for k, v in item.items():
                if v is not None:
                    lines.append(f"{k} = {_toml_value(v)}")
    lines.append("")
    return "\n".join(lines)


class ConfigStore:
    """Key-value store persisted as a single TOML file.

    The file is read on first access and rewritten in full by every
    ``set`` and ``clear``.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or env_default("POINT_CONFIG", CONFIG_PATH)
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is None:
            try:
                with open(self.path, "rb") as f:
                    self._data = tomllib.load(f)
            except FileNotFoundError:
                self._data = {}
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("Ignoring unreadable config {}: {}", self.path, e)
                self._data = {}
        return self._data

    def _save(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(_dump(self._load()))
        logger.debug("Wrote config {}", self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._load()[key] = value
        self._save()

    def clear(self) -> None:
        self._data = {}
        self._save()

    # --- Typed helpers ---
    @property
    def token(self) -> Optional[str]:
        return self.get("token") or None

    def devices(self) -> List[DeviceRecord]:
        out: List[DeviceRecord] = []
        for d in self.get("devices") or []:
            if isinstance(d, dict) and "id" in d:
                out.append(DeviceRecord(id=str(d["id"]), name=str(d.get("name", ""))))
        return out

    def set_devices(self, records: Iterable[DeviceRecord]) -> None:
        self.set("devices", [dataclasses.asdict(r) for r in records])
