from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from . import __version__
from .account import authenticate, fetch_devices, require_token, resolve_device
from .api import API_URL, Client
from .config import ConfigStore, env_default
from .errors import NotAuthenticatedError, PointError, RemoteError
from .render import (
    SENSORS,
    latest_sample,
    print_devices,
    print_response,
    print_sensor,
    print_timeline,
    sensor_json,
    timeline_json,
)

SENSOR_ALIASES = {
    "sound": ["noise"],
    "light": ["ambient"],
    "lightir": ["ambientir"],
}

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


def _setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<level>{level: <8}</level> {name}: {message}")


def _default_log_level() -> str:
    # argparse does not check choices against defaults
    level = env_default("POINT_LOG_LEVEL", "WARNING").upper()
    return level if level in LOG_LEVELS else "WARNING"


def _store(args: argparse.Namespace) -> ConfigStore:
    return ConfigStore(args.config)


def _client(args: argparse.Namespace, store: ConfigStore) -> Client:
    # Token is read once; later writes to the store do not affect this client
    return Client(base_url=args.url, token=require_token(store), timeout=args.timeout)


def _dump_json(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_auth(args: argparse.Namespace) -> int:
    store = _store(args)
    client_id = args.client_id or Prompt.ask("Client ID")
    username = args.username or Prompt.ask("Username")
    password = Prompt.ask("Password", password=True)
    client = Client(base_url=args.url, timeout=args.timeout)
    authenticate(store, client, client_id, username, password, Console())
    return 0


def cmd_logout(args: argparse.Namespace) -> int:
    store = _store(args)
    store.clear()
    Console().print("[green]Logged out. Stored token and devices removed.[/green]")
    return 0


def cmd_fetch(args: argparse.Namespace) -> int:
    store = _store(args)
    fetch_devices(store, _client(args, store), Console())
    return 0


def cmd_devices(args: argparse.Namespace) -> int:
    store = _store(args)
    client = _client(args, store)
    devices = client.get_devices()
    console = Console()
    if args.debug:
        print_response(console, client.last_response)
    if args.json:
        _dump_json(devices)
        return 0
    print_devices(console, devices, verbose=args.verbose)
    if not devices:
        console.print("[yellow]No Points found on this account.[/yellow]")
    return 0


def cmd_sensor(args: argparse.Namespace) -> int:
    store = _store(args)
    client = _client(args, store)
    sensor = SENSORS[args.sensor]
    point = resolve_device(store, args.device)
    console = Console()
    values = client.get_sensor(point.id, sensor.endpoint)
    if args.debug:
        print_response(console, client.last_response)
    sample = latest_sample(values)
    if args.json:
        _dump_json(sensor_json(point, sensor, sample))
        return 0
    print_sensor(console, point.name, sensor, sample)
    return 0


def cmd_timeline(args: argparse.Namespace) -> int:
    store = _store(args)
    client = _client(args, store)
    events = client.get_events(limit=args.limit, order="desc")
    console = Console()
    if args.debug:
        print_response(console, client.last_response)
    if args.json:
        _dump_json(timeline_json(events))
        return 0
    print_timeline(console, events)
    return 0


def _add_output_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("-d", "--debug", action="store_true", help="Full response inspection")
    ap.add_argument("--json", action="store_true", help="Output JSON instead of formatted text")


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="point", description="Minut Point CLI")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--url", default=env_default("POINT_API_URL", API_URL), help="API base URL")
    p.add_argument("--timeout", type=float, default=float(env_default("POINT_TIMEOUT", "10")), help="HTTP timeout seconds")
    p.add_argument("--config", default=None, help="Config file path (default: ~/.config/point-cli/config.toml)")
    p.add_argument("--log-level", default=_default_log_level(), choices=LOG_LEVELS,
                   type=str.upper, help="Diagnostic log level (stderr)")
    sub = p.add_subparsers(dest="cmd", required=True)

    ap = sub.add_parser("auth", help="Authenticates user & generates access token")
    ap.add_argument("--client-id", help="Client ID (prompted if omitted)")
    ap.add_argument("--username", help="Account email (prompted if omitted)")
    ap.set_defaults(func=cmd_auth)

    lp = sub.add_parser("logout", help="Deletes the stored access token and devices")
    lp.set_defaults(func=cmd_logout)

    fp = sub.add_parser("fetch", help="Fetch new devices that have been installed")
    fp.set_defaults(func=cmd_fetch)

    dp = sub.add_parser("devices", help="Gets all Points of user")
    dp.add_argument("-v", "--verbose", action="store_true", help="Displays verbose details for devices")
    _add_output_args(dp)
    dp.set_defaults(func=cmd_devices)

    for name, sensor in SENSORS.items():
        unit = f" ({sensor.unit})" if sensor.unit else ""
        sp = sub.add_parser(
            name,
            aliases=SENSOR_ALIASES.get(name, []),
            help=f"Gets the {sensor.label.lower()}{unit} of a Point (defaults to the first Point found)",
        )
        sp.add_argument("device", nargs="?", default=None, help="Point name")
        _add_output_args(sp)
        sp.set_defaults(func=cmd_sensor, sensor=name)

    tp = sub.add_parser("timeline", help="Retrieve your homes timeline (defaults to 10 events)")
    tp.add_argument("-l", "--limit", type=_positive_int, default=10, help="How many events to retrieve")
    _add_output_args(tp)
    tp.set_defaults(func=cmd_timeline)

    return p


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)
    err = Console(stderr=True)
    try:
        return args.func(args)
    except NotAuthenticatedError as e:
        err.print(f"[yellow]{escape(str(e))}[/yellow]")
        return 1
    except RemoteError as e:
        # Server rejections are reported, not fatal
        if getattr(args, "debug", False):
            print_response(Console(), e.response)
        err.print(f"[yellow]{escape(e.message)}[/yellow]")
        return 0
    except PointError as e:
        err.print(f"[red]{escape(str(e))}[/red]")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
