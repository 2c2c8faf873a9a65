# config.py
import argparse
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .errors import ConfigError
from .interface import LINK_MODES
from .peer_table import STALE_AFTER, SWEEP_INTERVAL
from .transport import DEFAULT_HOST, DEFAULT_PORT


@dataclass
class BridgeConfig:
    interface: str
    mode: str = "tap"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_host: str = "127.0.0.1"
    api_port: Optional[int] = None
    log_level: str = "INFO"
    sweep_interval: float = SWEEP_INTERVAL
    stale_after: float = STALE_AFTER


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netbridge",
        description="Bridge a local Ethernet link to remote peers over UDP",
    )
    parser.add_argument(
        "--interface",
        "-i",
        default=environ.get("INTERFACE"),
        help="Local link interface name (default: $INTERFACE)",
    )
    parser.add_argument("--mode", choices=LINK_MODES, default="tap", help="Create a tap device or capture an existing interface")
    parser.add_argument("--host", default=DEFAULT_HOST, help="UDP listen address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="UDP listen port")
    parser.add_argument("--api-host", default="127.0.0.1")
    parser.add_argument("--api-port", type=int, default=None, help="Serve the status API on this port")
    parser.add_argument("--log-level", default=environ.get("LOG_LEVEL", "INFO"), help="TRACE, DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--sweep-interval", type=float, default=SWEEP_INTERVAL, help="Seconds between stale peer checks")
    parser.add_argument("--stale-after", type=float, default=STALE_AFTER, help="Seconds of silence before a peer is forgotten")
    return parser


def parse_args(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> BridgeConfig:
    if environ is None:
        environ = os.environ
    args = build_parser(environ).parse_args(argv)

    if not args.interface:
        raise ConfigError("INTERFACE not specified")
    if args.sweep_interval <= 0 or args.stale_after <= 0:
        raise ConfigError("--sweep-interval and --stale-after must be positive")
    if not 0 <= args.port <= 65535:
        raise ConfigError(f"invalid port: {args.port}")
    if args.api_port is not None and not 0 <= args.api_port <= 65535:
        raise ConfigError(f"invalid API port: {args.api_port}")

    return BridgeConfig(
        interface=args.interface,
        mode=args.mode,
        host=args.host,
        port=args.port,
        api_host=args.api_host,
        api_port=args.api_port,
        log_level=args.log_level,
        sweep_interval=args.sweep_interval,
        stale_after=args.stale_after,
    )
