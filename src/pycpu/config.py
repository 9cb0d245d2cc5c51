"""Command-line configuration for the pycpu server."""

import argparse
from collections.abc import Sequence
from dataclasses import dataclass

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Settings for one server process."""

    host: str = "0.0.0.0"
    port: int = 3000
    sample_interval: float = 0.5  # seconds between CPU samples
    push_interval: float = 1.0  # seconds between live fragment pushes
    live: bool = True  # WebSocket push on /cpu-usage, else one fragment per request
    log_level: str = "info"


def parse_args(argv: Sequence[str] | None = None) -> ServerConfig:
    """Build a ServerConfig from command-line flags."""
    defaults = ServerConfig()
    parser = argparse.ArgumentParser(
        prog="pycpu",
        description="Serve live per-core CPU usage over HTTP and WebSocket.",
    )
    parser.add_argument("--host", default=defaults.host, help="address to listen on")
    parser.add_argument("--port", type=int, default=defaults.port, help="port to listen on")
    parser.add_argument(
        "--sample-interval",
        type=float,
        default=defaults.sample_interval,
        help="seconds between CPU samples (default: %(default)s)",
    )
    parser.add_argument(
        "--push-interval",
        type=float,
        default=defaults.push_interval,
        help="seconds between live updates (default: %(default)s)",
    )
    parser.add_argument(
        "--pull",
        action="store_true",
        help="serve /cpu-usage as a plain HTTP fragment polled by the page",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=defaults.log_level)
    args = parser.parse_args(argv)

    if args.sample_interval <= 0 or args.push_interval <= 0:
        parser.error("intervals must be positive")

    return ServerConfig(
        host=args.host,
        port=args.port,
        sample_interval=args.sample_interval,
        push_interval=args.push_interval,
        live=not args.pull,
        log_level=args.log_level,
    )
