#!/usr/bin/env python3
"""
speedwatch -- monitor internet speed and latency, push it to Prometheus remote write.

Usage::

    export SW_REMOTE_WRITE_USERNAME=me SW_REMOTE_WRITE_PASSWORD=secret
    python speedwatch.py                              # every 30 minutes, forever
    python speedwatch.py -i 5                         # every 5 minutes
    python speedwatch.py -r https://prom.example/api/v1/write
    python speedwatch.py --on-error continue          # survive failed cycles
    python speedwatch.py --repeat 1                   # single cycle, then exit
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Mapping, Optional, Sequence, Tuple

from pipeline import __version__
from pipeline.config import (
    ENV_LOG_LEVEL,
    ENV_PASSWORD,
    ENV_URL,
    ENV_USERNAME,
    Settings,
    load_config,
)
from pipeline.cycle import Cycle
from pipeline.delivery import DeliveryClient
from pipeline.errors import ConfigError, EncodingError, SpeedwatchError
from pipeline.request import Credentials
from pipeline.scheduler import ErrorPolicy, run_forever
from pipeline.wire import parse_endpoint
from probe.constants import (
    MAX_CONNECTIONS,
    MAX_DOWNLOAD_BYTES,
    MAX_PING_COUNT,
    MIN_CONNECTIONS,
    MIN_DOWNLOAD_BYTES,
    MIN_PING_COUNT,
)
from probe.source import MeasurementSource, SpeedtestSource
from ui.console import LOG_LEVELS, configure_logging, console, print_banner, print_error

logger = logging.getLogger("speedwatch")


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(settings: Settings, repeat: int = 0) -> None:
    """Raise ``ValueError`` if any setting is out of range."""
    if isinstance(settings.interval, bool) or not isinstance(settings.interval, int) or settings.interval < 1:
        raise ValueError("Interval must be a whole number of minutes, at least 1")
    if not MIN_PING_COUNT <= settings.ping_count <= MAX_PING_COUNT:
        raise ValueError(f"Ping count must be between {MIN_PING_COUNT} and {MAX_PING_COUNT}")
    if not MIN_DOWNLOAD_BYTES <= settings.download_bytes <= MAX_DOWNLOAD_BYTES:
        raise ValueError(
            f"Download size must be between {MIN_DOWNLOAD_BYTES} and {MAX_DOWNLOAD_BYTES} bytes"
        )
    if not MIN_CONNECTIONS <= settings.connections <= MAX_CONNECTIONS:
        raise ValueError(f"Connections must be between {MIN_CONNECTIONS} and {MAX_CONNECTIONS}")
    if settings.server_limit < 1:
        raise ValueError("Server limit must be at least 1")
    if repeat < 0:
        raise ValueError("--repeat must be >= 0")
    try:
        parse_endpoint(settings.remote_write_url)
    except EncodingError as exc:
        raise ValueError(str(exc)) from exc


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser(defaults: Mapping, environ: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="speedwatch",
        description=(
            "speedwatch will monitor your internet speed and latency "
            "and push it to prometheus remote write"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=str, metavar="FILE", help="JSON config file (default: ~/.speedwatch/config.json)")

    # Schedule
    parser.add_argument("-i", "--interval", type=int, default=defaults["interval"], metavar="MINUTES", help="Interval in minutes (default: 30)")
    parser.add_argument("--repeat", type=int, default=0, metavar="N", help="Stop after N cycles (default: 0, run forever)")
    parser.add_argument(
        "--on-error",
        choices=[p.value for p in ErrorPolicy],
        default=defaults["on_error"],
        help="Stop the process on a failed cycle, or log it and continue (default: stop)",
    )

    # Remote write
    parser.add_argument(
        "-r", "--remote-write-url",
        default=environ.get(ENV_URL) or defaults["remote_write_url"],
        metavar="URL",
        help=f"Remote write URL [env: {ENV_URL}]",
    )
    parser.add_argument(
        "-u", "--username-remote-write",
        default=environ.get(ENV_USERNAME),
        metavar="USER",
        help=f"Remote write username [env: {ENV_USERNAME}]",
    )
    parser.add_argument(
        "-p", "--password-remote-write",
        default=environ.get(ENV_PASSWORD),
        metavar="PASSWORD",
        help=f"Remote write password; prefer the environment [env: {ENV_PASSWORD}]",
    )
    parser.add_argument("--strict-status", action="store_true", default=defaults["strict_status"], help="Treat non-2xx responses as failed deliveries")

    # Measurement
    parser.add_argument("--ping-count", type=int, default=defaults["ping_count"], metavar="N", help="Latency samples per cycle (default: 25)")
    parser.add_argument("--download-bytes", type=int, default=defaults["download_bytes"], metavar="BYTES", help="Bytes downloaded per cycle (default: 10000000)")
    parser.add_argument("--connections", type=int, default=defaults["connections"], metavar="N", help="Parallel download streams (default: 1)")
    parser.add_argument("--server", type=int, default=defaults["server"], metavar="ID", help="Use a specific speedtest server by ID")
    parser.add_argument("--server-limit", type=int, default=defaults["server_limit"], metavar="N", help="Nearby servers probed for latency (default: 5)")

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=(environ.get(ENV_LOG_LEVEL) or defaults["log_level"]).upper(),
        help=f"Log level [env: {ENV_LOG_LEVEL}] (default: INFO)",
    )
    return parser


def parse_settings(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[Settings, int]:
    """Combine command line, environment and config file into ``Settings``.

    Returns the settings and the ``--repeat`` count.
    """
    environ = os.environ if environ is None else environ

    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=str)
    known, _ = pre.parse_known_args(argv)

    try:
        defaults = load_config(known.config)
    except ConfigError as exc:
        pre.error(str(exc))

    parser = build_parser(defaults, environ)
    args = parser.parse_args(argv)

    if not args.username_remote_write:
        parser.error(f"a remote write username is required (-u or {ENV_USERNAME})")
    if args.password_remote_write is None:
        parser.error(f"a remote write password is required (-p or {ENV_PASSWORD})")
    try:
        policy = ErrorPolicy(args.on_error)
    except ValueError:
        parser.error(f"invalid on_error value {args.on_error!r} (expected 'stop' or 'continue')")

    settings = Settings(
        remote_write_url=args.remote_write_url,
        credentials=Credentials(args.username_remote_write, args.password_remote_write),
        interval=args.interval,
        ping_count=args.ping_count,
        download_bytes=args.download_bytes,
        connections=args.connections,
        server=args.server,
        server_limit=args.server_limit,
        on_error=policy,
        strict_status=args.strict_status,
        log_level=args.log_level,
    )
    return settings, args.repeat


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

async def run(
    settings: Settings,
    repeat: int = 0,
    source: Optional[MeasurementSource] = None,
) -> None:
    """Open the delivery client and hand the cycle to the scheduler."""
    if source is None:
        source = SpeedtestSource(
            ping_count=settings.ping_count,
            download_bytes=settings.download_bytes,
            connections=settings.connections,
            server_id=settings.server,
            server_limit=settings.server_limit,
        )

    async with DeliveryClient(strict_status=settings.strict_status) as delivery:
        await run_forever(
            Cycle(settings, source, delivery),
            settings.interval,
            policy=settings.on_error,
            max_cycles=repeat or None,
        )


def main(argv: Optional[Sequence[str]] = None) -> None:
    settings, repeat = parse_settings(argv)
    configure_logging(settings.log_level)

    try:
        _validate(settings, repeat)
    except ValueError as exc:
        print_error(str(exc))
        sys.exit(1)

    logger.info("Starting speedwatch, with interval: %d minutes", settings.interval)
    print_banner(settings)

    try:
        asyncio.run(run(settings, repeat))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
        sys.exit(0)
    except SpeedwatchError as exc:
        logger.debug("Cycle failed", exc_info=True)
        print_error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
