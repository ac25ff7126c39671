"""
Rich-based console output for the long-running process.

Log records go through ``rich.logging.RichHandler`` on stderr; the start-up
banner and fatal errors are printed directly on the same console.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from pipeline.config import ENV_LOG_LEVEL, Settings

console = Console(stderr=True)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_log_level(level: Optional[str] = None) -> int:
    """Map *level*, else ``$SPEEDWATCH_LOG_LEVEL``, else INFO, to a logging constant."""
    name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    if name not in LOG_LEVELS:
        name = "INFO"
    return logging.getLevelName(name)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=resolve_log_level(level),
        format="%(message)s",
        datefmt="[%Y-%m-%d %H:%M:%S]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # websockets and asyncio are chatty at DEBUG
    for name in ("websockets", "asyncio"):
        logging.getLogger(name).setLevel(max(logging.INFO, resolve_log_level(level)))


def print_banner(settings: Settings) -> None:
    """Summarise the configuration; the password is never shown."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("Interval:", f"{settings.interval} min")
    table.add_row("Remote write:", settings.remote_write_url)
    table.add_row("User:", settings.credentials.username)
    table.add_row("On error:", settings.on_error.value)
    if settings.server:
        table.add_row("Server:", str(settings.server))
    console.print(Panel(table, title="[bold cyan]speedwatch[/bold cyan]", border_style="cyan"))


def print_error(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
