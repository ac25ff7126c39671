"""UI layer -- Rich console, logging setup and start-up banner."""

from .console import (
    configure_logging,
    console,
    print_banner,
    print_error,
    resolve_log_level,
)

__all__ = [
    "configure_logging",
    "console",
    "print_banner",
    "print_error",
    "resolve_log_level",
]
