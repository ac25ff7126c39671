"""
Start-up configuration.

Non-secret defaults can be kept in ``~/.speedwatch/config.json``; credentials
come from the command line or, preferably, the environment.

Supported file keys::

    interval = 30                     # minutes between cycles
    remote_write_url = "http://localhost:9090/api/v1/write"
    ping_count = 25
    download_bytes = 10000000
    connections = 1
    server = 12345                    # pin a speedtest server ID
    server_limit = 5
    on_error = "stop"                 # or "continue"
    strict_status = false             # treat non-2xx replies as failures
    log_level = "INFO"
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from probe.constants import (
    DEFAULT_CONNECTIONS,
    DEFAULT_DOWNLOAD_BYTES,
    DEFAULT_PING_COUNT,
    DEFAULT_SERVER_LIMIT,
)

from .constants import DEFAULT_INTERVAL_MINUTES, DEFAULT_REMOTE_WRITE_URL
from .errors import ConfigError
from .request import Credentials
from .scheduler import ErrorPolicy

logger = logging.getLogger(__name__)

_CONFIG_DIR = os.path.join(Path.home(), ".speedwatch")
_CONFIG_FILE = "config.json"

ENV_URL = "SW_REMOTE_WRITE_URL"
ENV_USERNAME = "SW_REMOTE_WRITE_USERNAME"
ENV_PASSWORD = "SW_REMOTE_WRITE_PASSWORD"
ENV_LOG_LEVEL = "SPEEDWATCH_LOG_LEVEL"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "interval": DEFAULT_INTERVAL_MINUTES,
    "remote_write_url": DEFAULT_REMOTE_WRITE_URL,
    "ping_count": DEFAULT_PING_COUNT,
    "download_bytes": DEFAULT_DOWNLOAD_BYTES,
    "connections": DEFAULT_CONNECTIONS,
    "server": None,
    "server_limit": DEFAULT_SERVER_LIMIT,
    "on_error": ErrorPolicy.STOP.value,
    "strict_status": False,
    "log_level": "INFO",
}

_TYPES = {
    "interval": int,
    "remote_write_url": str,
    "ping_count": int,
    "download_bytes": int,
    "connections": int,
    "server": int,
    "server_limit": int,
    "on_error": str,
    "strict_status": bool,
    "log_level": str,
}
_NULLABLE = {"server"}


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the config file, returning defaults for missing keys.

    Keys not listed in ``DEFAULTS`` are ignored so credentials cannot be
    smuggled in through the file.  Problems with the default file fall back
    to the defaults; problems with an explicit *path* raise ``ConfigError``.
    """
    explicit = path is not None
    path = path or _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        if explicit:
            raise ConfigError(f"config file not found: {path}")
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
    except (json.JSONDecodeError, IOError) as exc:
        if explicit:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc
        return config  # corrupt file; use defaults

    if not isinstance(user, dict):
        if explicit:
            raise ConfigError(f"config file {path} must hold a JSON object")
        return config

    accepted = {}
    for key, value in user.items():
        if key not in DEFAULTS:
            continue
        problem = _type_problem(key, value)
        if problem is None:
            accepted[key] = value
        elif explicit:
            raise ConfigError(f"config file {path}: {problem}")
        else:
            logger.warning("Ignoring %s in %s: %s", key, path, problem)
    config.update(accepted)
    return config


def _type_problem(key: str, value: Any) -> Optional[str]:
    """Describe why *value* cannot be used for *key*, or ``None`` if it can."""
    if key in _NULLABLE and value is None:
        return None
    expected = _TYPES[key]
    # bool is an int subclass; JSON true must not pass as a number
    if not isinstance(value, expected) or (isinstance(value, bool) and expected is not bool):
        return f"{key} must be {expected.__name__}, got {value!r}"
    return None


def config_path() -> str:
    """Return the default config file path (for display purposes)."""
    return _config_path()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """Everything a running process needs, fixed at start-up."""

    remote_write_url: str
    credentials: Credentials
    interval: int = DEFAULT_INTERVAL_MINUTES
    ping_count: int = DEFAULT_PING_COUNT
    download_bytes: int = DEFAULT_DOWNLOAD_BYTES
    connections: int = DEFAULT_CONNECTIONS
    server: Optional[int] = None
    server_limit: int = DEFAULT_SERVER_LIMIT
    on_error: ErrorPolicy = ErrorPolicy.STOP
    strict_status: bool = False
    log_level: str = "INFO"
