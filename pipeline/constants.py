"""
Constants shared by the publish pipeline.
"""
from . import __version__

# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

PROJECT_NAME = "speedwatch"
USER_AGENT = f"{PROJECT_NAME}/{__version__}"

# ---------------------------------------------------------------------------
# Metric names and labels
# ---------------------------------------------------------------------------

METRIC_NAME_LABEL = "__name__"
HOSTNAME_LABEL = "hostname"

BANDWIDTH_METRIC = "sw_internet_bandwidth_mbit"
LATENCY_METRIC = "sw_internet_latency_ms"

# ---------------------------------------------------------------------------
# Remote write
# ---------------------------------------------------------------------------

DEFAULT_REMOTE_WRITE_URL = "http://localhost:9090/api/v1/write"
REMOTE_WRITE_VERSION = "0.1.0"
REQUEST_TIMEOUT = 30.0           # seconds, whole request

# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

DEFAULT_INTERVAL_MINUTES = 30
SECONDS_PER_MINUTE = 60
