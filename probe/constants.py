"""
Tunables for the speedtest measurement source.

Ookla servers reject requests that do not look like they come from the
speedtest.net web client, hence the browser-like headers.
"""

# ---------------------------------------------------------------------------
# HTTP headers (browser-like, required by Ookla servers)
# ---------------------------------------------------------------------------

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)

COMMON_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Origin": "https://www.speedtest.net",
    "Referer": "https://www.speedtest.net/",
}

# ---------------------------------------------------------------------------
# Speedtest.net endpoints
# ---------------------------------------------------------------------------

SERVERS_URL = "https://www.speedtest.net/api/js/servers"

# ---------------------------------------------------------------------------
# Limits and defaults
# ---------------------------------------------------------------------------

MIN_CONNECTIONS = 1
MAX_CONNECTIONS = 32
DEFAULT_CONNECTIONS = 1

DEFAULT_PING_COUNT = 25
MIN_PING_COUNT = 1
MAX_PING_COUNT = 100

DEFAULT_DOWNLOAD_BYTES = 10_000_000    # 10 MB per cycle
MIN_DOWNLOAD_BYTES = 1_000
MAX_DOWNLOAD_BYTES = 1_000_000_000

DEFAULT_SERVER_LIMIT = 5               # candidates probed for latency

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 256 * 1024                # 256 KB reads
