"""
Shared constants used across all netspeed modules.

Centralises magic numbers, default headers, and tunables so they live in
exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

# ---------------------------------------------------------------------------
# Speedtest.net endpoints
# ---------------------------------------------------------------------------

CONFIG_URL = "https://www.speedtest.net/speedtest-config.php"
SERVERS_URL = "https://www.speedtest.net/speedtest-servers-static.php"

LATENCY_FILE = "latency.txt"
DOWNLOAD_FILE = "random{size}x{size}.jpg"

# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

EARTH_RADIUS_KM = 6371.0

# ---------------------------------------------------------------------------
# Selection / sampling defaults
# ---------------------------------------------------------------------------

DEFAULT_ALGORITHM = "max"
DEFAULT_NUM_CLOSEST = 3
DEFAULT_NUM_LATENCY_TESTS = 5
DEFAULT_REPORT_CHAR = "|"

MIN_NUM_LATENCY_TESTS = 1

# ---------------------------------------------------------------------------
# Concurrency and timeouts
# ---------------------------------------------------------------------------

DEFAULT_CONCURRENCY = 4
MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 32

DEFAULT_LATENCY_TIMEOUT = 5.0    # seconds per probe
DEFAULT_TRANSFER_TIMEOUT = 30.0  # seconds per window
CONNECT_TIMEOUT = 5.0

# ---------------------------------------------------------------------------
# Transfer windows
# ---------------------------------------------------------------------------

# Edge length of the random{N}x{N}.jpg images served by every host.
DOWNLOAD_SIZES = (350, 500, 750, 1000, 1500, 2000, 2500, 3000, 3500, 4000)

# Upload payloads in bytes.
UPLOAD_SIZES = (
    250_000,
    500_000,
    1_000_000,
    1_500_000,
    2_000_000,
    2_500_000,
    3_000_000,
    4_000_000,
)

CHUNK_SIZE = 256 * 1024          # 256 KB read size for downloads
