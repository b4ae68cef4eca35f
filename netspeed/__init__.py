"""netspeed -- server selection, latency and throughput measurement."""

from .api import ClientInfo, Server, SpeedtestAPI
from .catalog import ServerCatalog, filter_closest
from .config import Settings
from .download import DownloadResult, DownloadTester, download_test
from .errors import (
    ConfigFetchError,
    InvalidParameter,
    NoReachableServer,
    NoServersAvailable,
    ServerNotFound,
    SpeedtestError,
    TransferFailed,
    TransportError,
)
from .geo import Coordinate, distance
from .latency import LatencyTester, ServerLatencyResult
from .selector import ServerSelection, ServerSelector
from .stats import (
    Algorithm,
    TransferSample,
    calculate_jitter,
    format_latency,
    format_speed,
    reduce_latency,
    reduce_throughput,
)
from .transport import HttpTransport
from .upload import UploadResult, UploadTester, upload_test

__all__ = [
    "Algorithm",
    "ClientInfo",
    "ConfigFetchError",
    "Coordinate",
    "DownloadResult",
    "DownloadTester",
    "HttpTransport",
    "InvalidParameter",
    "LatencyTester",
    "NoReachableServer",
    "NoServersAvailable",
    "Server",
    "ServerCatalog",
    "ServerLatencyResult",
    "ServerNotFound",
    "ServerSelection",
    "ServerSelector",
    "Settings",
    "SpeedtestAPI",
    "SpeedtestError",
    "TransferFailed",
    "TransferSample",
    "TransportError",
    "UploadResult",
    "UploadTester",
    "calculate_jitter",
    "distance",
    "download_test",
    "filter_closest",
    "format_latency",
    "format_speed",
    "reduce_latency",
    "reduce_throughput",
    "upload_test",
]
