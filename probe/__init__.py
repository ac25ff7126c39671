"""Measurement source -- speedtest server discovery, latency and download probes."""

from .download import DownloadProbe, DownloadResult
from .latency import LatencyProbe, ServerLatency
from .servers import Server, ServerDirectory
from .source import MeasurementResult, MeasurementSource, SpeedtestSource

__all__ = [
    "DownloadProbe",
    "DownloadResult",
    "LatencyProbe",
    "MeasurementResult",
    "MeasurementSource",
    "Server",
    "ServerDirectory",
    "ServerLatency",
    "SpeedtestSource",
]
