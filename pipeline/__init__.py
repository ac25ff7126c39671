"""Measurement-and-publish pipeline -- assemble, encode, authenticate, deliver, repeat."""

__version__ = "0.1.0"

from .cycle import Cycle, now_millis, resolve_hostname
from .delivery import DeliveryClient, DeliveryOutcome
from .errors import (
    AuthHeaderError,
    ClockError,
    ConfigError,
    DeliveryStatusError,
    EncodingError,
    HostResolutionError,
    MeasurementError,
    SpeedwatchError,
    TransportError,
)
from .metrics import Label, Sample, TimeSeries, WriteRequest, assemble
from .request import Credentials, basic_auth_header, build
from .scheduler import ErrorPolicy, run_forever
from .wire import HttpRequest, decode, encode

__all__ = [
    "AuthHeaderError",
    "ClockError",
    "ConfigError",
    "Credentials",
    "Cycle",
    "DeliveryClient",
    "DeliveryOutcome",
    "DeliveryStatusError",
    "EncodingError",
    "ErrorPolicy",
    "HostResolutionError",
    "HttpRequest",
    "Label",
    "MeasurementError",
    "Sample",
    "SpeedwatchError",
    "TimeSeries",
    "TransportError",
    "WriteRequest",
    "__version__",
    "assemble",
    "basic_auth_header",
    "build",
    "decode",
    "encode",
    "now_millis",
    "resolve_hostname",
    "run_forever",
]
