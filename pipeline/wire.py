"""
Prometheus remote-write wire format.

The body is a ``prometheus.WriteRequest`` protobuf message, compressed with
snappy in block format.  The message classes are built at import time from a
descriptor of the four messages we need, so no generated ``*_pb2`` module has
to be shipped.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import snappy
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, EncodeError
from multidict import CIMultiDict
from yarl import URL

from .constants import REMOTE_WRITE_VERSION
from .errors import EncodingError
from .metrics import Label, Sample, TimeSeries, WriteRequest


# ---------------------------------------------------------------------------
# Schema (subset of prometheus/prompb remote.proto and types.proto)
# ---------------------------------------------------------------------------

def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    field = descriptor_pb2.FieldDescriptorProto
    proto = descriptor_pb2.FileDescriptorProto(
        name="speedwatch/remote_write.proto",
        package="prometheus",
        syntax="proto3",
    )

    label = proto.message_type.add(name="Label")
    label.field.add(name="name", number=1, type=field.TYPE_STRING, label=field.LABEL_OPTIONAL)
    label.field.add(name="value", number=2, type=field.TYPE_STRING, label=field.LABEL_OPTIONAL)

    sample = proto.message_type.add(name="Sample")
    sample.field.add(name="value", number=1, type=field.TYPE_DOUBLE, label=field.LABEL_OPTIONAL)
    sample.field.add(name="timestamp", number=2, type=field.TYPE_INT64, label=field.LABEL_OPTIONAL)

    series = proto.message_type.add(name="TimeSeries")
    series.field.add(
        name="labels", number=1, type=field.TYPE_MESSAGE,
        label=field.LABEL_REPEATED, type_name=".prometheus.Label",
    )
    series.field.add(
        name="samples", number=2, type=field.TYPE_MESSAGE,
        label=field.LABEL_REPEATED, type_name=".prometheus.Sample",
    )

    request = proto.message_type.add(name="WriteRequest")
    request.field.add(
        name="timeseries", number=1, type=field.TYPE_MESSAGE,
        label=field.LABEL_REPEATED, type_name=".prometheus.TimeSeries",
    )
    return proto


_pool = descriptor_pool.DescriptorPool()
_pool.Add(_file_descriptor())
WriteRequestMessage = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName("prometheus.WriteRequest")
)


# ---------------------------------------------------------------------------
# HTTP request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HttpRequest:
    """A transport-ready request; headers are case-insensitive."""

    method: str
    url: URL
    headers: CIMultiDict
    body: bytes


def parse_endpoint(endpoint_url: Union[str, URL]) -> URL:
    """Parse *endpoint_url*, rejecting anything but absolute http(s) URLs."""
    try:
        url = URL(endpoint_url)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"invalid remote write URL {endpoint_url!r}: {exc}") from exc

    if not url.is_absolute() or url.scheme not in ("http", "https") or not url.host:
        raise EncodingError(
            f"invalid remote write URL {endpoint_url!r}: expected an absolute http(s) URL"
        )
    return url


def _to_message(write_request: WriteRequest):
    msg = WriteRequestMessage()
    for series in write_request.timeseries:
        ts = msg.timeseries.add()
        # Receivers require labels sorted by name.
        for label in sorted(series.labels, key=lambda l: l.name):
            ts.labels.add(name=label.name, value=label.value)
        for sample in series.samples:
            ts.samples.add(value=sample.value, timestamp=sample.timestamp)
    return msg


def encode(write_request: WriteRequest, url: Union[str, URL], user_agent: str) -> HttpRequest:
    """Serialise *write_request* into a POST for the remote-write endpoint at *url*."""
    target = parse_endpoint(url)
    try:
        payload = _to_message(write_request).SerializeToString()
    except (TypeError, ValueError, OverflowError, EncodeError) as exc:
        raise EncodingError(f"cannot serialise write request: {exc}") from exc

    headers = CIMultiDict(
        {
            "Content-Encoding": "snappy",
            "Content-Type": "application/x-protobuf",
            "User-Agent": user_agent,
            "X-Prometheus-Remote-Write-Version": REMOTE_WRITE_VERSION,
        }
    )
    return HttpRequest(method="POST", url=target, headers=headers, body=snappy.compress(payload))


def decode(body: bytes) -> WriteRequest:
    """Inverse of :func:`encode` for the body: decompress and parse."""
    try:
        msg = WriteRequestMessage.FromString(snappy.decompress(body))
    except (DecodeError, snappy.UncompressError) as exc:
        raise EncodingError(f"cannot decode write request: {exc}") from exc

    return WriteRequest(
        timeseries=tuple(
            TimeSeries(
                labels=tuple(Label(l.name, l.value) for l in ts.labels),
                samples=tuple(Sample(s.value, s.timestamp) for s in ts.samples),
            )
            for ts in msg.timeseries
        )
    )
