"""
Download throughput.

A fixed number of bytes is fetched from the server's ``/download`` endpoint,
split over one or more parallel GET streams.  Throughput is total bytes over
wall-clock time, in megabits per second.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List

import aiohttp

from .constants import (
    CHUNK_SIZE,
    COMMON_HEADERS,
    DEFAULT_DOWNLOAD_BYTES,
    MAX_CONNECTIONS,
    MIN_CONNECTIONS,
)
from .servers import Server

logger = logging.getLogger(__name__)


@dataclass
class DownloadResult:
    bytes_total: int = 0
    duration_ms: float = 0.0
    errors: List[str] = field(default_factory=list)

    @property
    def speed_mbit(self) -> float:
        if self.duration_ms <= 0:
            return 0.0
        return self.bytes_total * 8 / (self.duration_ms / 1000) / 1_000_000


def split_bytes(total: int, streams: int) -> List[int]:
    """Spread *total* bytes over *streams*, the remainder on the first ones."""
    base, extra = divmod(total, streams)
    return [base + (1 if i < extra else 0) for i in range(streams)]


class DownloadProbe:
    """Fixed-size download; a failed stream keeps what it already received."""

    def __init__(self, size: int = DEFAULT_DOWNLOAD_BYTES, timeout: float = 120.0) -> None:
        self.size = size
        self.timeout = timeout

    async def run(self, server: Server, streams: int = 1) -> DownloadResult:
        streams = max(MIN_CONNECTIONS, min(streams, MAX_CONNECTIONS))
        result = DownloadResult()

        async def _stream(session: aiohttp.ClientSession, size: int) -> int:
            received = 0
            try:
                async with session.get(server.download_url(size)) as resp:
                    resp.raise_for_status()
                    while received < size:
                        chunk = await resp.content.read(CHUNK_SIZE)
                        if not chunk:
                            break
                        received += len(chunk)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                logger.debug("Download stream from %s failed: %r", server.host, exc)
                result.errors.append(str(exc) or type(exc).__name__)
            return received

        connector = aiohttp.TCPConnector(limit=streams, limit_per_host=streams)
        timeout = aiohttp.ClientTimeout(total=self.timeout, connect=5, sock_read=5)
        headers = {**COMMON_HEADERS, "Accept-Encoding": "identity"}

        started = time.perf_counter()
        async with aiohttp.ClientSession(headers=headers, connector=connector, timeout=timeout) as session:
            received = await asyncio.gather(
                *(_stream(session, size) for size in split_bytes(self.size, streams))
            )
        result.duration_ms = (time.perf_counter() - started) * 1000
        result.bytes_total = sum(received)
        return result
