"""
Measurement source: one download throughput and one average latency per call.

The pipeline only depends on :class:`MeasurementSource`; :class:`SpeedtestSource`
is the implementation backed by speedtest.net servers.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

import aiohttp

from pipeline.errors import MeasurementError

from .constants import (
    DEFAULT_CONNECTIONS,
    DEFAULT_DOWNLOAD_BYTES,
    DEFAULT_PING_COUNT,
    DEFAULT_SERVER_LIMIT,
)
from .download import DownloadProbe
from .latency import LatencyProbe
from .servers import Server, ServerDirectory

logger = logging.getLogger(__name__)

_PINNED_SEARCH_LIMIT = 20


@dataclass(frozen=True)
class MeasurementResult:
    """Outcome of one measurement, consumed immediately by the pipeline."""

    download_mbit: float
    avg_latency_ms: float


class MeasurementSource(Protocol):
    async def measure(self) -> MeasurementResult: ...


class SpeedtestSource:
    """Measure against the reachable server with the lowest round trip."""

    def __init__(
        self,
        *,
        ping_count: int = DEFAULT_PING_COUNT,
        download_bytes: int = DEFAULT_DOWNLOAD_BYTES,
        connections: int = DEFAULT_CONNECTIONS,
        server_id: Optional[int] = None,
        server_limit: int = DEFAULT_SERVER_LIMIT,
    ) -> None:
        self.ping_count = ping_count
        self.download_bytes = download_bytes
        self.connections = connections
        self.server_id = server_id
        self.server_limit = server_limit

    async def measure(self) -> MeasurementResult:
        servers = await self._discover()

        ranked = await LatencyProbe(count=self.ping_count).rank(servers)
        best = ranked[0]
        if not best.ok:
            errors = "; ".join(f"{r.server.host}: {r.error}" for r in ranked)
            raise MeasurementError(f"could not reach any speedtest server ({errors})")

        logger.debug(
            "Selected server %s (%s), %d round trips, best %.1f ms",
            best.server.name,
            best.server.sponsor,
            len(best.samples),
            best.best_ms,
        )

        dl = await DownloadProbe(size=self.download_bytes).run(best.server, streams=self.connections)
        if dl.bytes_total == 0:
            reason = dl.errors[0] if dl.errors else "no bytes received"
            raise MeasurementError(f"download from {best.server.host} failed: {reason}")

        return MeasurementResult(download_mbit=dl.speed_mbit, avg_latency_ms=best.mean_ms)

    async def _discover(self) -> List[Server]:
        limit = _PINNED_SEARCH_LIMIT if self.server_id else self.server_limit
        try:
            async with ServerDirectory() as directory:
                servers = await directory.nearest(limit=limit)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise MeasurementError(f"server discovery failed: {exc}") from exc

        if self.server_id:
            servers = [s for s in servers if s.id == self.server_id]
            if not servers:
                raise MeasurementError(f"speedtest server {self.server_id} not found nearby")
        if not servers:
            raise MeasurementError("no speedtest servers available")
        return servers[: self.server_limit]
