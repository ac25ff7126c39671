"""
Latency over the speedtest WebSocket protocol.

After connecting to ``wss://host:port/ws`` the server greets with ``HELLO``,
``YOURIP`` and ``CAPABILITIES`` lines.  Each ``PING <ms>`` we send is answered
with ``PONG <ms>``; the round trip is timed locally.
"""
from __future__ import annotations

import asyncio
import logging
import math
import statistics
import time
from dataclasses import dataclass, field
from typing import List, Optional

import websockets
import websockets.exceptions

from .constants import COMMON_HEADERS, DEFAULT_PING_COUNT
from .servers import Server

logger = logging.getLogger(__name__)

_OPEN_TIMEOUT = 5.0
_GREETING_TIMEOUT = 2.0
_GREETING_LINES = 3
_REPLY_TIMEOUT = 5.0
_MAX_MISSES = 2                 # consecutive lost PONGs before giving up


@dataclass
class ServerLatency:
    """Round trips collected from one server."""

    server: Server
    samples: List[float] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.samples)

    @property
    def best_ms(self) -> float:
        return min(self.samples) if self.samples else math.inf

    @property
    def mean_ms(self) -> float:
        return statistics.fmean(self.samples) if self.samples else 0.0


class LatencyProbe:
    def __init__(
        self,
        count: int = DEFAULT_PING_COUNT,
        reply_timeout: float = _REPLY_TIMEOUT,
        greeting_timeout: float = _GREETING_TIMEOUT,
    ) -> None:
        self.count = count
        self.reply_timeout = reply_timeout
        self.greeting_timeout = greeting_timeout

    async def probe(self, server: Server) -> ServerLatency:
        result = ServerLatency(server=server)
        try:
            async with websockets.connect(
                str(server.latency_url),
                additional_headers=COMMON_HEADERS,
                open_timeout=_OPEN_TIMEOUT,
                ping_interval=None,
                close_timeout=2,
            ) as ws:
                await self._skip_greeting(ws)
                misses = 0
                while len(result.samples) < self.count and misses < _MAX_MISSES:
                    rtt = await self._round_trip(ws)
                    if rtt is None:
                        misses += 1
                    else:
                        misses = 0
                        result.samples.append(rtt)
        except asyncio.TimeoutError:
            result.error = "connection timeout"
        except (websockets.exceptions.WebSocketException, OSError) as exc:
            result.error = str(exc) or type(exc).__name__

        if not result.ok:
            result.error = result.error or "no PONG received"
            logger.debug("Latency probe of %s failed: %s", server.host, result.error)
        return result

    async def rank(self, servers: List[Server]) -> List[ServerLatency]:
        """Probe *servers* in turn; reachable ones first, lowest round trip first."""
        results = [await self.probe(s) for s in servers]
        results.sort(key=lambda r: (not r.ok, r.best_ms))
        return results

    async def _skip_greeting(self, ws) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.greeting_timeout
        for _ in range(_GREETING_LINES):
            remaining = deadline - loop.time()
            if remaining <= 0:
                return
            try:
                line = await asyncio.wait_for(ws.recv(), timeout=remaining)
            except asyncio.TimeoutError:
                return
            if isinstance(line, str) and line.startswith("CAPABILITIES"):
                return

    async def _round_trip(self, ws) -> Optional[float]:
        """One PING/PONG in milliseconds, or ``None`` if the reply was lost."""
        started = time.perf_counter()
        await ws.send(f"PING {int(time.time() * 1000)}")
        try:
            reply = await asyncio.wait_for(ws.recv(), timeout=self.reply_timeout)
        except asyncio.TimeoutError:
            await self._discard_late_reply(ws)
            return None
        if not (isinstance(reply, str) and reply.startswith("PONG")):
            logger.debug("Unexpected reply to PING: %.50r", reply)
            return None
        return (time.perf_counter() - started) * 1000

    async def _discard_late_reply(self, ws) -> None:
        """A PONG arriving after its timeout would otherwise answer the next PING."""
        try:
            late = await asyncio.wait_for(ws.recv(), timeout=self.reply_timeout)
        except asyncio.TimeoutError:
            return
        logger.debug("Discarded late reply: %.50r", late)
