"""One measure -> assemble -> build -> deliver cycle."""
from __future__ import annotations

import logging
import socket
import time
from typing import TYPE_CHECKING, Callable

from .constants import USER_AGENT
from .delivery import DeliveryClient, DeliveryOutcome
from .errors import ClockError, HostResolutionError
from .metrics import assemble
from .request import build

if TYPE_CHECKING:
    from probe.source import MeasurementSource

    from .config import Settings

logger = logging.getLogger(__name__)


def now_millis() -> int:
    """Current Unix epoch time in milliseconds."""
    millis = time.time_ns() // 1_000_000
    if millis < 0:
        raise ClockError(f"system clock is before the Unix epoch ({millis} ms)")
    return millis


def resolve_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError as exc:
        raise HostResolutionError(f"cannot determine hostname: {exc}") from exc


class Cycle:
    """Awaitable handed to the scheduler; each call publishes one pair of samples."""

    def __init__(
        self,
        settings: Settings,
        source: MeasurementSource,
        delivery: DeliveryClient,
        *,
        hostname: Callable[[], str] = resolve_hostname,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.settings = settings
        self.source = source
        self.delivery = delivery
        self._hostname = hostname
        self._clock = clock

    async def __call__(self) -> DeliveryOutcome:
        started = self._clock()
        host = self._hostname()

        result = await self.source.measure()

        write_request = assemble(host, result.download_mbit, result.avg_latency_ms, started)
        request = build(
            write_request,
            self.settings.remote_write_url,
            USER_AGENT,
            self.settings.credentials,
        )
        outcome = await self.delivery.deliver(request)

        logger.info("time: %d", started)
        logger.info("download speed in mbit: %s", result.download_mbit)
        logger.info("average latency in ms: %s", result.avg_latency_ms)
        return outcome
