"""
Delivery client: sends a prepared request and reports what came back.

One ``aiohttp.ClientSession`` is kept open for the lifetime of the process
(``async with DeliveryClient() as client: ...``) so the connection to the
remote-write endpoint can be reused between cycles.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from .constants import REQUEST_TIMEOUT
from .errors import DeliveryStatusError, TransportError
from .wire import HttpRequest

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 256


@dataclass(frozen=True)
class DeliveryOutcome:
    """A response was received; *error* holds the body of a non-2xx reply."""

    status: int
    reason: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class DeliveryClient:
    """Async context-manager that POSTs write requests with a bounded timeout."""

    def __init__(self, *, timeout: float = REQUEST_TIMEOUT, strict_status: bool = False) -> None:
        self.timeout = timeout
        self.strict_status = strict_status
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> DeliveryClient:
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "DeliveryClient must be used as an async context manager "
                "(async with DeliveryClient() as client: ...)"
            )
        return self._session

    async def deliver(self, request: HttpRequest) -> DeliveryOutcome:
        """Send *request*; raise ``TransportError`` if no response arrives."""
        session = self._ensure_session()

        try:
            async with session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
            ) as resp:
                error = None
                if not 200 <= resp.status < 300:
                    body = await resp.read()
                    error = body[:_ERROR_BODY_LIMIT].decode("utf-8", errors="replace")
                outcome = DeliveryOutcome(status=resp.status, reason=resp.reason or "", error=error)
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"remote write to {request.url.host} timed out after {self.timeout:g}s"
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"remote write to {request.url.host} failed: {exc}") from exc

        logger.debug("response status: %d", outcome.status)
        if not outcome.ok:
            logger.warning(
                "Remote write answered %d %s: %s", outcome.status, outcome.reason, outcome.error
            )
            if self.strict_status:
                raise DeliveryStatusError(outcome)
        return outcome
