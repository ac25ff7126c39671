"""
Speedtest server directory.

The directory is the public speedtest.net server list, which returns nearby
servers ordered by distance from the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

import aiohttp
from yarl import URL

from .constants import COMMON_HEADERS, DEFAULT_SERVER_LIMIT, SERVERS_URL

_DIRECTORY_TIMEOUT = aiohttp.ClientTimeout(total=15)
_DEFAULT_PORT = 8080


@dataclass(frozen=True)
class Server:
    id: int
    host: str
    port: int = _DEFAULT_PORT
    name: str = ""
    sponsor: str = ""

    @classmethod
    def parse(cls, entry: Mapping[str, Any]) -> Server:
        """Build a server from one directory entry.

        Older entries only carry ``host`` as ``name:port``; ``hostname`` and
        ``port`` win when present.
        """
        host, _, port = str(entry.get("host", "")).partition(":")
        return cls(
            id=int(entry.get("id", 0)),
            host=entry.get("hostname") or host,
            port=int(entry.get("port") or port or _DEFAULT_PORT),
            name=entry.get("name", ""),
            sponsor=entry.get("sponsor", ""),
        )

    @property
    def latency_url(self) -> URL:
        return URL.build(scheme="wss", host=self.host, port=self.port, path="/ws")

    def download_url(self, size: int) -> URL:
        return URL.build(
            scheme="https",
            host=self.host,
            port=self.port,
            path="/download",
            query={"size": size},
        )


class ServerDirectory:
    """``async with ServerDirectory() as d: servers = await d.nearest()``"""

    def __init__(self, url: str = SERVERS_URL) -> None:
        self.url = url
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> ServerDirectory:
        self._session = aiohttp.ClientSession(headers=COMMON_HEADERS, timeout=_DIRECTORY_TIMEOUT)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def nearest(self, limit: int = DEFAULT_SERVER_LIMIT) -> List[Server]:
        """Return up to *limit* servers, closest first.

        Raises ``aiohttp.ClientError`` on HTTP failure and ``ValueError`` when
        the payload is not a list of server entries.
        """
        if self._session is None:
            raise RuntimeError("ServerDirectory must be used with 'async with'")

        params = {"engine": "js", "https_functional": "true", "limit": str(limit)}
        async with self._session.get(self.url, params=params) as resp:
            resp.raise_for_status()
            payload = await resp.json(content_type=None)

        if not isinstance(payload, list):
            raise ValueError(f"unexpected server list payload: {type(payload).__name__}")
        return [Server.parse(entry) for entry in payload[:limit]]
