from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp

log = logging.getLogger(__name__)

# failures that mean "the upstream did not give us a usable answer"
TRANSPORT_EXC = (
    asyncio.TimeoutError,
    aiohttp.ClientError,
    OSError,
)


class HttpClient:
    """The one outbound client shared by every resolver.

    - fixed User-Agent
    - redirects are never followed (resolvers read Location themselves)
    - every response is status-checked (>= 400 raises ClientResponseError)

    The aiohttp session is created lazily so it binds to the running loop.
    """

    def __init__(self, user_agent: str, *, timeout_total: Optional[float] = 30.0) -> None:
        self.user_agent = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout_total)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent},
                timeout=self._timeout,
                raise_for_status=True,
            )
        return self._session

    @asynccontextmanager
    async def get(self, url: str) -> AsyncIterator[aiohttp.ClientResponse]:
        async with self.session.get(url, allow_redirects=False) as resp:
            yield resp

    async def probe(self, url: str) -> bool:
        """GET `url` and report whether it answered with a non-error status."""
        try:
            async with self.get(url):
                return True
        except TRANSPORT_EXC as e:
            log.debug("probe failed url=%s: %r", url, e)
            return False

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
