from __future__ import annotations

import dataclasses
from collections import Counter
from pathlib import Path
from typing import Awaitable, Callable, List

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from limbusart.settings import Settings

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class Upstream:
    """A local aiohttp server standing in for the mirror / safebooru.

    Every route counts its hits in `calls[path]`.
    """

    def __init__(self) -> None:
        self.app = web.Application()
        self.calls: Counter = Counter()
        self.server: TestServer | None = None

    def route(self, path: str, handler: Handler) -> None:
        async def counted(request: web.Request) -> web.StreamResponse:
            self.calls[path] += 1
            return await handler(request)

        self.app.router.add_get(path, counted)

    def json(self, path: str, payload) -> None:
        async def handler(request: web.Request) -> web.StreamResponse:
            return web.json_response(payload)

        self.route(path, handler)

    def status(self, path: str, status: int, headers: dict | None = None) -> None:
        async def handler(request: web.Request) -> web.StreamResponse:
            return web.Response(status=status, headers=headers or {})

        self.route(path, handler)

    async def start(self) -> "Upstream":
        self.server = TestServer(self.app)
        await self.server.start_server()
        return self

    @property
    def base_url(self) -> str:
        assert self.server is not None
        return str(self.server.make_url("")).rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"


@pytest.fixture
async def upstream_factory():
    servers: List[Upstream] = []

    def _make() -> Upstream:
        up = Upstream()
        servers.append(up)
        return up

    yield _make

    for up in servers:
        if up.server is not None:
            await up.server.close()


@pytest.fixture
def make_settings(tmp_path: Path):
    def _make(**overrides) -> Settings:
        base = dataclasses.replace(
            Settings.from_env(),
            arts_path=tmp_path / "arts.txt",
            reload_on_signal=False,
            http_timeout_seconds=5.0,
        )
        return dataclasses.replace(base, **overrides)

    return _make
