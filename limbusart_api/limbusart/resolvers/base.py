"""Resolver interface shared by every supported site."""

from __future__ import annotations

from abc import ABC, abstractmethod

from limbusart.data import ResolvedLink
from limbusart.http_client import HttpClient


class LinkResolver(ABC):
    """Turns a post url of one site into a direct image link.

    Implementations raise `ResolutionError` on any failure; they never return
    a partial result.
    """

    name: str = ""

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @abstractmethod
    async def resolve(self, source_url: str) -> ResolvedLink:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
