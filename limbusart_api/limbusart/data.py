from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from limbusart.errors import ParseError


class ArtKind(str, Enum):
    TWITTER = "twitter"
    SAFEBOORU = "safebooru"


# host -> kind. Adding a site means adding a row here and a resolver.
KIND_BY_HOST: Dict[str, ArtKind] = {
    "twitter.com": ArtKind.TWITTER,
    "x.com": ArtKind.TWITTER,
    "safebooru.org": ArtKind.SAFEBOORU,
}


def url_host(url: str) -> Optional[str]:
    """Return the lowercased host of an absolute URL, or None if it is not one."""
    if not url or any(c.isspace() for c in url):
        return None
    try:
        parts = urlsplit(url)
        host = parts.hostname
        # accessing .port validates it
        parts.port
    except ValueError:
        return None
    if not parts.scheme or not host:
        return None
    return host


@dataclass(frozen=True)
class ArtEntry:
    """A single catalogued art source."""
    source_url: str
    kind: ArtKind

    @staticmethod
    def parse(line: str) -> "ArtEntry":
        url = line.strip()
        host = url_host(url)
        if host is None:
            raise ParseError(f"invalid url: {url!r}")
        kind = KIND_BY_HOST.get(host)
        if kind is None:
            raise ParseError(f"not supported website: {host}")
        return ArtEntry(source_url=url, kind=kind)


@dataclass(frozen=True)
class ResolvedLink:
    image_url: str
    # corrected origin to show instead of the entry url (e.g. the twitter
    # or pixiv post a safebooru upload came from)
    replacement_source: Optional[str] = None


def _iter_lines(text: str):
    for line in text.splitlines():
        line = line.strip()
        if line:
            yield line


class ArtRegistry:
    """Ordered list of art entries plus a url -> position index.

    Not thread-safe on its own; `AppState` guards it with a lock.

    Invariants:
    - every url in the index points at the entry with that url
    - reload only appends; known urls keep their position
    """

    def __init__(self) -> None:
        self._arts: List[ArtEntry] = []
        self._indices: Dict[str, int] = {}

    @staticmethod
    def parse(text: str) -> "ArtRegistry":
        """Build a registry from registry-file text, one url per non-empty line.

        Lines are accumulated positionally; duplicates in the initial text are
        kept, and the index points at the first occurrence.
        """
        this = ArtRegistry()
        for line in _iter_lines(text):
            art = ArtEntry.parse(line)
            this._indices.setdefault(art.source_url, len(this._arts))
            this._arts.append(art)
        return this

    def reload(self, text: str) -> int:
        """Append entries whose url is not known yet. Returns how many were added.

        Lines are applied one by one: a ParseError on a line leaves every
        earlier line of the same call applied.
        """
        added = 0
        for line in _iter_lines(text):
            art = ArtEntry.parse(line)
            if art.source_url in self._indices:
                continue
            self._indices[art.source_url] = len(self._arts)
            self._arts.append(art)
            added += 1
        return added

    def pick_random_entry(self) -> ArtEntry:
        if not self._arts:
            raise LookupError("art registry is empty")
        return self._arts[random.randrange(len(self._arts))]

    def index_of(self, source_url: str) -> Optional[int]:
        return self._indices.get(source_url)

    def urls(self) -> List[str]:
        return [a.source_url for a in self._arts]

    def __len__(self) -> int:
        return len(self._arts)

    def __getitem__(self, idx: int) -> ArtEntry:
        return self._arts[idx]

    def __repr__(self) -> str:
        return f"ArtRegistry(size={len(self._arts)})"
