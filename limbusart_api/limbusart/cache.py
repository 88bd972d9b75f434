from __future__ import annotations

from typing import Dict, Optional

from limbusart.data import ResolvedLink


class LinkCache:
    """Resolved links keyed by the entry's source url.

    Grows for the lifetime of the process: no eviction, no expiry. Single
    dict get/set calls are atomic, so readers and writers on the event loop
    (and the reload thread, which never touches this) need no extra lock.

    Two concurrent misses for one url both resolve and both store; the last
    write wins. Resolution is idempotent, so that only costs a duplicate
    upstream call.
    """

    def __init__(self) -> None:
        self._links: Dict[str, ResolvedLink] = {}

    def get(self, source_url: str) -> Optional[ResolvedLink]:
        return self._links.get(source_url)

    def put(self, source_url: str, link: ResolvedLink) -> None:
        self._links[source_url] = link

    def __contains__(self, source_url: object) -> bool:
        return source_url in self._links

    def __len__(self) -> int:
        return len(self._links)

    def __repr__(self) -> str:
        return f"LinkCache(size={len(self._links)})"
