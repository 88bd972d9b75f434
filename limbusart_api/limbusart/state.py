from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from limbusart.cache import LinkCache
from limbusart.data import ArtEntry, ArtKind, ArtRegistry, ResolvedLink
from limbusart.errors import ParseError, ResolutionError
from limbusart.http_client import HttpClient
from limbusart.resolvers import LinkResolver, build_resolvers
from limbusart.settings import Settings

log = logging.getLogger(__name__)


def _read_registry(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8: {e}") from e


class AppState:
    """Process-wide state shared by every request.

    - registry: guarded by a threading.Lock; reload runs in a worker thread
      while requests only hold the lock long enough to copy one entry out
    - cache: plain `LinkCache`, no lock
    - http: one `HttpClient` for all resolvers
    """

    def __init__(
        self,
        registry: ArtRegistry,
        *,
        settings: Settings,
        http: Optional[HttpClient] = None,
        resolvers: Optional[Dict[ArtKind, LinkResolver]] = None,
    ) -> None:
        self.settings = settings
        self.http = http or HttpClient(settings.user_agent, timeout_total=settings.http_timeout_seconds)
        self.resolvers = resolvers or build_resolvers(settings, self.http)
        self.cache = LinkCache()
        self._registry = registry
        self._registry_lock = threading.Lock()
        # serializes reloads against each other, not against requests
        self._reload_lock = threading.Lock()

    @staticmethod
    def from_file(settings: Settings) -> "AppState":
        """Build state from `settings.arts_path`. Raises ParseError on a bad or empty file."""
        registry = ArtRegistry.parse(_read_registry(Path(settings.arts_path)))
        if not len(registry):
            raise ParseError(f"no art entries in {settings.arts_path}")
        log.info("Loaded %d art entries from %s", len(registry), settings.arts_path)
        return AppState(registry, settings=settings)

    # ---- registry ----

    def pick_random_entry(self) -> ArtEntry:
        with self._registry_lock:
            return self._registry.pick_random_entry()

    def registry_size(self) -> int:
        with self._registry_lock:
            return len(self._registry)

    def known_urls(self) -> set[str]:
        with self._registry_lock:
            return set(self._registry.urls())

    def reload(self, text: str) -> int:
        """Merge new registry text. Returns how many entries were appended.

        Lines before a failing line stay applied; the ParseError propagates.
        """
        with self._reload_lock:
            return self._merge(text)

    def _merge(self, text: str) -> int:
        with self._registry_lock:
            added = self._registry.reload(text)
            total = len(self._registry)
        log.info("Reloaded arts: added=%d total=%d", added, total)
        return added

    def reload_from_file(self, path: Optional[Path] = None) -> int:
        path = Path(path or self.settings.arts_path)
        with self._reload_lock:
            # file read stays outside the registry lock
            text = _read_registry(path)
            return self._merge(text)

    # ---- resolution ----

    async def resolve(self, entry: ArtEntry) -> ResolvedLink:
        resolver = self.resolvers.get(entry.kind)
        if resolver is None:
            raise ResolutionError(f"no resolver for {entry.kind.value} links")
        return await resolver.resolve(entry.source_url)

    async def resolve_or_lookup(self, entry: ArtEntry) -> ResolvedLink:
        """Return the cached link for `entry`, resolving and caching on a miss.

        Failures are not cached.
        """
        cached = self.cache.get(entry.source_url)
        if cached is not None:
            return cached

        link = await self.resolve(entry)
        self.cache.put(entry.source_url, link)
        return link

    async def close(self) -> None:
        await self.http.close()
