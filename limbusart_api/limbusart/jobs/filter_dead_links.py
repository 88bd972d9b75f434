from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from limbusart.data import ArtEntry, ArtKind
from limbusart.errors import ParseError, ResolutionError
from limbusart.http_client import HttpClient
from limbusart.resolvers import TwitterResolver
from limbusart.settings import Settings

log = logging.getLogger(__name__)


async def filter_dead_links(
    *,
    settings: Settings,
    src: Path,
    dst: Path,
    concurrency: int = 4,
) -> int:
    """Copy a registry file, dropping tweets the mirror no longer resolves.

    Non-twitter lines (and lines we cannot parse) are copied verbatim.
    Returns the number of dropped lines.
    """
    lines = [ln.strip() for ln in src.read_text(encoding="utf-8").splitlines() if ln.strip()]
    keep: List[Optional[bool]] = [None] * len(lines)
    sem = asyncio.Semaphore(max(1, concurrency))

    async with HttpClient(settings.user_agent, timeout_total=settings.http_timeout_seconds) as http:
        twitter = TwitterResolver(
            http,
            mirror_url=settings.twitter_mirror_url,
            image_format=settings.twitter_image_format,
        )

        async def worker(i: int, line: str) -> None:
            try:
                entry = ArtEntry.parse(line)
            except ParseError:
                keep[i] = True
                return
            if entry.kind is not ArtKind.TWITTER:
                keep[i] = True
                return

            async with sem:
                try:
                    await twitter.resolve(entry.source_url)
                    keep[i] = True
                except ResolutionError as e:
                    keep[i] = False
                    log.info("Dropping dead link %s: %s", line, e)

        await asyncio.gather(*(worker(i, ln) for i, ln in enumerate(lines)))

    kept = [ln for ln, ok in zip(lines, keep) if ok]
    dst.parent.mkdir(parents=True, exist_ok=True)
    dst.write_text("".join(ln + "\n" for ln in kept), encoding="utf-8")

    dropped = len(lines) - len(kept)
    log.info("filter_dead_links done. kept=%s dropped=%s -> %s", len(kept), dropped, dst)
    return dropped
