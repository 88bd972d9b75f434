from __future__ import annotations

import logging
from pathlib import Path
from typing import List
from urllib.parse import quote

from limbusart.errors import ResolutionError
from limbusart.http_client import TRANSPORT_EXC, HttpClient
from limbusart.settings import Settings

log = logging.getLogger(__name__)

PAGE_SIZE = 100
POST_VIEW_URL = "https://safebooru.org/index.php?page=post&s=view&id={id}"


async def _fetch_page(http: HttpClient, api_url: str, tags: str, pid: int) -> list:
    url = f"{api_url}?page=dapi&s=post&q=index&tags={quote(tags)}&limit={PAGE_SIZE}&pid={pid}&json=1"
    log.info("[safebooru] fetching page pid=%s: %s", pid, url)
    try:
        async with http.get(url) as resp:
            data = await resp.json(content_type=None)
    except (*TRANSPORT_EXC, ValueError) as e:
        raise ResolutionError(f"safebooru page {pid} could not be fetched: {e!r}") from e
    # past the last page safebooru answers with an empty body
    return data if isinstance(data, list) else []


async def safebooru_export(*, settings: Settings, tags: str, pages: int, dst: Path) -> int:
    """Write registry lines for every post tagged `tags`, pages 0..pages inclusive.

    Returns the number of lines written.
    """
    ids: List[int] = []
    seen = set()

    async with HttpClient(settings.user_agent, timeout_total=settings.http_timeout_seconds) as http:
        for pid in range(0, pages + 1):
            posts = await _fetch_page(http, settings.safebooru_api_url, tags, pid)
            if not posts:
                log.info("[safebooru] no posts on page pid=%s, stopping", pid)
                break
            for post in posts:
                post_id = post.get("id") if isinstance(post, dict) else None
                if post_id is None or post_id in seen:
                    continue
                seen.add(post_id)
                ids.append(post_id)

    dst.parent.mkdir(parents=True, exist_ok=True)
    dst.write_text("".join(POST_VIEW_URL.format(id=i) + "\n" for i in ids), encoding="utf-8")
    log.info("safebooru_export done. tags=%s posts=%s -> %s", tags, len(ids), dst)
    return len(ids)
