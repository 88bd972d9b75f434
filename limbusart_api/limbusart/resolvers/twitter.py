from __future__ import annotations

import logging
from urllib.parse import urlsplit

from limbusart.data import ResolvedLink
from limbusart.errors import ResolutionError
from limbusart.http_client import TRANSPORT_EXC, HttpClient
from limbusart.resolvers.base import LinkResolver

log = logging.getLogger(__name__)


def _with_query_param(url: str, key: str, value: str) -> str:
    sep = "&" if urlsplit(url).query else "?"
    return f"{url}{sep}{key}={value}"


class TwitterResolver(LinkResolver):
    """Resolve tweets through a mirror that redirects to the tweet's media.

    The mirror answers `GET <mirror>/<user>/status/<id>` with a redirect whose
    Location is the direct image url. No retries at this layer.
    """

    name = "twitter"

    def __init__(self, http: HttpClient, *, mirror_url: str, image_format: str = "webp") -> None:
        super().__init__(http)
        self.mirror_url = mirror_url.rstrip("/")
        self.image_format = image_format

    def mirror_url_for(self, source_url: str) -> str:
        parts = urlsplit(source_url)
        url = f"{self.mirror_url}{parts.path or '/'}"
        if parts.query:
            url = f"{url}?{parts.query}"
        return url

    async def resolve(self, source_url: str) -> ResolvedLink:
        mirror = self.mirror_url_for(source_url)
        log.info("[twitter] trying to fetch url: %s", mirror)
        try:
            async with self.http.get(mirror) as resp:
                location = resp.headers.get("Location")
        except TRANSPORT_EXC as e:
            raise ResolutionError(f"twitter link {mirror} could not be fetched: {e!r}") from e

        if not location:
            raise ResolutionError(f"no image location returned for twitter link {mirror}")

        # the compressed format is much cheaper to serve
        return ResolvedLink(image_url=_with_query_param(location, "format", self.image_format))
