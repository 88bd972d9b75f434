from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, quote, urlsplit

from limbusart.data import ResolvedLink, url_host
from limbusart.errors import ResolutionError
from limbusart.http_client import TRANSPORT_EXC, HttpClient
from limbusart.resolvers.base import LinkResolver
from limbusart.resolvers.twitter import TwitterResolver

log = logging.getLogger(__name__)

PIXIV_IMAGE_HOST = "i.pximg.net"
TWITTER_SOURCE_HOSTS = ("twitter.com", "x.com")


def post_id_from_url(source_url: str) -> str:
    """Read the `id` query parameter of a safebooru post url ("" if absent)."""
    post_id = ""
    for name, value in parse_qsl(urlsplit(source_url).query, keep_blank_values=True):
        if name == "id":
            post_id = value
    return post_id


def parse_source(raw: Any) -> Optional[str]:
    """Return the post's `source` field as a url, or None if it is not one."""
    if not isinstance(raw, str):
        return None
    raw = raw.strip()
    if url_host(raw) is None:
        return None
    return raw


def pixiv_artwork_url(image_url: str) -> str:
    """Map an i.pximg.net image url to its pixiv artwork page.

    https://i.pximg.net/img-original/img/.../12345_p0.jpg -> https://pixiv.net/en/artworks/12345
    """
    filename = urlsplit(image_url).path.rsplit("/", 1)[-1]
    post_id = filename.split("_", 1)[0]
    return f"https://pixiv.net/en/artworks/{post_id}"


def is_twitter_source(url: str) -> bool:
    host = url_host(url) or ""
    return any(h in host for h in TWITTER_SOURCE_HOSTS)


def sample_candidates(sample_url: str) -> List[str]:
    """The two probe urls built from a sample url: plain, then with a doubled separator."""
    parts = urlsplit(sample_url)
    if not parts.scheme or not parts.netloc:
        raise ResolutionError(f"safebooru sample url was not valid: {sample_url!r}")
    return [
        f"{parts.scheme}://{parts.netloc}{parts.path}",
        f"{parts.scheme}://{parts.netloc}/{parts.path}",
    ]


class SafebooruResolver(LinkResolver):
    """Resolve safebooru posts through the dapi JSON endpoint.

    Flow:
    1) fetch the post (retried, no delay between attempts)
    2) if the post's source is a tweet, prefer the tweet's image and show the
       tweet as the source
    3) otherwise serve the post's sample image, probing two url shapes
    """

    name = "safebooru"

    def __init__(
        self,
        http: HttpClient,
        *,
        api_url: str,
        twitter: TwitterResolver,
        attempts: int = 6,
    ) -> None:
        super().__init__(http)
        self.api_url = api_url
        self.twitter = twitter
        self.attempts = max(1, attempts)

    def api_url_for(self, post_id: str) -> str:
        return f"{self.api_url}?page=dapi&s=post&q=index&json=1&id={quote(post_id)}"

    async def _fetch_posts(self, url: str) -> List[Dict[str, Any]]:
        log.info("[safebooru] trying to fetch url: %s", url)
        async with self.http.get(url) as resp:
            # safebooru does not always send application/json
            data = await resp.json(content_type=None)
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, got {type(data).__name__}")
        return data

    async def fetch_posts_with_retry(self, url: str) -> List[Dict[str, Any]]:
        last_exc: Optional[BaseException] = None

        for attempt in range(1, self.attempts + 1):
            try:
                return await self._fetch_posts(url)
            except (*TRANSPORT_EXC, ValueError) as e:
                last_exc = e
                if attempt < self.attempts:
                    log.warning(
                        "[safebooru] retrying url fetch (attempt %s/%s): %s: %r",
                        attempt,
                        self.attempts,
                        url,
                        e,
                    )

        assert last_exc is not None
        raise ResolutionError(f"safebooru post could not be fetched: {last_exc!r}") from last_exc

    async def _pick_sample_url(self, sample_url: str) -> str:
        plain, doubled = sample_candidates(sample_url)
        plain_ok = await self.http.probe(plain)
        doubled_ok = await self.http.probe(doubled)
        if plain_ok:
            return plain
        if doubled_ok:
            return doubled
        return sample_url

    async def resolve(self, source_url: str) -> ResolvedLink:
        post_id = post_id_from_url(source_url)
        if not post_id:
            raise ResolutionError(f"no id in safebooru url {source_url}")

        posts = await self.fetch_posts_with_retry(self.api_url_for(post_id))
        if not posts or not isinstance(posts[0], dict):
            raise ResolutionError(f"safebooru returned no post for id {post_id}")
        post = posts[0]

        source = parse_source(post.get("source"))
        if source is not None and url_host(source) == PIXIV_IMAGE_HOST:
            source = pixiv_artwork_url(source)

        if source is not None and is_twitter_source(source):
            log.info("[safebooru] source was twitter, will try to fetch image from there instead")
            try:
                fetched = await self.twitter.resolve(source)
            except ResolutionError as e:
                log.info("[safebooru] twitter source failed, using sample image: %s", e)
            else:
                log.info("[safebooru] fetched image from twitter")
                return ResolvedLink(image_url=fetched.image_url, replacement_source=source)

        sample_url = post.get("sample_url")
        if sample_url is None:
            raise ResolutionError("safebooru did not return sample url")
        if not isinstance(sample_url, str):
            raise ResolutionError("safebooru sample url wasnt a string")

        image_url = await self._pick_sample_url(sample_url)
        return ResolvedLink(image_url=image_url, replacement_source=source)
