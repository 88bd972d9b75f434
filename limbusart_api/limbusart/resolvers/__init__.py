"""Per-site resolvers.

`build_resolvers` returns the kind -> resolver table `AppState` dispatches on.
"""

from __future__ import annotations

from typing import Dict

from limbusart.data import ArtKind
from limbusart.http_client import HttpClient
from limbusart.settings import Settings

from .base import LinkResolver
from .safebooru import SafebooruResolver
from .twitter import TwitterResolver


def build_resolvers(settings: Settings, http: HttpClient) -> Dict[ArtKind, LinkResolver]:
    twitter = TwitterResolver(
        http,
        mirror_url=settings.twitter_mirror_url,
        image_format=settings.twitter_image_format,
    )
    safebooru = SafebooruResolver(
        http,
        api_url=settings.safebooru_api_url,
        twitter=twitter,
        attempts=settings.safebooru_attempts,
    )
    return {
        ArtKind.TWITTER: twitter,
        ArtKind.SAFEBOORU: safebooru,
    }


__all__ = [
    "LinkResolver",
    "SafebooruResolver",
    "TwitterResolver",
    "build_resolvers",
]
