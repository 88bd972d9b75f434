from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from limbusart import __version__

DEFAULT_TITLE = "random project moon art"

def _env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default

def _env_float(key: str, default: float) -> float:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default

def _env_bool(key: str, default: bool) -> bool:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}

@dataclass(frozen=True)
class Settings:
    # registry
    arts_path: Path

    # page metadata
    site_title: str
    embed_title: str
    embed_desc: str
    embed_color: str

    # upstreams
    twitter_mirror_url: str
    twitter_image_format: str
    safebooru_api_url: str
    safebooru_attempts: int

    # outbound http
    http_timeout_seconds: float
    user_agent: str

    # reload trigger
    reload_on_signal: bool

    # server
    host: str
    port: int

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            arts_path=Path(os.getenv("ARTS_PATH", "./utils/arts.txt")),
            site_title=os.getenv("SITE_TITLE", DEFAULT_TITLE),
            embed_title=os.getenv("EMBED_TITLE", DEFAULT_TITLE),
            embed_desc=os.getenv("EMBED_DESC", DEFAULT_TITLE),
            embed_color=os.getenv("EMBED_COLOR", "#ffffff"),
            twitter_mirror_url=os.getenv("TWITTER_MIRROR_URL", "https://d.fxtwitter.com").rstrip("/"),
            twitter_image_format=os.getenv("TWITTER_IMAGE_FORMAT", "webp"),
            safebooru_api_url=os.getenv("SAFEBOORU_API_URL", "https://safebooru.org/index.php"),
            safebooru_attempts=max(1, _env_int("SAFEBOORU_ATTEMPTS", 6)),
            http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", 30.0),
            user_agent=f"limbusart/{__version__}",
            reload_on_signal=_env_bool("RELOAD_ON_SIGNAL", True),
            host=os.getenv("HOST", "127.0.0.1"),
            port=_env_int("PORT", 3000),
        )
