import pytest
from aiohttp import web

from limbusart.errors import ResolutionError
from limbusart.http_client import HttpClient
from limbusart.resolvers import SafebooruResolver, TwitterResolver, build_resolvers
from limbusart.data import ArtKind
from limbusart.resolvers.safebooru import (
    pixiv_artwork_url,
    post_id_from_url,
    sample_candidates,
)

TWEET = "https://twitter.com/artist/status/42"
POST = "https://safebooru.org/index.php?page=post&s=view&id=777"


@pytest.fixture
async def http():
    client = HttpClient("limbusart-tests/0")
    yield client
    await client.close()


def _resolvers(upstream, http, attempts=6):
    twitter = TwitterResolver(http, mirror_url=upstream.base_url, image_format="webp")
    safebooru = SafebooruResolver(
        http,
        api_url=upstream.url("/index.php"),
        twitter=twitter,
        attempts=attempts,
    )
    return twitter, safebooru


# ---- twitter ----


async def test_twitter_appends_format_to_location(upstream_factory, http):
    up = upstream_factory()
    up.status("/artist/status/42", 302, {"Location": "https://video.example/img.jpg"})
    await up.start()
    twitter, _ = _resolvers(up, http)

    link = await twitter.resolve(TWEET)

    assert link.image_url == "https://video.example/img.jpg?format=webp"
    assert link.replacement_source is None
    assert up.calls["/artist/status/42"] == 1


async def test_twitter_without_location_fails(upstream_factory, http):
    up = upstream_factory()
    up.status("/artist/status/42", 200)
    await up.start()
    twitter, _ = _resolvers(up, http)

    with pytest.raises(ResolutionError, match="no image location"):
        await twitter.resolve(TWEET)


async def test_twitter_error_status_is_not_retried(upstream_factory, http):
    up = upstream_factory()
    up.status("/artist/status/42", 500)
    await up.start()
    twitter, _ = _resolvers(up, http)

    with pytest.raises(ResolutionError):
        await twitter.resolve(TWEET)
    assert up.calls["/artist/status/42"] == 1


async def test_twitter_mirror_keeps_path_and_query(http):
    twitter = TwitterResolver(http, mirror_url="https://d.fxtwitter.com/")
    assert (
        twitter.mirror_url_for("https://twitter.com/a/status/1?s=20")
        == "https://d.fxtwitter.com/a/status/1?s=20"
    )


# ---- safebooru helpers ----


def test_post_id_from_url():
    assert post_id_from_url(POST) == "777"
    assert post_id_from_url("https://safebooru.org/index.php?page=post&id=") == ""
    assert post_id_from_url("https://safebooru.org/index.php") == ""


def test_pixiv_artwork_url():
    assert pixiv_artwork_url("https://i.pximg.net/img/12345_p0.jpg") == "https://pixiv.net/en/artworks/12345"
    assert (
        pixiv_artwork_url("https://i.pximg.net/img-original/img/2020/01/01/00/00/00/999_p1.png")
        == "https://pixiv.net/en/artworks/999"
    )


def test_sample_candidates_order():
    assert sample_candidates("https://safebooru.org/samples/1/sample_x.jpg?55") == [
        "https://safebooru.org/samples/1/sample_x.jpg",
        "https://safebooru.org//samples/1/sample_x.jpg",
    ]


# ---- safebooru ----


async def test_safebooru_pixiv_source_rewritten(upstream_factory, http):
    up = upstream_factory()
    posts = []

    async def api(request: web.Request) -> web.StreamResponse:
        assert request.query["id"] == "777"
        assert request.query["json"] == "1"
        return web.json_response(posts)

    up.route("/index.php", api)
    up.status("/samples/1/sample_x.jpg", 200)
    await up.start()
    posts.append(
        {
            "source": "https://i.pximg.net/img/12345_p0.jpg",
            "sample_url": up.url("/samples/1/sample_x.jpg") + "?12",
        }
    )
    _, safebooru = _resolvers(up, http)

    link = await safebooru.resolve(POST)

    assert link.replacement_source == "https://pixiv.net/en/artworks/12345"
    # plain candidate drops the query
    assert link.image_url == up.url("/samples/1/sample_x.jpg")
    assert up.calls["/index.php"] == 1


async def test_safebooru_sample_falls_back_to_raw_url(upstream_factory, http):
    up = upstream_factory()
    posts = []

    async def api(request: web.Request) -> web.StreamResponse:
        return web.json_response(posts)

    up.route("/index.php", api)
    await up.start()
    raw = up.url("/samples/missing.jpg") + "?9"
    posts.append({"sample_url": raw, "source": ""})
    _, safebooru = _resolvers(up, http)

    link = await safebooru.resolve(POST)

    assert link.image_url == raw
    assert link.replacement_source is None


async def test_safebooru_twitter_source_takes_precedence(upstream_factory, http):
    up = upstream_factory()
    posts = []

    async def api(request: web.Request) -> web.StreamResponse:
        return web.json_response(posts)

    up.route("/index.php", api)
    up.status("/artist/status/42", 302, {"Location": "https://pbs.example/media/a.jpg"})
    up.status("/samples/a.jpg", 200)
    await up.start()
    posts.append({"source": TWEET, "sample_url": up.url("/samples/a.jpg")})
    _, safebooru = _resolvers(up, http)

    link = await safebooru.resolve(POST)

    assert link.image_url == "https://pbs.example/media/a.jpg?format=webp"
    assert link.replacement_source == TWEET
    assert up.calls["/samples/a.jpg"] == 0


async def test_safebooru_dead_twitter_source_uses_sample(upstream_factory, http):
    up = upstream_factory()
    posts = []

    async def api(request: web.Request) -> web.StreamResponse:
        return web.json_response(posts)

    up.route("/index.php", api)
    up.status("/artist/status/42", 404)
    up.status("/samples/a.jpg", 200)
    await up.start()
    posts.append({"source": "https://x.com/artist/status/42", "sample_url": up.url("/samples/a.jpg")})
    _, safebooru = _resolvers(up, http)

    link = await safebooru.resolve(POST)

    assert link.image_url == up.url("/samples/a.jpg")
    assert link.replacement_source == "https://x.com/artist/status/42"
    assert up.calls["/artist/status/42"] == 1


async def test_safebooru_gives_up_after_six_attempts(upstream_factory, http):
    up = upstream_factory()
    up.status("/index.php", 503)
    await up.start()
    _, safebooru = _resolvers(up, http)

    with pytest.raises(ResolutionError, match="503"):
        await safebooru.resolve(POST)
    assert up.calls["/index.php"] == 6


async def test_safebooru_retries_bad_json_then_succeeds(upstream_factory, http):
    up = upstream_factory()
    posts = []

    async def api(request: web.Request) -> web.StreamResponse:
        if up.calls["/index.php"] < 3:
            return web.Response(text="<html>busy</html>", content_type="text/html")
        return web.json_response(posts)

    up.route("/index.php", api)
    up.status("/s.jpg", 200)
    await up.start()
    posts.append({"sample_url": up.url("/s.jpg")})
    _, safebooru = _resolvers(up, http)

    link = await safebooru.resolve(POST)

    assert link.image_url == up.url("/s.jpg")
    assert up.calls["/index.php"] == 3


async def test_safebooru_without_id_makes_no_calls(upstream_factory, http):
    up = upstream_factory()
    up.status("/index.php", 200)
    await up.start()
    _, safebooru = _resolvers(up, http)

    with pytest.raises(ResolutionError, match="no id"):
        await safebooru.resolve("https://safebooru.org/index.php?page=post&s=view")
    assert up.calls["/index.php"] == 0


@pytest.mark.parametrize("post", [{"source": ""}, {"sample_url": 12}])
async def test_safebooru_bad_sample_url(upstream_factory, http, post):
    up = upstream_factory()
    up.json("/index.php", [post])
    await up.start()
    _, safebooru = _resolvers(up, http)

    with pytest.raises(ResolutionError, match="sample url"):
        await safebooru.resolve(POST)


async def test_safebooru_empty_result(upstream_factory, http):
    up = upstream_factory()
    up.json("/index.php", [])
    await up.start()
    _, safebooru = _resolvers(up, http)

    with pytest.raises(ResolutionError, match="no post"):
        await safebooru.resolve(POST)


def test_build_resolvers_covers_every_kind(make_settings):
    resolvers = build_resolvers(make_settings(), HttpClient("ua"))
    assert set(resolvers) == set(ArtKind)
    assert resolvers[ArtKind.SAFEBOORU].twitter is resolvers[ArtKind.TWITTER]


async def test_safebooru_doubled_separator_sample_when_plain_fails(upstream_factory, http):
    up = upstream_factory()
    posts = []
    sample_hits = []

    async def api(request: web.Request) -> web.StreamResponse:
        return web.json_response(posts)

    async def samples(request: web.Request) -> web.StreamResponse:
        sample_hits.append(request.raw_path)
        if request.raw_path == "//samples/x.jpg":
            return web.Response(status=200)
        return web.Response(status=404)

    up.route("/index.php", api)
    up.route("/{tail:.*}", samples)
    await up.start()
    posts.append({"sample_url": up.url("/samples/x.jpg") + "?3"})
    _, safebooru = _resolvers(up, http)

    link = await safebooru.resolve(POST)

    assert link.image_url == up.url("//samples/x.jpg")
    assert link.image_url.endswith("//samples/x.jpg")
    assert sample_hits == ["/samples/x.jpg", "//samples/x.jpg"]
