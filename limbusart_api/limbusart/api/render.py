"""HTML for the art page and the failure page."""

from __future__ import annotations

from html import escape

from limbusart.data import ArtEntry, ResolvedLink
from limbusart.settings import Settings

BODY_STYLE = (
    "color: #ffffff; margin: 0px; background: #0e0e0e; height: 100vh; width: 100vw; "
    "display: flex; font-family: \"PT Mono\", monospace; font-weight: 400; "
    "font-style: normal; font-optical-sizing: auto;"
)
ABOUT_STYLE = "font-size: 1vmax; color: #ffffff;"


def _head(settings: Settings) -> str:
    return f"""<meta charset="utf8">
<meta property="og:title" content="{escape(settings.embed_title)}">
<meta property="og:description" content="{escape(settings.embed_desc)}">
<meta name="theme-color" content="{escape(settings.embed_color)}">
<link rel="preconnect" href="https://fonts.googleapis.com">
<link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
<link rel="stylesheet" href="https://fonts.googleapis.com/css2?family=PT+Mono&display=swap">
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/@chgibb/css-spinners@2.2.1/css/spinners.min.css">
<title>{escape(settings.site_title)}</title>"""


def _contact() -> str:
    return (
        f'<a style="{ABOUT_STYLE} right: 0;" href="https://gaze.systems" target="_blank">'
        "website made by dusk<br>report problems / feedback @ yusdacra on Discord</a>"
    )


def render_art_page(settings: Settings, entry: ArtEntry, link: ResolvedLink) -> str:
    source = link.replacement_source or entry.source_url
    return f"""<!DOCTYPE html>
<html>
<head>
{_head(settings)}
</head>
<body style="{BODY_STYLE}">
<div style="display: block; margin: auto; max-height: 98vh; max-width: 98vw;">
<div class="throbber-loader" style="position: absolute; top: 50%; left: 50%; z-index: -1;"></div>
<img style="max-height: 98vh; max-width: 98vw;" src="{escape(link.image_url)}">
</div>
<div style="position: absolute; bottom: 0; display: flex; flex-direction: column; gap: 2vh; background-color: #0e0e0eaa;">
<a style="{ABOUT_STYLE} left: 0;" href="{escape(source)}" target="_blank">source: {escape(source)}</a>
{_contact()}
</div>
</body>
</html>"""


def render_error_page(settings: Settings, message: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
{_head(settings)}
</head>
<body style="{BODY_STYLE}">
<p style="display: block; margin: auto; font-size: 1.3em;">Something went wrong: <br>{escape(message)}</p>
{_contact()}
</body>
</html>"""
