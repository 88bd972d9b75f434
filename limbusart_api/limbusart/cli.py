from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from limbusart.data import ArtEntry, ArtRegistry
from limbusart.errors import AppError, ParseError
from limbusart.jobs.filter_dead_links import filter_dead_links
from limbusart.jobs.safebooru_export import safebooru_export
from limbusart.logging_conf import setup_logging
from limbusart.settings import Settings
from limbusart.state import AppState

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="limbusart")
    p.add_argument("--env-file", default=".env", help="Path to .env file (default: .env)")
    p.add_argument("--log-level", default=None, help="Logging level (INFO, DEBUG, ...)")

    sub = p.add_subparsers(dest="cmd", required=True)

    sub_resolve = sub.add_parser("resolve", help="Resolve one source url and print the result as JSON")
    sub_resolve.add_argument("url", help="Twitter or safebooru post url")

    sub_check = sub.add_parser("check-registry", help="Parse a registry file and report its size")
    sub_check.add_argument("path", nargs="?", default=None, help="Registry file (default: ARTS_PATH)")

    sub_filter = sub.add_parser("filter-dead-links", help="Drop tweets the mirror can no longer resolve")
    sub_filter.add_argument("src", help="Input registry file")
    sub_filter.add_argument("dst", help="Output registry file")
    sub_filter.add_argument("--concurrency", type=int, default=4)

    sub_export = sub.add_parser("safebooru-export", help="Write registry lines for all posts with a tag")
    sub_export.add_argument("dst", help="Output file")
    sub_export.add_argument("--tags", default="project_moon", help="Safebooru tags query")
    sub_export.add_argument("--pages", type=int, default=0, help="Last page index to fetch (inclusive)")

    return p

async def _resolve(settings: Settings, url: str) -> dict:
    entry = ArtEntry.parse(url)
    state = AppState(ArtRegistry(), settings=settings)
    try:
        link = await state.resolve_or_lookup(entry)
    finally:
        await state.close()
    return {
        "source_url": entry.source_url,
        "kind": entry.kind.value,
        "image_url": link.image_url,
        "replacement_source": link.replacement_source,
    }

def main(argv: list[str] | None = None) -> None:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv(args.env_file)
    setup_logging(args.log_level)

    settings = Settings.from_env()

    try:
        if args.cmd == "resolve":
            result = asyncio.run(_resolve(settings, args.url))
            print(json.dumps(result, ensure_ascii=False, indent=2))
            return

        if args.cmd == "check-registry":
            path = Path(args.path) if args.path else settings.arts_path
            registry = ArtRegistry.parse(path.read_text(encoding="utf-8"))
            kinds: dict = {}
            for i in range(len(registry)):
                kind = registry[i].kind.value
                kinds[kind] = kinds.get(kind, 0) + 1
            print(f"{path}: {len(registry)} entries {json.dumps(kinds)}")
            return

        if args.cmd == "filter-dead-links":
            dropped = asyncio.run(
                filter_dead_links(
                    settings=settings,
                    src=Path(args.src),
                    dst=Path(args.dst),
                    concurrency=args.concurrency,
                )
            )
            print(f"Dropped {dropped} dead link(s).")
            return

        if args.cmd == "safebooru-export":
            n = asyncio.run(
                safebooru_export(
                    settings=settings,
                    tags=args.tags,
                    pages=args.pages,
                    dst=Path(args.dst),
                )
            )
            print(f"Wrote {n} link(s) to {args.dst}")
            return
    except ParseError as e:
        raise SystemExit(f"Invalid registry entry: {e}")
    except AppError as e:
        raise SystemExit(f"Failed: {e}")

    raise SystemExit(f"Unknown command: {args.cmd}")
