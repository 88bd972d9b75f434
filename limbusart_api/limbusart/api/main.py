from __future__ import annotations

import asyncio
import logging
import os
import signal
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Set

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse

from limbusart import __version__
from limbusart.api.auth import require_api_key
from limbusart.api.render import render_art_page, render_error_page
from limbusart.api.schemas import ReloadResponse, ResolveResponse, StatsResponse
from limbusart.data import ArtEntry
from limbusart.errors import AppError, ParseError, ResolutionError
from limbusart.logging_conf import setup_logging
from limbusart.settings import Settings
from limbusart.state import AppState

log = logging.getLogger(__name__)


def _load_env() -> None:
    """Load .env for local development.

    Set ENV_FILE to override the default.
    """
    env_file = os.getenv("ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file)


async def _reload_in_thread(state: AppState) -> None:
    try:
        added = await asyncio.to_thread(state.reload_from_file)
        log.info("Signal reload done: added=%d", added)
    except (ParseError, OSError) as e:
        log.error("Signal reload failed (entries before the bad line were kept): %s", e)


def _install_reload_signal(state: AppState, tasks: Set[asyncio.Task]) -> bool:
    sig = getattr(signal, "SIGUSR2", None)
    if sig is None:
        return False

    loop = asyncio.get_running_loop()

    def _on_signal() -> None:
        task = loop.create_task(_reload_in_thread(state))
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    try:
        loop.add_signal_handler(sig, _on_signal)
    except (NotImplementedError, RuntimeError, ValueError):
        # not on the main thread, or not supported by this loop
        return False
    return True


def create_app(settings: Optional[Settings] = None, state: Optional[AppState] = None) -> FastAPI:
    if settings is None:
        _load_env()
        setup_logging()
        settings = state.settings if state is not None else Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_state = state if state is not None else AppState.from_file(settings)
        app.state.art = app_state

        reload_tasks: Set[asyncio.Task] = set()
        signal_installed = settings.reload_on_signal and _install_reload_signal(app_state, reload_tasks)
        if signal_installed:
            log.info("Send SIGUSR2 to pid %d to reload %s", os.getpid(), settings.arts_path)
        try:
            yield
        finally:
            if signal_installed:
                asyncio.get_running_loop().remove_signal_handler(signal.SIGUSR2)
            await app_state.close()

    app = FastAPI(title="limbusart", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> HTMLResponse:
        log.warning("Request failed %s: %s", request.url.path, exc)
        return HTMLResponse(render_error_page(settings, str(exc)), status_code=exc.status_code)

    # --- basic ---
    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def show_art(request: Request) -> HTMLResponse:
        s: AppState = request.app.state.art
        ua = request.headers.get("user-agent", "<unknown agent>")
        realip = request.headers.get("x-real-ip", "<unknown ip>")
        log.info("serving user %s from %s", ua, realip)

        try:
            entry = s.pick_random_entry()
        except LookupError as e:
            raise AppError("no art entries", status_code=503) from e
        link = await s.resolve_or_lookup(entry)
        return HTMLResponse(render_art_page(settings, entry, link))

    # --- v1 router (optionally protected by API_KEY) ---
    router = APIRouter(prefix="/v1", dependencies=[Depends(require_api_key)])

    @router.post("/reload", response_model=ReloadResponse)
    async def reload_arts(request: Request) -> ReloadResponse:
        s: AppState = request.app.state.art
        try:
            added = await asyncio.to_thread(s.reload_from_file)
        except ParseError as e:
            raise HTTPException(status_code=400, detail=f"Reload stopped: {e}") from e
        except OSError as e:
            raise HTTPException(status_code=500, detail=f"Could not read registry: {e}") from e
        return ReloadResponse(added=added, total=s.registry_size())

    @router.get("/stats", response_model=StatsResponse)
    def get_stats(request: Request) -> StatsResponse:
        s: AppState = request.app.state.art
        return StatsResponse(
            arts_total=s.registry_size(),
            cached_links=len(s.cache),
            arts_path=str(s.settings.arts_path),
        )

    @router.get("/resolve", response_model=ResolveResponse)
    async def resolve_url(
        request: Request,
        url: str = Query(..., description="Registry-style source url"),
    ) -> ResolveResponse:
        s: AppState = request.app.state.art
        try:
            entry = ArtEntry.parse(url)
        except ParseError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        cached = entry.source_url in s.cache
        try:
            link = await s.resolve_or_lookup(entry)
        except ResolutionError as e:
            raise HTTPException(status_code=e.status_code, detail=str(e)) from e
        return ResolveResponse(
            source_url=entry.source_url,
            kind=entry.kind.value,
            image_url=link.image_url,
            replacement_source=link.replacement_source,
            cached=cached,
        )

    app.include_router(router)
    return app
