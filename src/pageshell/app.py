from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Callable, Iterable

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from .auth import handler_params, register_session_auth
from .page import Page
from .webapp import ResponseWriter, esc

APP_NAME = "pageshell"

RES_DIR = Path(__file__).parent / "res"

PageHandler = Callable[[Page], Any]


def page_route(
    app: FastAPI,
    path: str,
    *,
    title: str,
    icon: str = "",
    methods: Iterable[str] = ("GET",),
    subpaths: bool = True,
) -> Callable[[PageHandler], PageHandler]:
    """Register ``fn(pg)`` as the handler for ``path`` (and, with ``subpaths``,
    everything below it; see ``Page.sub_path``).

    The wrapper builds the response writer and the Page, runs the handler (plain
    or async) and returns whatever the handler wrote.
    """
    base = "/" + path.strip("/") if path.strip("/") else ""

    def decorator(fn: PageHandler) -> PageHandler:
        async def endpoint(request: Request):
            writer = ResponseWriter()
            pg = Page(writer, request, handler_params(request), title, icon, prefix=base)
            if inspect.iscoroutinefunction(fn):
                await fn(pg)
            else:
                # plain handlers do blocking I/O; keep them off the event loop
                await run_in_threadpool(fn, pg)
            return writer.to_response()

        endpoint.__name__ = f"page_{fn.__name__}"
        app.add_api_route(base or "/", endpoint, methods=list(methods), include_in_schema=False)
        if subpaths:
            app.add_api_route(
                f"{base}/{{subpath:path}}",
                endpoint,
                methods=list(methods),
                include_in_schema=False,
            )
        return fn

    return decorator


def register_home(app: FastAPI) -> None:
    @page_route(app, "/", title="Home", subpaths=False)
    def home(pg: Page) -> None:
        pg.add_header_label("Home")
        if pg.username():
            pg.content = f"<p>Signed in as {esc(pg.display_name())}.</p>"
        else:
            pg.add_header_label("Log In", "/login")
            pg.content = "<p>Not signed in.</p>"
        pg.render()


def create_app() -> FastAPI:
    app = FastAPI(title=APP_NAME, version="0.1")
    app.mount("/res", StaticFiles(directory=str(RES_DIR)), name="res")

    # Pages are per-user; never let a proxy or browser cache them.
    @app.middleware("http")
    async def _no_store_cache_mw(request: Request, call_next):
        resp = await call_next(request)
        if not request.url.path.startswith("/res/"):
            resp.headers["Cache-Control"] = "no-store"
        return resp

    register_session_auth(app)
    register_home(app)
    return app
