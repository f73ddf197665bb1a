"""netscaffold -- FastAPI application.

Defines the application factory, the JSON error envelope handlers and the
``main()`` CLI function launching uvicorn.

Endpoints
---------
========  ==================================  ===================================
Method    Path                                Purpose
========  ==================================  ===================================
GET       ``/api/health``                     Liveness plus .NET SDK version
GET       ``/api/health/detailed``            Process and cache details
GET       ``/api/dotnet/status``              SDK installation status
GET       ``/api/dotnet/info``                Status plus SDK base path
GET       ``/api/dotnet/compatibility``       Platform support summary
POST      ``/api/dotnet/install``             Install the SDK if missing
POST      ``/api/dotnet/reinstall``           Always run the installer
POST      ``/api/project/scaffold-download``  Scaffold and download as zip
========  ==================================  ===================================

With ``enable_dev_routes`` the ``/api/project`` create, templates, scaffold
and validate-scaffold routes are mounted too, together with the single
generator routes under ``/api/entity``, ``/api/command``, ``/api/handler``
and ``/api/repository``.

Usage
-----
CLI (installed entry point)::

    netscaffold

Direct invocation::

    python -m netscaffold.api.main
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from rich.logging import RichHandler
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import NetScaffoldConfig
from ..scaffolder.generator import ProjectScaffolder
from ..scaffolder.packager import flush_cleanups
from ..utils import console
from . import dotnet, generators, health, project, responses

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the working directories; delete pending scaffold workspaces on shutdown."""
    app.state.config.ensure_directories()
    logger.info("Working directory: %s", app.state.config.work_dir)

    yield

    removed = await flush_cleanups()
    if removed:
        logger.info("Removed %d pending scaffold workspaces on shutdown.", removed)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return responses.error(f"Route {request.url.path} not found", 404)
    return responses.error(str(exc.detail), exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return responses.error(_validation_message(exc), 400)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return responses.error("Internal Server Error", 500)


def create_app(config: NetScaffoldConfig | None = None) -> FastAPI:
    """Build the application around *config* (read from the environment when omitted)."""
    config = config or NetScaffoldConfig.from_env()

    app = FastAPI(
        title="netscaffold",
        description="Scaffolds layered ASP.NET Core solutions from entity definitions.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.scaffolder = ProjectScaffolder(config)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.cors_origin.split(",")],
        allow_credentials=config.cors_origin != "*",
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router)
    app.include_router(dotnet.router)
    app.include_router(project.router)
    if config.enable_dev_routes:
        app.include_router(project.dev_router)
        for router in generators.routers:
            app.include_router(router)
        logger.warning("Development routes are enabled; do not expose this instance publicly.")
    return app


def main() -> None:
    """Launch the uvicorn ASGI server.

    Host, port and everything else come from ``NETSCAFFOLD_*`` environment
    variables (see :meth:`NetScaffoldConfig.from_env`). Registered as the
    ``netscaffold`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    config = NetScaffoldConfig.from_env()
    uvicorn.run(create_app(config), host=config.host, port=config.port, reload=False)


if __name__ == "__main__":
    main()
