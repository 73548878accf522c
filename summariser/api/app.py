"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, opens the local SQLite database when
either store backend is ``sqlite``, builds the persistence coordinator and
the :class:`~summariser.pipeline.BlogPipeline`, and shares the pipeline with
all requests via ``request.app.state.pipeline``.  On shutdown the SQLite
connection is closed cleanly.

Routers
-------
All endpoints are mounted under ``/api``:

    POST /api/process-blog          — run the pipeline for one URL
    POST /api/process-blog/stream   — same, streaming stage progress (SSE)
    GET  /api/blogs?url=...         — stored records for a URL
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from summariser import __version__
from summariser.api.errors import install_error_handlers
from summariser.api.routers import blogs as blogs_router
from summariser.api.routers import process as process_router
from summariser.config import settings
from summariser.db import build_persistence, get_connection, init_db
from summariser.log import setup_logging
from summariser.pipeline import BlogPipeline


def _uses_sqlite() -> bool:
    return "sqlite" in (settings.summary_store.lower(), settings.fulltext_store.lower())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the pipeline on startup and close the DB on shutdown."""
    setup_logging(settings.log_level)

    conn = None
    if _uses_sqlite():
        conn = get_connection()
        init_db(conn)

    app.state.db = conn
    app.state.pipeline = BlogPipeline(build_persistence(settings, conn))
    try:
        yield
    finally:
        if conn is not None:
            conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Blog Summariser API",
        description=(
            "Fetches a blog post, extracts the article, summarises it in "
            "English, translates the summary into Urdu and stores the result."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(process_router.router, prefix="/api", tags=["process"])
    app.include_router(blogs_router.router, prefix="/api", tags=["blogs"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn summariser.api.app:app --reload
app = create_app()
