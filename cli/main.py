"""Blog summariser CLI — entry-point for running the pipeline locally.

Usage:
    python cli/main.py --help

Commands:
    process   → run the full pipeline for one URL
    show      → print the stored records for a URL
    db init   → create the local SQLite tables
    serve     → run the HTTP API under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from summariser.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
import sqlite3
from typing import Optional

import typer

from summariser.config import settings
from summariser.db import build_persistence, get_connection, init_db
from summariser.errors import PipelineFailure
from summariser.log import setup_logging
from summariser.pipeline import BlogPipeline, PipelineEvent

app = typer.Typer(
    name="blogsum",
    help="Blog summariser CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging before any command runs."""
    setup_logging("DEBUG" if verbose else settings.log_level)


def _open_db() -> Optional[sqlite3.Connection]:
    """Open the local DB when either store backend is ``sqlite``."""
    if "sqlite" not in (settings.summary_store.lower(), settings.fulltext_store.lower()):
        return None
    conn = get_connection()
    init_db(conn)
    return conn


def _echo_event(event: PipelineEvent) -> None:
    icons = {"started": "→", "completed": "✔", "retrying": "↻", "warning": "⚠", "failed": "✖"}
    line = f"  {icons.get(event.status, '·')} {event.stage.value:<12} {event.status}"
    if event.detail:
        line += f"  ({event.detail})"
    typer.echo(line, err=True)


# ---------------------------------------------------------------------------
# Pipeline commands
# ---------------------------------------------------------------------------
@app.command("process")
def process(
    url: str = typer.Argument(..., help="Blog post URL to process."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Fetch, summarise, translate and store a blog post."""
    conn = _open_db()
    try:
        pipeline = BlogPipeline(build_persistence(settings, conn))
        typer.echo(f"[process] {url}", err=True)
        try:
            result = asyncio.run(pipeline.process(url, on_event=_echo_event))
        except PipelineFailure as exc:
            typer.echo(f"❌ {exc.stage}/{exc.kind.value}: {exc.message}", err=True)
            raise typer.Exit(code=1)
    finally:
        if conn is not None:
            conn.close()

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    blog = result.blog
    typer.echo(f"Title     : {blog.title}")
    typer.echo(f"Words     : {blog.word_count}  (~{blog.read_time} min read)")
    typer.echo("")
    typer.echo("Summary:")
    typer.echo(blog.summary)
    typer.echo("")
    typer.echo("Urdu summary:")
    typer.echo(blog.urdu_summary)
    for warning in result.warnings:
        typer.echo(f"⚠ {warning}", err=True)


@app.command("show")
def show(
    url: str = typer.Argument(..., help="URL of a previously processed blog."),
) -> None:
    """Print the stored summary and full-text records for a URL."""
    conn = _open_db()
    try:
        persistence = build_persistence(settings, conn)
        summary, full_text = persistence.lookup(url)
    finally:
        if conn is not None:
            conn.close()

    if summary is None:
        typer.echo(f"[show] No processed blog for {url}")
        raise typer.Exit(code=1)

    typer.echo(f"Title     : {summary.title}")
    typer.echo(f"Processed : {summary.created_at}")
    typer.echo(f"Words     : {summary.word_count}  (~{summary.read_time} min read)")
    typer.echo(f"Full text : {'stored' if full_text else 'missing'}")
    typer.echo("")
    typer.echo(summary.summary)
    typer.echo("")
    typer.echo(summary.urdu_summary)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Local database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the local SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the HTTP API (``POST /api/process-blog``) under uvicorn."""
    import uvicorn

    uvicorn.run("summariser.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
