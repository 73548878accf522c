"""Tests for the typer CLI (``cli/main.py``)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from cli.main import app
from summariser.db import get_connection, init_db
from summariser.db.summaries import SqliteSummaryStore
from summariser.db.models import SummaryRecord
from summariser.errors import ErrorKind, FetchError
from summariser.pipeline import PipelineResult, ProcessedBlog

runner = CliRunner()

URL = "https://example.com/post-a"


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Point the workspace (and its SQLite DB) at a temp directory."""
    monkeypatch.setattr("summariser.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr("summariser.config.settings.summary_store", "sqlite")
    monkeypatch.setattr("summariser.config.settings.fulltext_store", "sqlite")
    return tmp_path


def _result() -> PipelineResult:
    blog = ProcessedBlog(
        url=URL,
        title="Hello World",
        content="word " * 600,
        summary="A concise English summary.",
        urdu_summary="یہ ایک خلاصہ ہے۔",
        word_count=600,
        read_time=3,
    )
    return PipelineResult(blog=blog, warnings=[])


def test_db_init_creates_database(workspace):
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert (workspace / "summaries.db").exists()


def test_process_json(workspace, monkeypatch):
    process = AsyncMock(return_value=_result())
    monkeypatch.setattr("cli.main.BlogPipeline.process", process)

    result = runner.invoke(app, ["process", URL, "--json"])

    assert result.exit_code == 0
    # Progress lines go to stderr; the JSON document is the last thing printed.
    payload = json.loads(result.stdout[result.stdout.index("{"):])
    assert payload["wordCount"] == 600
    assert payload["urduSummary"] == "یہ ایک خلاصہ ہے۔"
    assert process.await_args.args[0] == URL


def test_process_text_output(workspace, monkeypatch):
    monkeypatch.setattr("cli.main.BlogPipeline.process", AsyncMock(return_value=_result()))

    result = runner.invoke(app, ["process", URL])

    assert result.exit_code == 0
    assert "Hello World" in result.stdout
    assert "~3 min read" in result.stdout


def test_process_failure_exits_1(workspace, monkeypatch):
    failure = FetchError(ErrorKind.HTTP_STATUS, "HTTP 404", status_code=404)
    monkeypatch.setattr("cli.main.BlogPipeline.process", AsyncMock(side_effect=failure))

    result = runner.invoke(app, ["process", URL])

    assert result.exit_code == 1
    assert "fetching/HttpStatus" in result.output


def test_show_unknown_url(workspace):
    result = runner.invoke(app, ["show", "https://example.com/never"])
    assert result.exit_code == 1
    assert "No processed blog" in result.stdout


def test_show_stored_record(workspace):
    conn = get_connection()
    init_db(conn)
    SqliteSummaryStore(conn).upsert(
        SummaryRecord(
            url=URL, title="Stored Post", summary="Stored summary.",
            urdu_summary="خلاصہ", word_count=42, read_time=1,
        )
    )
    conn.close()

    result = runner.invoke(app, ["show", URL])

    assert result.exit_code == 0
    assert "Stored Post" in result.stdout
    assert "Full text : missing" in result.stdout
