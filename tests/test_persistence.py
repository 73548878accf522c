"""Tests for the stores and the persistence coordinator.

SQLite stores run against an in-memory database so they are fast, isolated
and leave nothing in the workspace.  The Supabase client and the MongoDB
collection are ``MagicMock`` objects; only the calls made on them are checked.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Generator
from unittest.mock import MagicMock

import pytest

from summariser.config import Settings
from summariser.db.connection import get_connection
from summariser.db.fulltext import MongoFullTextStore, SqliteFullTextStore
from summariser.db.schema import init_db
from summariser.db.models import FullTextRecord, SummaryRecord
from summariser.db.persistence import PersistenceCoordinator, build_persistence
from summariser.db.summaries import SqliteSummaryStore, SupabaseSummaryStore
from summariser.errors import ErrorKind, PersistenceError
from summariser.pipeline.models import ProcessedBlog


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def coordinator(conn: sqlite3.Connection) -> PersistenceCoordinator:
    return PersistenceCoordinator(SqliteSummaryStore(conn), SqliteFullTextStore(conn))


def _blog(url: str = "https://example.com/post-a", **overrides) -> ProcessedBlog:
    fields = dict(
        url=url,
        title="Hello World",
        content="Full article text " * 50,
        summary="A short summary.",
        urdu_summary="ایک مختصر خلاصہ۔",
        word_count=150,
        read_time=1,
    )
    fields.update(overrides)
    return ProcessedBlog(**fields)


def _count(conn: sqlite3.Connection, table: str, url: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table} WHERE url = ?", (url,)).fetchone()[0]  # noqa: S608


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class TestInitDb:
    def test_idempotent(self, conn: sqlite3.Connection) -> None:
        init_db(conn)
        init_db(conn)
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        assert {"blog_summaries", "full_texts"} <= tables


# ---------------------------------------------------------------------------
# SQLite stores
# ---------------------------------------------------------------------------

class TestSqliteStores:
    def test_summary_roundtrip(self, conn: sqlite3.Connection) -> None:
        store = SqliteSummaryStore(conn)
        record = SummaryRecord(
            url="https://example.com/a", title="A", summary="s", urdu_summary="u",
            word_count=10, read_time=1,
        )
        store.upsert(record)
        assert store.get("https://example.com/a") == record

    def test_summary_missing_returns_none(self, conn: sqlite3.Connection) -> None:
        assert SqliteSummaryStore(conn).get("https://example.com/none") is None

    def test_full_text_upsert_replaces(self, conn: sqlite3.Connection) -> None:
        store = SqliteFullTextStore(conn)
        store.upsert(FullTextRecord(url="https://example.com/a", title="A", content="one"))
        store.upsert(FullTextRecord(url="https://example.com/a", title="A2", content="two"))

        stored = store.get("https://example.com/a")
        assert stored is not None
        assert stored.content == "two"
        assert stored.title == "A2"
        assert _count(conn, "full_texts", "https://example.com/a") == 1

    def test_writes_wait_for_the_connection_lock(self, conn: sqlite3.Connection) -> None:
        store = SqliteSummaryStore(conn)
        record = SummaryRecord(
            url="https://example.com/a", title="A", summary="s", urdu_summary="u",
            word_count=10, read_time=1,
        )

        conn.write_lock.acquire()
        writer = threading.Thread(target=store.upsert, args=(record,))
        writer.start()
        writer.join(timeout=0.2)
        assert writer.is_alive()
        assert store.get(record.url) is None

        conn.write_lock.release()
        writer.join(timeout=5)
        assert not writer.is_alive()
        assert store.get(record.url) == record

    def test_concurrent_writes_all_land(self, conn: sqlite3.Connection) -> None:
        summaries = SqliteSummaryStore(conn)
        full_texts = SqliteFullTextStore(conn)
        urls = [f"https://example.com/{i}" for i in range(20)]

        def _write(url: str) -> None:
            summaries.upsert(
                SummaryRecord(url=url, title="t", summary="s", urdu_summary="u", word_count=1, read_time=1)
            )
            full_texts.upsert(FullTextRecord(url=url, title="t", content="c"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(_write, urls))

        for url in urls:
            assert _count(conn, "blog_summaries", url) == 1
            assert _count(conn, "full_texts", url) == 1



# ---------------------------------------------------------------------------
# External stores (mocked clients)
# ---------------------------------------------------------------------------

class TestSupabaseSummaryStore:
    def test_upsert_uses_url_conflict_key(self) -> None:
        client = MagicMock()
        store = SupabaseSummaryStore(client, table="blog_summaries")
        record = SummaryRecord(
            url="https://example.com/a", title="A", summary="s", urdu_summary="u",
            word_count=10, read_time=1, created_at="2024-01-01T00:00:00+00:00",
        )

        store.upsert(record)

        client.table.assert_called_with("blog_summaries")
        client.table.return_value.upsert.assert_called_once_with(record.to_row(), on_conflict="url")
        client.table.return_value.upsert.return_value.execute.assert_called_once()

    def test_get_parses_first_row(self) -> None:
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = MagicMock(
            data=[
                {
                    "url": "https://example.com/a", "title": "A", "summary": "s",
                    "urdu_summary": "u", "word_count": 10, "read_time": 1,
                    "created_at": "2024-01-01T00:00:00+00:00",
                }
            ]
        )
        record = SupabaseSummaryStore(client).get("https://example.com/a")
        assert record is not None
        assert record.word_count == 10
        client.table.return_value.select.return_value.eq.assert_called_with("url", "https://example.com/a")

    def test_get_missing(self) -> None:
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = MagicMock(data=[])
        assert SupabaseSummaryStore(client).get("https://example.com/a") is None

    def test_from_settings_requires_credentials(self) -> None:
        config = Settings()
        config.supabase_url = ""
        config.supabase_key = ""
        with pytest.raises(EnvironmentError):
            SupabaseSummaryStore.from_settings(config)


class TestMongoFullTextStore:
    def test_upsert_by_url_creates_index_once(self) -> None:
        collection = MagicMock()
        store = MongoFullTextStore(collection)
        record = FullTextRecord(url="https://example.com/a", title="A", content="text")

        store.upsert(record)
        store.upsert(record)

        collection.create_index.assert_called_once_with("url", unique=True)
        collection.update_one.assert_called_with(
            {"url": "https://example.com/a"}, {"$set": record.to_row()}, upsert=True
        )
        assert collection.update_one.call_count == 2

    def test_get_strips_object_id(self) -> None:
        collection = MagicMock()
        collection.find_one.return_value = {
            "url": "https://example.com/a", "title": "A", "content": "text",
            "created_at": "2024-01-01T00:00:00+00:00",
        }
        record = MongoFullTextStore(collection).get("https://example.com/a")
        assert record is not None
        assert record.content == "text"
        collection.find_one.assert_called_once_with({"url": "https://example.com/a"}, {"_id": 0})


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class TestPersistenceCoordinator:
    async def test_writes_both_stores(
        self, coordinator: PersistenceCoordinator, conn: sqlite3.Connection
    ) -> None:
        outcome = await coordinator.persist(_blog())

        assert outcome.summary_written is True
        assert outcome.full_text_written is True
        assert outcome.warnings == []
        summary, full_text = coordinator.lookup("https://example.com/post-a")
        assert summary is not None and summary.urdu_summary == "ایک مختصر خلاصہ۔"
        assert full_text is not None and full_text.content.startswith("Full article text")
        assert summary.created_at == full_text.created_at

    async def test_persisting_twice_keeps_one_record_each(
        self, coordinator: PersistenceCoordinator, conn: sqlite3.Connection
    ) -> None:
        blog = _blog()
        await coordinator.persist(blog)
        await coordinator.persist(blog)

        assert _count(conn, "blog_summaries", blog.url) == 1
        assert _count(conn, "full_texts", blog.url) == 1

    async def test_reprocessing_keeps_latest_data(
        self, coordinator: PersistenceCoordinator
    ) -> None:
        await coordinator.persist(_blog(title="First", content="first content"))
        await coordinator.persist(_blog(title="Second", content="second content", summary="New."))

        summary, full_text = coordinator.lookup("https://example.com/post-a")
        assert summary is not None and summary.title == "Second"
        assert summary.summary == "New."
        assert full_text is not None and full_text.content == "second content"

    async def test_summary_failure_is_fatal_and_skips_full_text(self) -> None:
        summary_store = MagicMock()
        summary_store.name = "supabase"
        summary_store.upsert.side_effect = RuntimeError("connection refused")
        full_text_store = MagicMock()
        coordinator = PersistenceCoordinator(summary_store, full_text_store)

        with pytest.raises(PersistenceError) as exc_info:
            await coordinator.persist(_blog())

        assert exc_info.value.kind is ErrorKind.SUMMARY_WRITE_FAILED
        full_text_store.upsert.assert_not_called()

    async def test_full_text_failure_is_a_logged_warning(
        self, conn: sqlite3.Connection, caplog: pytest.LogCaptureFixture
    ) -> None:
        full_text_store = MagicMock()
        full_text_store.name = "mongodb"
        full_text_store.upsert.side_effect = RuntimeError("mongo down")
        coordinator = PersistenceCoordinator(SqliteSummaryStore(conn), full_text_store)

        with caplog.at_level(logging.WARNING, logger="summariser.db.persistence"):
            outcome = await coordinator.persist(_blog())

        assert outcome.summary_written is True
        assert outcome.full_text_written is False
        assert len(outcome.warnings) == 1
        assert "https://example.com/post-a" in outcome.warnings[0]
        assert "reconciliation" in caplog.text
        assert SqliteSummaryStore(conn).get("https://example.com/post-a") is not None


class TestBuildPersistence:
    def test_sqlite_backends(self, conn: sqlite3.Connection) -> None:
        config = Settings()
        config.summary_store = "sqlite"
        config.fulltext_store = "sqlite"
        coordinator = build_persistence(config, conn)
        assert isinstance(coordinator.summary_store, SqliteSummaryStore)
        assert isinstance(coordinator.full_text_store, SqliteFullTextStore)

    def test_sqlite_requires_connection(self) -> None:
        config = Settings()
        config.summary_store = "sqlite"
        with pytest.raises(ValueError):
            build_persistence(config, None)

    def test_unknown_backend(self, conn: sqlite3.Connection) -> None:
        config = Settings()
        config.summary_store = "redis"
        with pytest.raises(ValueError):
            build_persistence(config, conn)
