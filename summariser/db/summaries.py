"""Summary stores — one current :class:`SummaryRecord` per URL.

Backends
--------
``supabase``
    Postgres table behind Supabase, written with the ``supabase`` client.
    The table needs a unique constraint on ``url`` for ``on_conflict``.

``sqlite`` (default)
    ``blog_summaries`` table in the local workspace database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from summariser.config import Settings, settings
from summariser.db.connection import Connection
from summariser.db.models import SummaryRecord


class SummaryStore(ABC):
    """Upsert-by-URL sink for summary records."""

    name = "summary"

    @abstractmethod
    def upsert(self, record: SummaryRecord) -> None:
        """Insert *record*, replacing any existing record for the same URL."""

    @abstractmethod
    def get(self, url: str) -> Optional[SummaryRecord]:
        """Return the current record for *url*, or ``None``."""


class SqliteSummaryStore(SummaryStore):
    name = "sqlite"

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def upsert(self, record: SummaryRecord) -> None:
        with self._conn.write_lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO blog_summaries
                    (url, title, summary, urdu_summary, word_count, read_time, created_at)
                VALUES (:url, :title, :summary, :urdu_summary, :word_count, :read_time, :created_at)
                ON CONFLICT(url) DO UPDATE SET
                    title        = excluded.title,
                    summary      = excluded.summary,
                    urdu_summary = excluded.urdu_summary,
                    word_count   = excluded.word_count,
                    read_time    = excluded.read_time,
                    created_at   = excluded.created_at
                """,
                record.to_row(),
            )

    def get(self, url: str) -> Optional[SummaryRecord]:
        row = self._conn.execute(
            "SELECT * FROM blog_summaries WHERE url = ?", (url,)
        ).fetchone()
        return SummaryRecord.from_row(row) if row else None


class SupabaseSummaryStore(SummaryStore):
    name = "supabase"

    def __init__(self, client: Any, table: str = "blog_summaries") -> None:
        self._client = client
        self._table = table

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SupabaseSummaryStore":
        """Build a store from ``SUPABASE_URL`` / ``SUPABASE_KEY``.

        Raises:
            EnvironmentError: If either variable is missing.
        """
        if not config.supabase_url or not config.supabase_key:
            raise EnvironmentError(
                "SUPABASE_URL and SUPABASE_KEY must be set when SUMMARY_STORE=supabase."
            )
        from supabase import create_client

        return cls(create_client(config.supabase_url, config.supabase_key), config.supabase_table)

    def upsert(self, record: SummaryRecord) -> None:
        (
            self._client.table(self._table)
            .upsert(record.to_row(), on_conflict="url")
            .execute()
        )

    def get(self, url: str) -> Optional[SummaryRecord]:
        response = (
            self._client.table(self._table)
            .select("*")
            .eq("url", url)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return SummaryRecord.from_row(rows[0]) if rows else None
