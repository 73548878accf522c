"""Persistence coordinator — writes one processed blog to both stores.

The two stores share no transaction, so the outcome is not atomic:

1. The summary record is written first.  If that fails the whole request
   fails with ``PersistenceError{SummaryWriteFailed}`` and the full-text
   write is never attempted.
2. The full-text document is written second.  If that fails the request
   still succeeds; the failure is logged at WARNING (so the document can be
   backfilled later) and returned as a warning.

Both writes are upserts keyed by URL, so reprocessing a URL replaces its
records.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from summariser.config import Settings, settings
from summariser.db.connection import Connection
from summariser.db.fulltext import FullTextStore, MongoFullTextStore, SqliteFullTextStore
from summariser.db.models import FullTextRecord, PersistOutcome, SummaryRecord, utc_now_iso
from summariser.db.summaries import SqliteSummaryStore, SummaryStore, SupabaseSummaryStore
from summariser.errors import ErrorKind, PersistenceError

if TYPE_CHECKING:
    from summariser.pipeline.models import ProcessedBlog

logger = logging.getLogger(__name__)


class PersistenceCoordinator:
    def __init__(self, summary_store: SummaryStore, full_text_store: FullTextStore) -> None:
        self.summary_store = summary_store
        self.full_text_store = full_text_store

    async def persist(self, blog: "ProcessedBlog") -> PersistOutcome:
        """Upsert the summary record, then the full-text record, for *blog*.

        Store clients are blocking, so each write runs in a worker thread.

        Raises:
            PersistenceError: ``SummaryWriteFailed`` when the summary store
                rejects the write.
        """
        created_at = utc_now_iso()
        summary_record = SummaryRecord(
            url=blog.url,
            title=blog.title,
            summary=blog.summary,
            urdu_summary=blog.urdu_summary,
            word_count=blog.word_count,
            read_time=blog.read_time,
            created_at=created_at,
        )
        full_text_record = FullTextRecord(
            url=blog.url,
            title=blog.title,
            content=blog.content,
            created_at=created_at,
        )

        outcome = PersistOutcome()
        try:
            await asyncio.to_thread(self.summary_store.upsert, summary_record)
        except Exception as exc:
            logger.error(
                "Summary write to %s store failed for %s: %s",
                self.summary_store.name, blog.url, exc,
            )
            raise PersistenceError(
                ErrorKind.SUMMARY_WRITE_FAILED,
                f"Could not save the summary for {blog.url}",
            ) from exc
        outcome.summary_written = True

        try:
            await asyncio.to_thread(self.full_text_store.upsert, full_text_record)
        except Exception as exc:
            message = f"Full text for {blog.url} was not saved ({self.full_text_store.name}): {exc}"
            logger.warning("%s; document needs reconciliation", message)
            outcome.warnings.append(message)
        else:
            outcome.full_text_written = True

        return outcome

    def lookup(self, url: str) -> tuple[Optional[SummaryRecord], Optional[FullTextRecord]]:
        """Return the current stored records for *url* (either may be ``None``)."""
        return self.summary_store.get(url), self.full_text_store.get(url)


def build_persistence(
    config: Settings = settings,
    conn: Optional[Connection] = None,
) -> PersistenceCoordinator:
    """Build the coordinator for the backends named in *config*.

    Args:
        config: Reads ``summary_store`` (``sqlite`` | ``supabase``) and
            ``fulltext_store`` (``sqlite`` | ``mongodb``).
        conn: Open, initialised SQLite connection; required when either
            backend is ``sqlite``.

    Raises:
        ValueError: For an unknown backend name or a missing connection.
    """
    def _require_conn() -> Connection:
        if conn is None:
            raise ValueError("A SQLite connection is required for the sqlite store backend")
        return conn

    summary_backend = config.summary_store.lower()
    if summary_backend == "supabase":
        summary_store: SummaryStore = SupabaseSummaryStore.from_settings(config)
    elif summary_backend == "sqlite":
        summary_store = SqliteSummaryStore(_require_conn())
    else:
        raise ValueError(f"Unknown SUMMARY_STORE backend: {config.summary_store!r}")

    fulltext_backend = config.fulltext_store.lower()
    if fulltext_backend == "mongodb":
        full_text_store: FullTextStore = MongoFullTextStore.from_settings(config)
    elif fulltext_backend == "sqlite":
        full_text_store = SqliteFullTextStore(_require_conn())
    else:
        raise ValueError(f"Unknown FULLTEXT_STORE backend: {config.fulltext_store!r}")

    logger.info(
        "Persistence: summaries -> %s, full text -> %s",
        summary_store.name, full_text_store.name,
    )
    return PersistenceCoordinator(summary_store, full_text_store)
