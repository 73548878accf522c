"""Full-text stores — one current :class:`FullTextRecord` document per URL.

Backends
--------
``mongodb``
    A ``pymongo`` collection with a unique index on ``url``.

``sqlite`` (default)
    ``full_texts`` table in the local workspace database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from summariser.config import Settings, settings
from summariser.db.connection import Connection
from summariser.db.models import FullTextRecord


class FullTextStore(ABC):
    """Upsert-by-URL sink for full article text."""

    name = "full-text"

    @abstractmethod
    def upsert(self, record: FullTextRecord) -> None:
        """Insert *record*, replacing any existing document for the same URL."""

    @abstractmethod
    def get(self, url: str) -> Optional[FullTextRecord]:
        """Return the current document for *url*, or ``None``."""


class SqliteFullTextStore(FullTextStore):
    name = "sqlite"

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def upsert(self, record: FullTextRecord) -> None:
        with self._conn.write_lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO full_texts (url, title, content, created_at)
                VALUES (:url, :title, :content, :created_at)
                ON CONFLICT(url) DO UPDATE SET
                    title      = excluded.title,
                    content    = excluded.content,
                    created_at = excluded.created_at
                """,
                record.to_row(),
            )

    def get(self, url: str) -> Optional[FullTextRecord]:
        row = self._conn.execute(
            "SELECT * FROM full_texts WHERE url = ?", (url,)
        ).fetchone()
        return FullTextRecord.from_row(row) if row else None


class MongoFullTextStore(FullTextStore):
    name = "mongodb"

    def __init__(self, collection: Any) -> None:
        self._collection = collection
        self._indexed = False

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "MongoFullTextStore":
        """Build a store from ``MONGODB_URI``.

        ``MongoClient`` connects lazily, so an unavailable server surfaces on
        the first write rather than at startup.
        """
        from pymongo import MongoClient

        client = MongoClient(config.mongodb_uri, serverSelectionTimeoutMS=5000)
        return cls(client[config.mongodb_database][config.mongodb_collection])

    def ensure_indexes(self) -> None:
        """Create the unique ``url`` index (no-op when it already exists)."""
        self._collection.create_index("url", unique=True)
        self._indexed = True

    def upsert(self, record: FullTextRecord) -> None:
        if not self._indexed:
            self.ensure_indexes()
        self._collection.update_one(
            {"url": record.url},
            {"$set": record.to_row()},
            upsert=True,
        )

    def get(self, url: str) -> Optional[FullTextRecord]:
        doc = self._collection.find_one({"url": url}, {"_id": 0})
        return FullTextRecord.from_row(doc) if doc else None
