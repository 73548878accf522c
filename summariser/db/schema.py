"""Schema setup for the local SQLite stores.

``init_db(conn)`` is idempotent and safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

from summariser.config import settings


def init_db(conn: sqlite3.Connection) -> None:
    """Create the summary and full-text tables.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this repeatedly on
    the same database is safe.
    """
    conn.executescript(settings.schema_path.read_text(encoding="utf-8"))
