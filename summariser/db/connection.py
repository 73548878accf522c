"""SQLite connection factory for the local stores.

Usage::

    from summariser.db.connection import get_connection

    conn = get_connection()
    conn.execute("SELECT 1")
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Optional

from summariser.config import settings


class Connection(sqlite3.Connection):
    """``sqlite3.Connection`` carrying the lock that store writes hold.

    ``with conn:`` transactions are per connection, not per thread, so two
    worker threads writing at once would share (and could roll back) one
    transaction.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.write_lock = threading.Lock()


def get_connection(db_path: Optional[Path] = None) -> Connection:
    """Open and configure a SQLite connection.

    The connection is shared by the request handlers, which run store calls
    in worker threads, so it is opened with ``check_same_thread=False`` and
    writes are serialised on :attr:`Connection.write_lock`.
    WAL journal mode is enabled for concurrent readers.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.

    Returns:
        A configured :class:`Connection` with ``row_factory`` set to
        :class:`sqlite3.Row` so columns can be accessed by name.
    """
    path = db_path or settings.db_path

    # Create parent directory if needed (no-op for `:memory:`)
    if str(path) != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(str(path), check_same_thread=False, factory=Connection)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn
