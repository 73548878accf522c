"""Persistence layer package.

Public re-exports so callers can write::

    from summariser.db import get_connection, init_db, build_persistence
"""

from summariser.db.connection import get_connection
from summariser.db.schema import init_db
from summariser.db.persistence import PersistenceCoordinator, build_persistence

__all__ = ["get_connection", "init_db", "build_persistence", "PersistenceCoordinator"]
