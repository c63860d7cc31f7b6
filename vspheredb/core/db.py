"""Database helpers.

Provides `get_connection`, `init_db` and a `transaction` context manager
used by the synchronization pipeline.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings


LOG = logging.getLogger(__name__)


def get_connection() -> sqlite3.Connection:
    """Return a new sqlite3 connection using configured DB path.

    The connection runs in autocommit mode (`isolation_level=None`) so that
    transactions are only ever opened explicitly through `transaction()`.
    """
    conn = sqlite3.connect(str(settings.DB_PATH), isolation_level=None)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db() -> None:
    """Ensure the database file exists by creating parent directories
    and opening/closing a connection if the file is missing.

    This function does NOT create any tables, see `repo.schema.create_tables`.
    """
    db_path = Path(settings.DB_PATH)
    db_dir = db_path.parent
    if not db_dir.exists():
        db_dir.mkdir(parents=True, exist_ok=True)

    if not db_path.exists():
        # Connecting will create the sqlite file on disk.
        conn = sqlite3.connect(str(db_path))
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Cursor]:
    """Run the enclosed block in a single transaction.

    Commits on normal exit; rolls back and re-raises on any exception.
    """
    cur = conn.cursor()
    cur.execute("BEGIN")
    try:
        yield cur
    except BaseException:
        LOG.debug("Rolling back transaction")
        conn.rollback()
        raise
    else:
        conn.commit()


__all__ = ["get_connection", "init_db", "transaction"]
