"""Database utility functions for the CookSmart SQLite database."""

import contextlib
import logging
import pathlib
import sqlite3
import threading
from typing import Generator, Union

from .schema import create_schema

logger = logging.getLogger(__name__)

DbPath = Union[str, pathlib.Path]


def get_connection(db_path: DbPath) -> sqlite3.Connection:
    """Get a SQLite database connection with foreign keys enabled.

    Rows come back as ``sqlite3.Row`` so columns can be read by name.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        SQLite connection with foreign keys enabled
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextlib.contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Cursor, None, None]:
    """Context manager for database transactions.

    Args:
        conn: SQLite database connection

    Yields:
        Database cursor for executing queries

    Example:
        with transaction(conn) as cur:
            cur.execute("DELETE FROM recipes WHERE id = ?", ("spoonacular_1",))
    """
    cur = conn.cursor()
    try:
        yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise


class SQLiteStore:
    """Base for stores that open one connection per operation.

    The schema is created on first use. Concurrent first callers block on a
    lock until it exists. Per-operation connections make instances safe to
    share between threads; this also means ``":memory:"`` is not a usable
    path, since every connection would see a fresh database.
    """

    def __init__(self, db_path: DbPath):
        self.db_path = db_path
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def _ensure_schema(self) -> None:
        with self._schema_lock:
            if self._schema_ready:
                return
            pathlib.Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = get_connection(self.db_path)
            try:
                create_schema(conn)
            finally:
                conn.close()
            logger.debug(f"Schema ready in {self.db_path}")
            self._schema_ready = True

    @contextlib.contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection for one operation, creating the schema if needed."""
        self._ensure_schema()
        conn = get_connection(self.db_path)
        try:
            yield conn
        finally:
            conn.close()
