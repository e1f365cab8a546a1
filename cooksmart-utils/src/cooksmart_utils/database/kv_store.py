"""Small string key-value store persisted in SQLite."""

from typing import Iterable, Optional

from .utils import SQLiteStore, transaction


class SQLiteKeyValueStore(SQLiteStore):
    """String key-value pairs in the ``kv_store`` table.

    Used by the AI recipe cache to persist its recipes and invalidation flag
    across restarts.
    """

    def get_item(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.execute(
                    "INSERT INTO kv_store(key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )

    def remove_item(self, key: str) -> None:
        self.multi_remove([key])

    def multi_remove(self, keys: Iterable[str]) -> None:
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.executemany("DELETE FROM kv_store WHERE key = ?", [(key,) for key in keys])
