"""SQLite persistence: recipe corpus, pantry and key-value storage."""

from .kv_store import SQLiteKeyValueStore
from .pantry import PantryStore
from .repository import RecipeRepository
from .schema import DDL, create_schema
from .utils import SQLiteStore, get_connection, transaction

__all__ = [
    "DDL",
    "create_schema",
    "get_connection",
    "transaction",
    "SQLiteStore",
    "RecipeRepository",
    "SQLiteKeyValueStore",
    "PantryStore",
]
