"""Pantry ingredient storage."""

import dataclasses
import datetime
import logging
import sqlite3
import uuid
from typing import TYPE_CHECKING, List, Optional

from cooksmart_utils.ingredients.models import Ingredient

from .utils import DbPath, SQLiteStore, transaction

if TYPE_CHECKING:
    from cooksmart_utils.ai.cache import RecipeCacheManager

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id", "name", "category", "calories", "protein", "carbs", "fat",
    "serving_size", "serving_unit", "common_names", "added_at", "count",
)


def _row_to_ingredient(row: sqlite3.Row) -> Ingredient:
    return Ingredient(
        id=row["id"],
        name=row["name"],
        category=row["category"] or "",
        calories=row["calories"] or 0.0,
        protein=row["protein"] or 0.0,
        carbs=row["carbs"] or 0.0,
        fat=row["fat"] or 0.0,
        serving_size=row["serving_size"] or 0.0,
        serving_unit=row["serving_unit"] or "",
        common_names=row["common_names"] or "",
        added_at=row["added_at"],
        count=row["count"] or 1,
    )


def _values(ingredient: Ingredient) -> tuple:
    return tuple(getattr(ingredient, column) for column in _COLUMNS)


class PantryStore(SQLiteStore):
    """The user's pantry, stored in the ``ingredients`` table.

    Every mutation tells the AI recipe cache that the pantry changed: the cache
    is invalidated, or cleared outright when the pantry ends up empty.

    Args:
        db_path: Path to the SQLite database file.
        cache: Recipe cache to notify on mutation. Optional so the pantry can
            be used on its own.
    """

    def __init__(self, db_path: DbPath, cache: Optional["RecipeCacheManager"] = None):
        super().__init__(db_path)
        self.cache = cache

    def _count(self, conn: sqlite3.Connection) -> int:
        return conn.execute("SELECT COUNT(*) FROM ingredients").fetchone()[0]

    def _pantry_changed(self, remaining: int) -> None:
        if self.cache is None:
            return
        if remaining == 0:
            self.cache.clear_cache()
        else:
            self.cache.invalidate()

    def get_ingredients(self) -> List[Ingredient]:
        """Return every pantry item, most recently added first."""
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM ingredients ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [_row_to_ingredient(row) for row in rows]

    def get_ingredient_names(self) -> List[str]:
        return [ingredient.name for ingredient in self.get_ingredients()]

    def search_ingredients(self, query: str) -> List[Ingredient]:
        """Find pantry items by name or alias."""
        pattern = f"%{query.strip()}%"
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM ingredients WHERE name LIKE ? OR common_names LIKE ? "
                "ORDER BY name ASC",
                (pattern, pattern),
            ).fetchall()
        return [_row_to_ingredient(row) for row in rows]

    def add_ingredient(self, ingredient: Ingredient) -> Ingredient:
        """Add an item, or bump the count of an identical one.

        An existing row with the same name, category, serving size and serving
        unit gets its count incremented and its nutrition and aliases replaced.
        Otherwise a new row is inserted with a count of one.

        Returns:
            The stored ingredient.
        """
        with self.connect() as conn:
            with transaction(conn) as cur:
                existing = cur.execute(
                    "SELECT * FROM ingredients WHERE name = ? AND category = ? "
                    "AND serving_size = ? AND serving_unit = ?",
                    (
                        ingredient.name,
                        ingredient.category,
                        ingredient.serving_size,
                        ingredient.serving_unit,
                    ),
                ).fetchone()

                if existing is not None:
                    stored = dataclasses.replace(
                        ingredient,
                        id=existing["id"],
                        added_at=existing["added_at"],
                        count=(existing["count"] or 1) + 1,
                    )
                    cur.execute(
                        "UPDATE ingredients SET calories = ?, protein = ?, carbs = ?, fat = ?, "
                        "common_names = ?, count = ? WHERE id = ?",
                        (
                            stored.calories,
                            stored.protein,
                            stored.carbs,
                            stored.fat,
                            stored.common_names,
                            stored.count,
                            stored.id,
                        ),
                    )
                    logger.info(f"Incremented {stored.name} to {stored.count}")
                else:
                    stored = dataclasses.replace(
                        ingredient,
                        id=ingredient.id or uuid.uuid4().hex,
                        added_at=ingredient.added_at
                        or datetime.datetime.now(datetime.timezone.utc).isoformat(),
                        count=1,
                    )
                    cur.execute(
                        f"INSERT INTO ingredients({', '.join(_COLUMNS)}) "
                        f"VALUES ({', '.join('?' for _ in _COLUMNS)})",
                        _values(stored),
                    )
                    logger.info(f"Added {stored.name} to pantry")
            remaining = self._count(conn)

        self._pantry_changed(remaining)
        return stored

    def update_ingredient(self, ingredient: Ingredient) -> bool:
        """Overwrite a pantry item by id.

        Returns:
            False if no item has that id.
        """
        if not ingredient.id:
            raise ValueError("update_ingredient needs an ingredient id")
        assignments = ", ".join(f"{column} = ?" for column in _COLUMNS[1:])
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.execute(
                    f"UPDATE ingredients SET {assignments} WHERE id = ?",
                    _values(ingredient)[1:] + (ingredient.id,),
                )
                updated = cur.rowcount > 0
            remaining = self._count(conn)

        if updated:
            self._pantry_changed(remaining)
        return updated

    def remove_ingredient(self, ingredient_id: str) -> bool:
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.execute("DELETE FROM ingredients WHERE id = ?", (ingredient_id,))
                removed = cur.rowcount > 0
            remaining = self._count(conn)

        if removed:
            self._pantry_changed(remaining)
        return removed

    def clear_ingredients(self) -> None:
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.execute("DELETE FROM ingredients")
        logger.info("Cleared pantry")
        self._pantry_changed(0)
