"""SQLite-backed storage for the downloaded recipe corpus."""

import json
import logging
import sqlite3
from typing import Any, Iterable, List, Optional, Sequence

from cooksmart_utils.ingredients.models import RecipeIngredientItem
from cooksmart_utils.recipes.models import Recipe

from .utils import SQLiteStore, transaction

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 100

_NEWEST_FIRST = "ORDER BY created_at DESC, rowid DESC"

_UPSERT = """
INSERT INTO recipes(
    id, title, image, ready_in_minutes, servings, calories, protein, carbs, fat,
    ingredients, instructions, tags, source
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    title = excluded.title,
    image = excluded.image,
    ready_in_minutes = excluded.ready_in_minutes,
    servings = excluded.servings,
    calories = excluded.calories,
    protein = excluded.protein,
    carbs = excluded.carbs,
    fat = excluded.fat,
    ingredients = excluded.ingredients,
    instructions = excluded.instructions,
    tags = excluded.tags,
    source = excluded.source,
    updated_at = CURRENT_TIMESTAMP
"""


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _load_json_list(value: Optional[str], column: str, recipe_id: str) -> List[Any]:
    if not value:
        return []
    try:
        data = json.loads(value)
    except ValueError:
        logger.warning(f"Corrupt {column} JSON for recipe {recipe_id}")
        return []
    return data if isinstance(data, list) else []


def row_to_recipe(row: sqlite3.Row) -> Recipe:
    """Rebuild a Recipe from a ``recipes`` row."""
    recipe_id = row["id"]
    ingredients = []
    for item in _load_json_list(row["ingredients"], "ingredients", recipe_id):
        if isinstance(item, dict) and item.get("name"):
            ingredients.append(
                RecipeIngredientItem(
                    name=item["name"],
                    amount=item.get("amount") or 0.0,
                    unit=item.get("unit") or "",
                )
            )
    return Recipe(
        id=recipe_id,
        title=row["title"],
        image=row["image"] or "",
        ready_in_minutes=row["ready_in_minutes"] or 0,
        servings=row["servings"] or 0,
        calories=row["calories"] or 0,
        protein=row["protein"] or 0.0,
        carbs=row["carbs"] or 0.0,
        fat=row["fat"] or 0.0,
        ingredients=ingredients,
        instructions=[str(s) for s in _load_json_list(row["instructions"], "instructions", recipe_id)],
        tags=[str(t) for t in _load_json_list(row["tags"], "tags", recipe_id)],
        source=row["source"],
    )


def _recipe_params(recipe: Recipe) -> tuple:
    # in_pantry is derived per search and never stored
    ingredients = [
        {"name": item.name, "amount": item.amount, "unit": item.unit}
        for item in recipe.ingredients
    ]
    return (
        recipe.id,
        recipe.title,
        recipe.image,
        recipe.ready_in_minutes,
        recipe.servings,
        recipe.calories,
        recipe.protein,
        recipe.carbs,
        recipe.fat,
        json.dumps(ingredients),
        json.dumps(recipe.instructions),
        json.dumps(recipe.tags),
        recipe.source,
    )


class RecipeRepository(SQLiteStore):
    """Recipe corpus stored in the ``recipes`` and ``recipe_categories`` tables.

    Ingredients, instructions and tags are stored as JSON text. Each tag is
    also written, lower-cased, to ``recipe_categories`` for category lookups.

    Example:
        >>> repo = RecipeRepository("data/cooksmart.db")
        >>> repo.upsert_recipes(recipes)
        >>> repo.find_recipes_by_ingredient_substring(["chicken", "rice"])
    """

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[Recipe]:
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [row_to_recipe(row) for row in rows]

    def find_recipes_by_ingredient_substring(
        self, names: Sequence[str], limit: int = DEFAULT_CANDIDATE_LIMIT
    ) -> List[Recipe]:
        """Find recipes whose stored ingredients mention any of ``names``.

        This is a coarse candidate query over the ingredient JSON text; callers
        score and filter the candidates afterwards.
        """
        terms = [name for name in names if name and name.strip()]
        if not terms:
            return []
        where = " OR ".join("ingredients LIKE ? ESCAPE '\\'" for _ in terms)
        params = [_like_pattern(term.strip()) for term in terms] + [limit]
        return self._query(f"SELECT * FROM recipes WHERE {where} {_NEWEST_FIRST} LIMIT ?", params)

    def get_all_recipes(self) -> List[Recipe]:
        """Return every stored recipe, newest first."""
        return self._query(f"SELECT * FROM recipes {_NEWEST_FIRST}")

    def search_recipes(self, query: str, limit: int = 50) -> List[Recipe]:
        """Free-text search over titles, tags and ingredients."""
        pattern = _like_pattern(query.strip())
        return self._query(
            "SELECT * FROM recipes WHERE title LIKE ? ESCAPE '\\' OR tags LIKE ? ESCAPE '\\' "
            f"OR ingredients LIKE ? ESCAPE '\\' {_NEWEST_FIRST} LIMIT ?",
            (pattern, pattern, pattern, limit),
        )

    def get_recipes_by_category(self, category: str, limit: int = 50) -> List[Recipe]:
        return self._query(
            "SELECT r.* FROM recipes r "
            "WHERE r.id IN (SELECT recipe_id FROM recipe_categories WHERE category = ?) "
            "ORDER BY r.created_at DESC, r.rowid DESC LIMIT ?",
            (category.lower(), limit),
        )

    def get_recipe_by_id(self, recipe_id: str) -> Optional[Recipe]:
        recipes = self._query("SELECT * FROM recipes WHERE id = ?", (recipe_id,))
        return recipes[0] if recipes else None

    def get_available_categories(self) -> List[str]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT category FROM recipe_categories ORDER BY category"
            ).fetchall()
        return [row["category"] for row in rows]

    def count_recipes(self) -> int:
        with self.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM recipes").fetchone()[0]

    def upsert_recipes(self, recipes: Iterable[Recipe]) -> int:
        """Insert or update recipes by id in one transaction.

        Returns:
            Number of recipes written.
        """
        recipes = list(recipes)
        if not recipes:
            return 0
        with self.connect() as conn:
            with transaction(conn) as cur:
                for recipe in recipes:
                    cur.execute(_UPSERT, _recipe_params(recipe))
                    cur.execute("DELETE FROM recipe_categories WHERE recipe_id = ?", (recipe.id,))
                    categories = dict.fromkeys(tag.lower() for tag in recipe.tags if tag)
                    cur.executemany(
                        "INSERT INTO recipe_categories(recipe_id, category) VALUES (?, ?)",
                        [(recipe.id, category) for category in categories],
                    )
        logger.info(f"Saved {len(recipes)} recipes")
        return len(recipes)

    def delete_recipe(self, recipe_id: str) -> bool:
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.execute("DELETE FROM recipe_categories WHERE recipe_id = ?", (recipe_id,))
                cur.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,))
                return cur.rowcount > 0

    def clear_all_recipes(self) -> None:
        with self.connect() as conn:
            with transaction(conn) as cur:
                cur.execute("DELETE FROM recipe_categories")
                cur.execute("DELETE FROM recipes")
        logger.info("Cleared all stored recipes")
