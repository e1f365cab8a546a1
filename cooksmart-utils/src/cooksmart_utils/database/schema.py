"""Database schema definitions for the CookSmart SQLite database."""

import sqlite3

DDL = """
CREATE TABLE IF NOT EXISTS recipes(
    id               TEXT PRIMARY KEY NOT NULL,
    title            TEXT NOT NULL,
    image            TEXT,
    ready_in_minutes INTEGER,
    servings         INTEGER,
    calories         INTEGER,
    protein          REAL,
    carbs            REAL,
    fat              REAL,
    ingredients      TEXT NOT NULL,  -- JSON list of ingredient items
    instructions     TEXT NOT NULL,  -- JSON list of steps
    tags             TEXT,           -- JSON list
    source           TEXT,
    created_at       DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at       DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS recipe_categories(
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    recipe_id TEXT NOT NULL,
    category  TEXT NOT NULL,
    FOREIGN KEY(recipe_id) REFERENCES recipes(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_recipes_title ON recipes(title);
CREATE INDEX IF NOT EXISTS idx_recipes_calories ON recipes(calories);
CREATE INDEX IF NOT EXISTS idx_recipes_ready_in_minutes ON recipes(ready_in_minutes);
CREATE INDEX IF NOT EXISTS idx_recipe_categories_category ON recipe_categories(category);

CREATE TABLE IF NOT EXISTS ingredients(
    id           TEXT PRIMARY KEY,
    name         TEXT NOT NULL,
    category     TEXT,
    calories     REAL,
    protein      REAL,
    carbs        REAL,
    fat          REAL,
    serving_size REAL,
    serving_unit TEXT,
    common_names TEXT,
    added_at     TEXT,
    count        INTEGER DEFAULT 1,
    created_at   DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS kv_store(
    key   TEXT PRIMARY KEY NOT NULL,
    value TEXT NOT NULL
);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create every CookSmart table and index if missing.

    Args:
        conn: SQLite database connection
    """
    conn.executescript(DDL)
    conn.execute("PRAGMA foreign_keys = ON")
