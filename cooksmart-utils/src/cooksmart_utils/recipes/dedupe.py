"""Title-based recipe deduplication across sources."""

import re
from typing import Iterable, List

from cooksmart_utils.recipes.models import Recipe


def dedupe_key(title: str) -> str:
    """Normalize a recipe title into its deduplication key.

    Lower-cases, strips every character that is neither a word character nor
    whitespace, and collapses runs of whitespace.

    Examples:
        >>> dedupe_key("Chicken, Soup!!")
        'chicken soup'
    """
    key = re.sub(r"[^\w\s]", "", title.lower())
    key = re.sub(r"\s+", " ", key)
    return key.strip()


def dedupe_recipes(recipes: Iterable[Recipe]) -> List[Recipe]:
    """Drop recipes whose title key was already seen.

    Order is preserved and the first occurrence wins, so callers should pass
    results concatenated in source priority order. Duplicates are dropped
    whole; no fields are merged. Run this before any max-results truncation.
    """
    seen = set()
    unique = []
    for recipe in recipes:
        key = dedupe_key(recipe.title)
        if key in seen:
            continue
        seen.add(key)
        unique.append(recipe)
    return unique
