"""Ingredient parsing, normalization and pantry matching utilities."""

from .matching import (
    PARTIAL,
    STRICT,
    STRICT_MATCH_THRESHOLD,
    filter_recipes,
    mark_pantry_items,
    passes_filter,
    score,
    score_recipe,
)
from .models import Ingredient, RecipeIngredientItem
from .normalization import (
    extract_search_tokens,
    format_category,
    normalize_ingredient_name,
    normalize_pantry_name,
    smart_title_case,
)
from .parsing import clean_ingredient_name, normalize_unit, parse_ingredient_line
from .products import ingredient_from_product

__all__ = [
    "Ingredient",
    "RecipeIngredientItem",
    "normalize_ingredient_name",
    "normalize_pantry_name",
    "extract_search_tokens",
    "format_category",
    "smart_title_case",
    "parse_ingredient_line",
    "clean_ingredient_name",
    "normalize_unit",
    "ingredient_from_product",
    "STRICT",
    "PARTIAL",
    "STRICT_MATCH_THRESHOLD",
    "score",
    "score_recipe",
    "passes_filter",
    "filter_recipes",
    "mark_pantry_items",
]
