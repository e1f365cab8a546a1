"""Recipe model, deduplication, payload conversion and recipe sources."""

from .dedupe import dedupe_key, dedupe_recipes
from .models import Recipe
from .parsing import parse_recipe_html
from .payloads import recipe_from_payload, recipes_from_payloads
from .repair import is_diagnostic, parse_recipe_response
from .sources import (
    EdamamRecipeSource,
    RecipeSource,
    SpoonacularRecipeSource,
    WebsiteRecipeSource,
    default_website_sources,
    get_product_by_barcode,
)

__all__ = [
    "Recipe",
    "dedupe_key",
    "dedupe_recipes",
    "parse_recipe_html",
    "recipe_from_payload",
    "recipes_from_payloads",
    "parse_recipe_response",
    "is_diagnostic",
    "RecipeSource",
    "SpoonacularRecipeSource",
    "EdamamRecipeSource",
    "WebsiteRecipeSource",
    "default_website_sources",
    "get_product_by_barcode",
]
