"""CookSmart Utils - Recipe discovery for the CookSmart pantry app."""

__version__ = "0.1.0"

from . import ai, database, discovery, ingredients, recipes, scraping
from .errors import (
    ConcurrencyError,
    NetworkError,
    NoIngredientsError,
    ParseError,
    RecipeDiscoveryError,
    ValidationError,
)
from .ingredients.normalization import normalize_ingredient_name

__all__ = [
    "ai",
    "database",
    "discovery",
    "ingredients",
    "recipes",
    "scraping",
    "RecipeDiscoveryError",
    "NetworkError",
    "ParseError",
    "ValidationError",
    "ConcurrencyError",
    "NoIngredientsError",
    "normalize_ingredient_name",
]
