"""AI recipe generation: prompts, model client, parsing and the result cache."""

from .cache import CACHE_KEY, INVALIDATION_KEY, RecipeCacheManager
from .client import BedrockRecipeModel, RecipeModel
from .config import (
    DEFAULT_AI_CONFIG,
    AIServiceConfig,
    RecipePreferences,
    validate_ai_config,
)
from .generation import generate_ai_recipes_from_pantry
from .prompts import build_recipe_prompt

__all__ = [
    "AIServiceConfig",
    "DEFAULT_AI_CONFIG",
    "RecipePreferences",
    "validate_ai_config",
    "build_recipe_prompt",
    "RecipeModel",
    "BedrockRecipeModel",
    "RecipeCacheManager",
    "CACHE_KEY",
    "INVALIDATION_KEY",
    "generate_ai_recipes_from_pantry",
]
