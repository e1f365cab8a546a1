"""Pantry-based recipe generation."""

import logging
from typing import List, Optional, Sequence

from cooksmart_utils.ai.client import BedrockRecipeModel, RecipeModel
from cooksmart_utils.ai.config import DEFAULT_AI_CONFIG, RecipePreferences
from cooksmart_utils.ai.prompts import build_recipe_prompt
from cooksmart_utils.errors import NetworkError
from cooksmart_utils.ingredients.models import Ingredient
from cooksmart_utils.recipes.models import Recipe
from cooksmart_utils.recipes.repair import (
    NETWORK_ERROR_TAG,
    make_diagnostic_recipe,
    parse_recipe_response,
)

logger = logging.getLogger(__name__)


def network_error_recipe(error: Exception) -> Recipe:
    return make_diagnostic_recipe(
        "Recipe Generation Unavailable",
        [
            "The recipe generator could not be reached.",
            f"Error: {error}",
            "Check your connection and AWS credentials, then try again.",
        ],
        NETWORK_ERROR_TAG,
    )


def generate_ai_recipes_from_pantry(
    ingredients: Sequence[Ingredient],
    count: Optional[int] = None,
    preferences: Optional[RecipePreferences] = None,
    model: Optional[RecipeModel] = None,
) -> List[Recipe]:
    """Ask the model for recipes that use the pantry.

    This never raises. Model failures come back as a single recipe tagged
    ``network-error``; unparseable output as one tagged ``parsing-error``.

    Args:
        ingredients: Pantry items to cook with.
        count: Number of recipes wanted. Defaults to the configured count.
        preferences: Cooking preferences; first-run defaults when omitted.
        model: Text model to call. Defaults to Bedrock with default settings.

    Returns:
        Between one and ``count`` recipes. An empty pantry returns an empty list.
    """
    if not ingredients:
        logger.warning("No pantry ingredients; skipping generation")
        return []

    count = count or DEFAULT_AI_CONFIG.default_recipe_count
    model = model or BedrockRecipeModel()
    prompt = build_recipe_prompt(ingredients, count, preferences)

    logger.info(f"Generating {count} recipes from {len(ingredients)} pantry items")
    try:
        completion = model.complete(prompt)
    except NetworkError as e:
        logger.warning(f"Recipe generation failed: {e}")
        return [network_error_recipe(e)]
    except Exception as e:
        logger.exception("Unexpected error from the recipe model")
        return [network_error_recipe(e)]

    return parse_recipe_response(completion, count)
