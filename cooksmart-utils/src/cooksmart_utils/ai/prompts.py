"""Prompt construction for pantry-based recipe generation."""

from typing import Optional, Sequence

from cooksmart_utils.ai.config import RecipePreferences
from cooksmart_utils.ingredients.models import Ingredient

RESPONSE_SHAPE = """[
  {
    "title": "Recipe name",
    "ready_in_minutes": 30,
    "servings": 4,
    "calories": 450,
    "protein": 30,
    "carbs": 40,
    "fat": 15,
    "ingredients": [{"name": "chicken breast", "amount": 2, "unit": "piece"}],
    "instructions": ["Step one", "Step two"],
    "tags": ["ai-generated", "quick"],
    "confidence_score": 85
  }
]"""


def _describe(ingredient: Ingredient) -> str:
    if ingredient.count > 1:
        return f"{ingredient.name} (x{ingredient.count})"
    return ingredient.name


def _join(values: Sequence[str]) -> str:
    return ", ".join(v for v in values if v)


def build_recipe_prompt(
    ingredients: Sequence[Ingredient],
    count: int,
    preferences: Optional[RecipePreferences] = None,
) -> str:
    """Build the model prompt asking for ``count`` recipes from the pantry.

    The prompt asks for a bare JSON array so the completion can go straight to
    ``parse_recipe_response``.
    """
    preferences = preferences or RecipePreferences()
    pantry = "\n".join(f"- {_describe(i)}" for i in ingredients)

    constraints = [
        f"Total time at most {preferences.max_cooking_time} minutes.",
        f"Each recipe serves {preferences.serving_size}.",
        f"Suitable for a {preferences.skill_level} cook.",
    ]
    if preferences.dietary_restrictions:
        constraints.append(f"Dietary restrictions: {_join(preferences.dietary_restrictions)}.")
    if preferences.cooking_styles:
        constraints.append(f"Cooking styles: {_join(preferences.cooking_styles)}.")
    if preferences.preferred_cuisines:
        constraints.append(f"Preferred cuisines: {_join(preferences.preferred_cuisines)}.")
    if preferences.avoid_ingredients:
        constraints.append(f"Never use: {_join(preferences.avoid_ingredients)}.")
    if preferences.nutrition_focus != "none":
        constraints.append(f"Nutrition focus: {preferences.nutrition_focus}.")
    rules = "\n".join(f"- {c}" for c in constraints)

    return f"""
You are an experienced home cook. Create {count} different recipes that make the
most of the ingredients in this pantry. Common staples (salt, pepper, oil, water)
may be assumed.

Pantry:
{pantry}

Requirements:
{rules}

Respond with only a JSON array of {count} objects in exactly this shape, with no
text before or after it:
{RESPONSE_SHAPE}

"confidence_score" is 0-100 and says how well the recipe fits the pantry.
"""
