"""Recipe-vs-pantry match scoring and inclusion policies."""

import dataclasses
import math
from typing import TYPE_CHECKING, Iterable, List, Sequence

if TYPE_CHECKING:
    from cooksmart_utils.recipes.models import Recipe

STRICT = "strict"
PARTIAL = "partial"
MATCH_MODES = (STRICT, PARTIAL)

# Share of a recipe's ingredients the pantry must cover in strict mode.
# Override per call with the strict_threshold argument.
STRICT_MATCH_THRESHOLD = 0.8

# Minimum number of matched recipe ingredients in partial mode
PARTIAL_MATCH_MINIMUM = 1


def _lower_all(names: Iterable[str]) -> List[str]:
    return [name.lower() for name in names]


def _pantry_terms(names: Iterable[str]) -> List[str]:
    # blank names would otherwise match every recipe ingredient
    return [name.lower().strip() for name in names if name and name.strip()]


def ingredient_matches(recipe_ingredient: str, pantry_names: Sequence[str]) -> bool:
    """Check a lower-cased recipe ingredient against lower-cased pantry names.

    Containment is bidirectional: "chicken" matches "chicken breast" and
    "chicken breast" matches "chicken".
    """
    if not recipe_ingredient:
        return False
    return any(
        recipe_ingredient in pantry_name or pantry_name in recipe_ingredient
        for pantry_name in pantry_names
    )


def count_matches(recipe_ingredients: Iterable[str], pantry_names: Iterable[str]) -> int:
    """Count how many recipe ingredients are satisfied by the pantry."""
    pantry = _pantry_terms(pantry_names)
    return sum(
        1 for ingredient in _lower_all(recipe_ingredients) if ingredient_matches(ingredient, pantry)
    )


def score(recipe_ingredients: Sequence[str], pantry_names: Iterable[str]) -> int:
    """Compute the 0-100 match score of a recipe's ingredient names.

    Args:
        recipe_ingredients: Ingredient names from one recipe.
        pantry_names: Names of the ingredients the user owns.

    Returns:
        Percentage of recipe ingredients found in the pantry, rounded half up.
        A recipe with no ingredients scores 0.

    Examples:
        >>> score(["chicken", "rice"], ["chicken"])
        50
    """
    total = len(recipe_ingredients)
    if total == 0:
        return 0
    matched = count_matches(recipe_ingredients, pantry_names)
    return int(math.floor(matched / total * 100 + 0.5))


def _ingredient_names(recipe: "Recipe") -> List[str]:
    return [item.name for item in recipe.ingredients]


def score_recipe(recipe: "Recipe", pantry_names: Iterable[str]) -> int:
    """Match score of a Recipe against the pantry."""
    return score(_ingredient_names(recipe), pantry_names)


def passes_filter(
    recipe: "Recipe",
    pantry_names: Iterable[str],
    mode: str,
    strict_threshold: float = STRICT_MATCH_THRESHOLD,
) -> bool:
    """Decide whether a recipe is included under a matching policy.

    ``strict`` requires the matched count to reach ``floor(total * threshold)``;
    ``partial`` requires at least one matched ingredient.

    Raises:
        ValueError: If ``mode`` is not "strict" or "partial".
    """
    if mode not in MATCH_MODES:
        raise ValueError(f"Unknown match mode: {mode!r}")

    names = _ingredient_names(recipe)
    matched = count_matches(names, pantry_names)
    if mode == STRICT:
        return matched >= math.floor(len(names) * strict_threshold)
    return matched >= PARTIAL_MATCH_MINIMUM


def filter_recipes(
    recipes: Iterable["Recipe"],
    pantry_names: Sequence[str],
    mode: str,
    strict_threshold: float = STRICT_MATCH_THRESHOLD,
) -> List["Recipe"]:
    """Filter a stored-corpus listing by the pantry.

    An empty pantry means no filtering at all; every recipe is returned.
    """
    recipes = list(recipes)
    if not pantry_names:
        return recipes
    return [
        recipe
        for recipe in recipes
        if passes_filter(recipe, pantry_names, mode, strict_threshold)
    ]


def mark_pantry_items(recipe: "Recipe", pantry_names: Iterable[str]) -> "Recipe":
    """Return a copy of ``recipe`` with ``in_pantry`` set on each ingredient."""
    pantry = _pantry_terms(pantry_names)
    items = [
        dataclasses.replace(item, in_pantry=ingredient_matches(item.name.lower(), pantry))
        for item in recipe.ingredients
    ]
    return dataclasses.replace(recipe, ingredients=items)
