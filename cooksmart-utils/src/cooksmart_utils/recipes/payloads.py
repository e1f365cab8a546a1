"""Conversion of untyped provider and model payloads into Recipe records.

Every mapping that comes from outside the library (a recipe API response item,
one object from a model completion, a stored JSON blob) goes through
:func:`recipe_from_payload`. Bad fields are coerced to typed defaults rather
than rejected.
"""

import logging
import secrets
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from cooksmart_utils.errors import ValidationError
from cooksmart_utils.ingredients.models import RecipeIngredientItem
from cooksmart_utils.ingredients.number_utils import safe_float, safe_int
from cooksmart_utils.ingredients.parsing import parse_ingredient_line
from cooksmart_utils.recipes.models import Recipe

logger = logging.getLogger(__name__)

DEFAULT_READY_IN_MINUTES = 30
DEFAULT_SERVINGS = 4
DEFAULT_CONFIDENCE = 80
DEFAULT_AI_TAGS = ("ai-generated",)
NO_INSTRUCTIONS = "No instructions provided"


def new_recipe_id(prefix: str = "ai", index: int = 0) -> str:
    """Synthesize a recipe id from process time and a random suffix."""
    return f"{prefix}_{time.time_ns()}_{index}_{secrets.token_hex(3)}"


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _coerce_ingredient(item: Any) -> Optional[RecipeIngredientItem]:
    if isinstance(item, str):
        if not item.strip():
            return None
        amount, unit, name = parse_ingredient_line(item)
        return RecipeIngredientItem(
            name=name,
            amount=safe_float(amount),
            unit=unit or "",
        )
    if isinstance(item, Mapping):
        name = _first(item, "name", "ingredient_name", "food", "text")
        if not isinstance(name, str) or not name.strip():
            logger.debug(f"Skipping ingredient without a name: {item!r}")
            return None
        unit = _first(item, "unit", "unit_name", "measure")
        return RecipeIngredientItem(
            name=name.strip(),
            amount=safe_float(_first(item, "amount", "quantity")),
            unit=unit.strip() if isinstance(unit, str) else "",
            in_pantry=bool(_first(item, "in_pantry", "inPantry")),
        )
    logger.debug(f"Skipping ingredient of type {type(item).__name__}")
    return None


def coerce_ingredients(value: Any) -> List[RecipeIngredientItem]:
    """Coerce a payload ``ingredients`` field into ingredient items.

    Anything that is not a list becomes an empty list. Items may be mappings
    or free-text lines such as ``"2 cups rice"``.
    """
    if not isinstance(value, list):
        if value is not None:
            logger.debug(f"ingredients is not a list: {value!r}")
        return []
    items = []
    for entry in value:
        item = _coerce_ingredient(entry)
        if item is not None:
            items.append(item)
    return items


def coerce_instructions(value: Any) -> List[str]:
    """Coerce a payload ``instructions`` field into a non-empty list of steps."""
    if isinstance(value, str):
        value = value.splitlines()
    if not isinstance(value, list):
        return [NO_INSTRUCTIONS]

    steps = []
    for step in value:
        if isinstance(step, Mapping):
            step = _first(step, "text", "step", "name")
        if step is None:
            continue
        text = str(step).strip()
        if text:
            steps.append(text)
    return steps or [NO_INSTRUCTIONS]


def coerce_tags(value: Any, default: Sequence[str] = DEFAULT_AI_TAGS) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    tags = [str(tag).strip() for tag in value if tag is not None and str(tag).strip()]
    return tags or list(default)


def clamp_confidence(value: Any, default: int = DEFAULT_CONFIDENCE) -> int:
    """Coerce a confidence score into the 0-100 range."""
    return min(100, safe_int(value, default=default))


def recipe_from_payload(
    payload: Any,
    *,
    recipe_id: Optional[str] = None,
    default_tags: Sequence[str] = DEFAULT_AI_TAGS,
    source: Optional[str] = None,
    with_confidence: bool = True,
) -> Recipe:
    """Convert one untyped payload into a validated Recipe.

    Args:
        payload: Mapping from a provider or the model. Every field is optional
            and may have the wrong type.
        recipe_id: Id to assign. When omitted one is synthesized; an id found
            in the payload is never trusted.
        default_tags: Tags used when the payload has none.
        source: Source tag to record on the recipe.
        with_confidence: Whether to attach a ``confidence_score``. Only the
            model path carries one.

    Returns:
        A Recipe with every field typed and in range.

    Raises:
        ValidationError: If ``payload`` is not a mapping.

    Examples:
        >>> r = recipe_from_payload({"title": "Soup", "servings": "2"}, recipe_id="x")
        >>> (r.title, r.servings, r.ready_in_minutes, r.instructions)
        ('Soup', 2, 30, ['No instructions provided'])
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Recipe payload must be a mapping, got {type(payload).__name__}")

    title = _first(payload, "title", "name", "label")
    title = str(title).strip() if title is not None else ""
    if not title:
        logger.debug("Payload has no title; using placeholder")
        title = "Untitled Recipe"

    image = _first(payload, "image", "image_url")
    nutrition = payload.get("nutrition")
    if not isinstance(nutrition, Mapping):
        nutrition = {}

    def _nutrient(key: str) -> Any:
        value = _first(payload, key)
        return value if value is not None else nutrition.get(key)

    recipe = Recipe(
        id=recipe_id or new_recipe_id(),
        title=title,
        image=image if isinstance(image, str) else "",
        ready_in_minutes=safe_int(
            _first(payload, "ready_in_minutes", "readyInMinutes", "cooking_time"),
            default=DEFAULT_READY_IN_MINUTES,
        ),
        servings=safe_int(_first(payload, "servings", "yield"), default=DEFAULT_SERVINGS),
        calories=safe_int(_nutrient("calories")),
        protein=safe_float(_nutrient("protein")),
        carbs=safe_float(_nutrient("carbs")),
        fat=safe_float(_nutrient("fat")),
        ingredients=coerce_ingredients(payload.get("ingredients")),
        instructions=coerce_instructions(payload.get("instructions")),
        tags=coerce_tags(payload.get("tags"), default_tags),
        source=source,
    )
    if with_confidence:
        recipe.confidence_score = clamp_confidence(
            _first(payload, "confidence_score", "confidenceScore", "confidence")
        )
    return recipe


def recipes_from_payloads(
    payloads: Iterable[Any],
    *,
    id_prefix: str = "ai",
    default_tags: Sequence[str] = DEFAULT_AI_TAGS,
    source: Optional[str] = None,
    with_confidence: bool = True,
) -> List[Recipe]:
    """Convert a sequence of payloads, skipping the ones that are not mappings."""
    recipes = []
    for index, payload in enumerate(payloads):
        try:
            recipes.append(
                recipe_from_payload(
                    payload,
                    recipe_id=new_recipe_id(id_prefix, index),
                    default_tags=default_tags,
                    source=source,
                    with_confidence=with_confidence,
                )
            )
        except ValidationError as e:
            logger.debug(f"Skipping payload {index}: {e}")
    return recipes
