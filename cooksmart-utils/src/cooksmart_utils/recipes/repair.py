"""Tolerant parsing of generative model output into Recipe records.

Model completions drift from the requested format: they get wrapped in
Markdown fences, cut off at the token limit, or padded with prose around the
JSON. :func:`parse_recipe_response` runs a fixed sequence of repair tiers and
takes the first one that yields at least one JSON object. If every tier fails
the caller still gets a single diagnostic recipe describing the failure.
"""

import json
import logging
import re
from typing import Any, Callable, List, Sequence, Tuple

from cooksmart_utils.errors import ParseError
from cooksmart_utils.recipes.models import Recipe
from cooksmart_utils.recipes.payloads import new_recipe_id, recipes_from_payloads

logger = logging.getLogger(__name__)

AI_TAG = "ai-generated"
PARSING_ERROR_TAG = "parsing-error"
NETWORK_ERROR_TAG = "network-error"
DIAGNOSTIC_TAGS = (PARSING_ERROR_TAG, NETWORK_ERROR_TAG)
DIAGNOSTIC_CONFIDENCE = 50

# How much of the raw completion is echoed back in a parsing diagnostic
RAW_EXCERPT_LENGTH = 500

_FENCE = re.compile(r"```(?:json|JSON)?")
_ARRAY = re.compile(r"\[[\s\S]*\]")
_OBJECT = re.compile(r"\{[\s\S]*?\}(?=\s*,\s*\{|\s*\]?\s*$)")

_RECIPE_KEYS = ("title", "name", "ingredients", "instructions")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences around a completion.

    Examples:
        >>> strip_code_fences('```json\\n[{"title": "Soup"}]\\n```')
        '[{"title": "Soup"}]'
    """
    return _FENCE.sub("", text).strip()


def repair_truncated_array(text: str) -> str:
    """Close a JSON array that was cut off mid-object.

    Only applies when the text contains ``[`` and does not end with ``]``.
    Missing closing braces are appended first, then the closing bracket.

    Examples:
        >>> repair_truncated_array('[{"title": "Soup"')
        '[{"title": "Soup"}]'
    """
    if "[" not in text or text.endswith("]"):
        return text
    missing = text.count("{") - text.count("}")
    if missing > 0:
        text += "}" * missing
    if not text.endswith("]"):
        text += "]"
    return text


def _objects_only(value: Any) -> List[dict]:
    if not isinstance(value, list):
        raise ParseError(f"Expected a JSON array, got {type(value).__name__}")
    objects = [item for item in value if isinstance(item, dict)]
    if not objects:
        raise ParseError("JSON array holds no objects")
    return objects


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise ParseError(str(e)) from e


def _extract_array(text: str) -> List[dict]:
    """Parse the span from the first ``[`` to the last ``]``."""
    match = _ARRAY.search(text)
    if not match:
        raise ParseError("No JSON array found")
    try:
        return _objects_only(_loads(match.group(0)))
    except ParseError:
        # prose after the array: decode the first complete array only
        try:
            value, _ = json.JSONDecoder().raw_decode(text, match.start())
        except ValueError as e:
            raise ParseError(str(e)) from e
        return _objects_only(value)


def _looks_like_recipe(obj: Any) -> bool:
    return isinstance(obj, dict) and any(key in obj for key in _RECIPE_KEYS)


def _scan_objects(text: str) -> List[dict]:
    """Decode every complete recipe-like object, skipping broken ones."""
    decoder = json.JSONDecoder()
    objects = []
    index = text.find("{")
    while index != -1:
        try:
            obj, end = decoder.raw_decode(text, index)
        except ValueError:
            index = text.find("{", index + 1)
            continue
        if _looks_like_recipe(obj):
            objects.append(obj)
            index = text.find("{", end)
        else:
            index = text.find("{", index + 1)
    return objects


def _stitch_objects(text: str) -> List[dict]:
    """Rebuild an array from the individual objects found in the text."""
    matches = _OBJECT.findall(text)
    if matches:
        try:
            return _objects_only(_loads("[" + ",".join(matches) + "]"))
        except ParseError as e:
            logger.debug(f"Stitched array failed to parse: {e}")

    objects = _scan_objects(text)
    if not objects:
        raise ParseError("No complete JSON objects found")
    return objects


def _parse_whole(text: str) -> List[dict]:
    return _objects_only(_loads(text))


_TIERS: Sequence[Tuple[str, Callable[[str], List[dict]]]] = (
    ("array", _extract_array),
    ("stitch", _stitch_objects),
    ("whole", _parse_whole),
)


def extract_recipe_objects(raw_text: str) -> List[dict]:
    """Run the repair tiers and return the raw JSON objects.

    Raises:
        ParseError: If no tier produced at least one object.
    """
    cleaned = repair_truncated_array(strip_code_fences(raw_text))
    for name, tier in _TIERS:
        try:
            objects = tier(cleaned)
        except ParseError as e:
            logger.debug(f"Repair tier {name!r} failed: {e}")
            continue
        logger.debug(f"Repair tier {name!r} recovered {len(objects)} objects")
        return objects
    raise ParseError("All repair tiers failed")


def make_diagnostic_recipe(title: str, instructions: List[str], error_tag: str) -> Recipe:
    """Build the placeholder recipe returned in place of a failed generation."""
    return Recipe(
        id=new_recipe_id("ai_error"),
        title=title,
        instructions=instructions,
        tags=[AI_TAG, error_tag],
        ready_in_minutes=0,
        servings=0,
        confidence_score=DIAGNOSTIC_CONFIDENCE,
    )


def parsing_error_recipe(raw_text: str) -> Recipe:
    excerpt = raw_text[:RAW_EXCERPT_LENGTH]
    return make_diagnostic_recipe(
        "Recipe Parsing Error",
        [
            "The AI response could not be parsed into recipes.",
            f"Raw response: {excerpt}",
            "Try generating again.",
        ],
        PARSING_ERROR_TAG,
    )


def is_diagnostic(recipe: Recipe) -> bool:
    """Check whether a recipe is a parsing or network diagnostic placeholder."""
    return any(tag in recipe.tags for tag in DIAGNOSTIC_TAGS)


def parse_recipe_response(raw_text: str, expected_count: int) -> List[Recipe]:
    """Turn a raw model completion into validated recipes.

    Args:
        raw_text: Completion text exactly as the model returned it.
        expected_count: Number of recipes that were requested. Extra recipes
            are dropped; missing ones are not padded.

    Returns:
        At least one Recipe. On total failure this is a single diagnostic
        recipe tagged ``parsing-error`` that quotes the start of the response.

    Examples:
        >>> recipes = parse_recipe_response('```json\\n[{"title": "Soup"}, {"title": "Stew"}]\\n```', 1)
        >>> [r.title for r in recipes]
        ['Soup']
    """
    if not isinstance(raw_text, str):
        raw_text = "" if raw_text is None else str(raw_text)

    try:
        objects = extract_recipe_objects(raw_text)
    except ParseError:
        logger.warning(f"Could not parse model response ({len(raw_text)} chars)")
        return [parsing_error_recipe(raw_text)]

    recipes = recipes_from_payloads(objects, source="ai")
    if not recipes:
        return [parsing_error_recipe(raw_text)]
    return recipes[: max(1, expected_count)]
