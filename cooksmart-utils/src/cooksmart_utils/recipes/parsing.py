"""Recipe page parsing utilities."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from cooksmart_utils.errors import ValidationError
from cooksmart_utils.recipes.models import Recipe
from cooksmart_utils.recipes.payloads import new_recipe_id, recipe_from_payload

logger = logging.getLogger(__name__)

_ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$",
    re.IGNORECASE,
)


def parse_iso_duration(value: Any) -> Optional[int]:
    """Convert an ISO 8601 duration to whole minutes.

    Examples:
        >>> parse_iso_duration("PT1H30M")
        90
        >>> parse_iso_duration("soon") is None
        True
    """
    if not isinstance(value, str):
        return None
    match = _ISO_DURATION.match(value.strip())
    if not match or not any(match.groupdict().values()):
        return None
    parts = {k: int(v) if v else 0 for k, v in match.groupdict().items()}
    return parts["days"] * 1440 + parts["hours"] * 60 + parts["minutes"] + (parts["seconds"] + 59) // 60


def _is_recipe_type(node: Dict[str, Any]) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Recipe" in node_type
    return node_type == "Recipe"


def _find_recipe_node(data: Any) -> Optional[Dict[str, Any]]:
    if isinstance(data, list):
        for item in data:
            found = _find_recipe_node(item)
            if found:
                return found
        return None
    if not isinstance(data, dict):
        return None
    if _is_recipe_type(data):
        return data
    if "@graph" in data:
        return _find_recipe_node(data["@graph"])
    return None


def _image_url(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and value:
        return _image_url(value[0])
    if isinstance(value, dict):
        url = value.get("url")
        return url if isinstance(url, str) else ""
    return ""


def _instruction_steps(value: Any) -> List[str]:
    """Flatten HowToStep / HowToSection instruction nodes into plain steps."""
    if isinstance(value, str):
        text = BeautifulSoup(value, "lxml").get_text("\n")
        return [line.strip() for line in text.splitlines() if line.strip()]
    steps: List[str] = []
    if isinstance(value, list):
        for item in value:
            steps.extend(_instruction_steps(item))
    elif isinstance(value, dict):
        if "itemListElement" in value:
            steps.extend(_instruction_steps(value["itemListElement"]))
        elif isinstance(value.get("text"), str):
            steps.append(value["text"].strip())
    return steps


def _keywords(node: Dict[str, Any]) -> List[str]:
    tags: List[str] = []
    for key in ("recipeCategory", "recipeCuisine", "keywords"):
        value = node.get(key)
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            tags.extend(str(v).strip().lower() for v in value if str(v).strip())
    return list(dict.fromkeys(tags))


def _payload_from_json_ld(node: Dict[str, Any]) -> Dict[str, Any]:
    nutrition = node.get("nutrition") if isinstance(node.get("nutrition"), dict) else {}
    minutes = parse_iso_duration(node.get("totalTime")) or parse_iso_duration(node.get("cookTime"))
    servings = node.get("recipeYield")
    if isinstance(servings, list):
        servings = servings[0] if servings else None
    return {
        "title": node.get("name"),
        "image": _image_url(node.get("image")),
        "ready_in_minutes": minutes,
        "servings": servings,
        "calories": nutrition.get("calories"),
        "protein": nutrition.get("proteinContent"),
        "carbs": nutrition.get("carbohydrateContent"),
        "fat": nutrition.get("fatContent"),
        "ingredients": [str(i) for i in node.get("recipeIngredient") or [] if i],
        "instructions": _instruction_steps(node.get("recipeInstructions")),
        "tags": _keywords(node),
    }


def _payload_from_html(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    name_tag = soup.find("h1")
    if not name_tag:
        return None

    ingredients = [
        tag.get_text(separator=" ", strip=True)
        for tag in soup.find_all(attrs={"itemprop": "recipeIngredient"})
    ]
    if not ingredients:
        ingredients_list = soup.select_one(
            "ul.ingredients-list, ul.ingredients, [class*='ingredient'] ul"
        )
        if ingredients_list:
            # Ignore hidden list items
            for li in ingredients_list.find_all("li", style=lambda x: x != "display:none"):
                text = li.get_text(separator=" ", strip=True)
                if text:
                    ingredients.append(text)

    directions_list = soup.find(attrs={"itemprop": "recipeInstructions"}) or soup.select_one(
        "ol.instructions, ol.directions, [class*='instruction'] ol, [class*='direction'] ol"
    )
    directions = []
    if directions_list:
        items = directions_list.find_all("li") or [directions_list]
        for li in items:
            text = li.get_text(strip=True)
            if text:
                directions.append(text)

    if not ingredients:
        return None

    image_tag = soup.find("meta", property="og:image")
    return {
        "title": name_tag.get_text(strip=True),
        "image": image_tag.get("content", "") if image_tag else "",
        "ingredients": ingredients,
        "instructions": directions,
    }


def parse_recipe_html(
    html: str, recipe_id: Optional[str] = None, source: Optional[str] = None
) -> Optional[Recipe]:
    """Parse recipe HTML to extract structured data.

    schema.org ``Recipe`` JSON-LD is preferred. Pages without it fall back to
    common recipe markup (an ``h1`` title, ``recipeIngredient`` microdata or an
    ingredients list, and an ordered list of directions).

    Args:
        html: Raw HTML content of a recipe page.
        recipe_id: Id to assign to the parsed recipe.
        source: Source tag to record on the recipe.

    Returns:
        A Recipe object or None if the page holds no recognizable recipe.
    """
    soup = BeautifulSoup(html, "lxml")

    payload = None
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            logger.debug("Skipping malformed JSON-LD block")
            continue
        node = _find_recipe_node(data)
        if node:
            payload = _payload_from_json_ld(node)
            break

    if payload is None:
        payload = _payload_from_html(soup)
    if payload is None:
        return None

    try:
        return recipe_from_payload(
            payload,
            recipe_id=recipe_id or new_recipe_id(source or "web"),
            default_tags=(),
            source=source,
            with_confidence=False,
        )
    except ValidationError:
        return None
