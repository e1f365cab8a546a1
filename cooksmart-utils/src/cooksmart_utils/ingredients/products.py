"""Pantry ingredients built from scanned Open Food Facts products."""

import re
from typing import Any, Mapping, Optional, Tuple

from cooksmart_utils.ingredients.models import Ingredient
from cooksmart_utils.ingredients.normalization import format_category, normalize_ingredient_name
from cooksmart_utils.ingredients.number_utils import safe_float, safe_int

_SERVING_SIZE = re.compile(r"(\d+(?:[.,]\d+)?)\s*([a-zA-Z]+)?")


def parse_serving_size(text: Optional[str]) -> Tuple[float, str]:
    """Split an Open Food Facts ``serving_size`` such as "30 g" into amount and unit.

    Examples:
        >>> parse_serving_size("30 g (2 pieces)")
        (30.0, 'g')
        >>> parse_serving_size(None)
        (1.0, 'serving')
    """
    if not text:
        return 1.0, "serving"
    match = _SERVING_SIZE.search(text)
    if not match:
        return 1.0, "serving"
    return float(match.group(1).replace(",", ".")), (match.group(2) or "serving").lower()


def _nutrition_basis(product: Mapping[str, Any]) -> Tuple[str, float, str]:
    nutriments = product.get("nutriments") or {}
    serving_size = product.get("serving_size")
    if nutriments.get("energy-kcal_serving") is not None:
        return ("serving",) + parse_serving_size(serving_size)
    if nutriments.get("energy-kcal_100g") is not None:
        return "100g", 100.0, "g"
    if nutriments.get("energy-kcal_100ml") is not None:
        return "100ml", 100.0, "ml"
    if serving_size:
        return ("serving",) + parse_serving_size(serving_size)
    return "100g", 100.0, "g"


def _first_category(product: Mapping[str, Any]) -> str:
    tags = product.get("categories_tags")
    if isinstance(tags, list) and tags:
        return format_category(str(tags[-1]))
    categories = product.get("categories")
    if isinstance(categories, str) and categories.strip():
        return categories.split(",")[-1].strip()
    return ""


def ingredient_from_product(product: Mapping[str, Any]) -> Ingredient:
    """Build a pantry Ingredient from an Open Food Facts product.

    Nutrition is taken per serving when the product reports it, otherwise per
    100 g or 100 ml, with the serving size set to match.
    """
    nutriments = product.get("nutriments") or {}
    basis, serving_size, serving_unit = _nutrition_basis(product)

    def nutrient(key: str) -> float:
        return round(safe_float(nutriments.get(f"{key}_{basis}")), 1)

    generic = product.get("generic_name")
    return Ingredient(
        name=normalize_ingredient_name(product),
        category=_first_category(product),
        calories=float(safe_int(nutriments.get(f"energy-kcal_{basis}"))),
        protein=nutrient("proteins"),
        carbs=nutrient("carbohydrates"),
        fat=nutrient("fat"),
        serving_size=serving_size,
        serving_unit=serving_unit,
        common_names=generic if isinstance(generic, str) else "",
    )
