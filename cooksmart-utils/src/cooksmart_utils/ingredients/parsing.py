"""Ingredient line parsing utilities."""

import re
from typing import Optional, Tuple

from cooksmart_utils.ingredients.number_utils import (
    _is_fraction,
    _is_integer,
    _is_number,
    _parse_fraction,
)

# --- Constants ---

# Unicode fraction mappings
UNICODE_FRAC = {"¼": ".25", "½": ".5", "¾": ".75", "⅓": ".333", "⅔": ".667"}

UNIT_MAP = {
    # Volume
    "cup": ["cup", "cups", "c"],
    "tablespoon": ["tablespoon", "tablespoons", "tbsp", "tbsp.", "tbs", "T"],
    "teaspoon": ["teaspoon", "teaspoons", "tsp", "tsp.", "t"],
    "ml": ["milliliter", "milliliters", "millilitre", "millilitres", "ml", "ml."],
    "l": ["liter", "liters", "litre", "litres", "l", "l."],
    "fl oz": ["fl oz", "fluid ounce", "fluid ounces"],
    "pint": ["pint", "pints", "pt", "pt."],
    "quart": ["quart", "quarts", "qt", "qt."],
    # Weight
    "g": ["gram", "grams", "g", "g."],
    "kg": ["kilogram", "kilograms", "kg", "kg."],
    "ounce": ["ounce", "ounces", "oz", "oz."],
    "pound": ["pound", "pounds", "lb", "lb.", "lbs", "lbs."],
    # Count/measure
    "pinch": ["pinch", "pinches"],
    "dash": ["dash", "dashes"],
    "clove": ["clove", "cloves"],
    "slice": ["slice", "slices"],
    "piece": ["piece", "pieces"],
    "can": ["can", "cans"],
    "package": ["package", "packages", "pkg"],
    "bunch": ["bunch", "bunches"],
    "sprig": ["sprig", "sprigs"],
    "stalk": ["stalk", "stalks"],
    "handful": ["handful", "handfuls"],
    "whole": ["whole"],
}

# Create reverse mapping for lookup. Single-letter case-sensitive abbreviations
# (T / t) are looked up before lower-casing.
UNIT_LOOKUP = {v: k for k, vs in UNIT_MAP.items() for v in vs}

# --- Functions ---


def normalize_unit(unit: str) -> str:
    """Normalize unit names to their standard form.

    Examples:
        >>> normalize_unit("Tbsp.")
        'tablespoon'
        >>> normalize_unit("lbs")
        'pound'
    """
    if unit in ("T", "t"):
        return UNIT_LOOKUP[unit]
    unit = unit.lower().strip()
    return UNIT_LOOKUP.get(unit, UNIT_LOOKUP.get(unit.strip("."), unit))


def parse_ingredient_line(text: str) -> Tuple[Optional[float], Optional[str], str]:
    """Parse a free-text recipe ingredient line.

    Extracts amount, unit, and ingredient name. Handles mixed numbers,
    fractions, ranges and unicode fraction characters.

    Args:
        text: Raw ingredient text (e.g., "1 1/2 cups chopped onion").

    Returns:
        A tuple containing:
            - amount: Numeric quantity as float, or None if no quantity found
            - unit: Normalized unit, or None if no unit found
            - ingredient_name: Clean ingredient name with quantity/unit removed

    Examples:
        >>> parse_ingredient_line("2 cups rice")
        (2.0, 'cup', 'rice')
        >>> parse_ingredient_line("salt, to taste")
        (None, 'to taste', 'salt')
    """
    original_text = text.strip()
    t = re.sub(r"^\([^)]*\)\s*", "", original_text)  # remove parenthetical quantities
    t = re.sub(
        r"^(generous|small|heaping|scant|about|approximately)\b\s+",
        "",
        t,
        flags=re.IGNORECASE,
    )

    lowered = t.lower()
    if "to taste" in lowered or "as needed" in lowered:
        unit = "to taste" if "to taste" in lowered else "as needed"
        ingredient_part = re.split(f",? {unit}", t, flags=re.IGNORECASE)[0]
        return None, unit, clean_ingredient_name(ingredient_part)

    amount, rest = _parse_amount(t)
    unit, rest = _parse_unit(rest)
    ingredient_name = clean_ingredient_name(rest)

    # If cleaning results in an empty string, fall back to the original text
    if not ingredient_name:
        ingredient_name = original_text
    return amount, unit, ingredient_name


def _parse_amount(text: str) -> Tuple[Optional[float], str]:
    """Parse amount from the start of an ingredient string."""
    # Unicode fractions become decimals, so "1½" reads as "1 .5"
    text = "".join(
        f" {UNICODE_FRAC[c]}" if c in UNICODE_FRAC else c for c in text
    ).strip()

    words = text.split()
    if not words:
        return None, ""

    amount, used = _leading_quantity(words)
    return amount, " ".join(words[used:])


def _quantity(token: str) -> Optional[float]:
    """Value of a single numeric token such as '3', '2.5' or '1/2'."""
    try:
        if _is_fraction(token):
            return float(_parse_fraction(token))
    except ZeroDivisionError:
        return None
    if _is_number(token) and token.lower().lstrip("+-") not in ("nan", "inf", "infinity"):
        return float(token)
    return None


def _leading_quantity(words: list[str]) -> Tuple[Optional[float], int]:
    """Read the quantity at the head of ``words``.

    Returns the amount and how many words it spans. Ranges ("2-3",
    "2 to 3") give the midpoint; mixed numbers ("1 1/2", "1 .5") are summed.
    """
    first = words[0]

    low, dash, high = first.partition("-")
    if dash and low and high:
        low_value, high_value = _quantity(low), _quantity(high)
        if low_value is not None and high_value is not None:
            return (low_value + high_value) / 2, 1

    value = _quantity(first)
    if value is None:
        return None, 0

    if len(words) >= 3 and words[1].lower() == "to":
        upper = _quantity(words[2])
        if upper is not None:
            return (value + upper) / 2, 3

    if len(words) >= 2 and _is_integer(first):
        part = _quantity(words[1])
        if part is not None and 0 < part < 1:
            return value + part, 2

    return value, 1


def _parse_unit(text: str) -> Tuple[Optional[str], str]:
    """Parse unit from the start of an ingredient string."""
    words = text.split()
    if not words:
        return None, text

    # Two-word units first ("fl oz", "fluid ounces")
    if len(words) >= 2:
        pair = f"{words[0]} {words[1]}".lower()
        if pair in UNIT_LOOKUP:
            return UNIT_LOOKUP[pair], " ".join(words[2:])

    potential_unit = words[0]
    if potential_unit in ("T", "t") or potential_unit.lower().strip(".") in UNIT_LOOKUP:
        # "c" alone is only a unit when something follows it
        if potential_unit.lower() == "c" and len(words) == 1:
            return None, text
        return normalize_unit(potential_unit), " ".join(words[1:])

    return None, text


def clean_ingredient_name(name: str) -> str:
    """Clean up ingredient names by removing formatting and notes.

    Examples:
        >>> clean_ingredient_name("chicken breast (about 1 lb)")
        'chicken breast'
        >>> clean_ingredient_name("  onion,  diced ")
        'onion, diced'
    """
    name = re.sub(r"^\([^)]*\)\s*", "", name)
    name = re.sub(r"\s*\([^)]*\)", "", name)
    name = re.sub(r"^of\s+", "", name.strip(), flags=re.IGNORECASE)

    name = re.sub(r"\s+", " ", name)
    name = name.strip().strip(",").strip()

    return name
