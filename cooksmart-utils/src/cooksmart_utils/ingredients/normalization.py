"""Ingredient name normalization utilities.

Turns noisy product records (as returned by Open Food Facts barcode lookups)
into a canonical display name, and free-text pantry names into short tokens
suitable for querying external recipe sources.
"""

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

# Flavor/descriptor vocabulary, scanned in order. First hit wins.
FLAVORS = [
    "Strawberry", "Grape", "Mango", "Green Apple", "Banana", "Pineapple",
    "Watermelon", "Peach", "Lemon", "Orange", "Cola", "Soda", "Melon",
    "Blueberry", "Cherry", "Lime", "Raspberry", "Blackcurrant", "Lychee",
    "Yogurt", "Acai", "Kiwi", "Fruit", "Berry", "Apple", "Citrus", "Tropical",
    "Mint", "Chocolate", "Vanilla", "Coffee", "Caramel", "Coconut", "Matcha",
    "Red", "White", "Grapefruit", "Plum", "Pear", "Apricot", "Guava",
    "Passionfruit", "Pomegranate", "Cranberry", "Honey", "Custard", "Cream",
    "Sour", "Sweet", "Salty", "Spicy", "Original", "Mix", "Assorted",
]

_FLAVOR_PATTERNS = [
    (flavor, re.compile(r"\b" + re.escape(flavor) + r"\b", re.IGNORECASE))
    for flavor in FLAVORS
]

# Names matching this read like a product category rather than a specific item
GENERIC_NAME_PATTERN = re.compile(
    r"\b(generic|product|item|food|snack|candy|drink|juice|bar|chips|cookies|"
    r"crackers|bread|milk|cheese|yogurt|soda|water|tea|coffee|meat|fish|fruit|"
    r"vegetable|oil|sauce|spread|cereal|rice|pasta|noodles|soup|mix|powder|"
    r"seasoning|spice|condiment|dressing|frozen|prepared|meal|dish|pack|box|bag|"
    r"container|can|jar|bottle|carton|loaf|roll|bun|cake|pie|pastry|dessert|"
    r"treat)\b",
    re.IGNORECASE,
)

_TRAILING_PUNCTUATION = re.compile(r"[!.,;:?]+$")

UNKNOWN_PRODUCT = "Unknown Product"

# Vocabulary used to pull searchable words out of pantry item names
COMMON_INGREDIENTS = {
    "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp",
    "rice", "pasta", "bread", "potato", "tomato", "onion", "garlic",
    "carrot", "broccoli", "spinach", "lettuce", "cucumber", "pepper",
    "mushroom", "egg", "milk", "cheese", "yogurt", "butter", "oil",
    "flour", "sugar", "salt", "lemon", "lime", "apple",
    "banana", "orange", "strawberry", "blueberry", "raspberry",
    "chocolate", "vanilla", "cinnamon", "nutmeg", "oregano", "basil",
}

# Brand and marketing words that never make a useful search term
SEARCH_STOP_WORDS = {"hi", "chew", "morinaga", "drizzilicious", "swirl", "bites"}

MAX_SEARCH_TOKENS = 3


def _field(product: Mapping[str, Any], key: str) -> str:
    value = product.get(key)
    return value if isinstance(value, str) else ""


def _strip_trailing_punctuation(text: str) -> str:
    return _TRAILING_PUNCTUATION.sub("", text).strip()


def smart_title_case(text: str) -> str:
    """Title-case a string while preserving acronyms.

    Tokens that are already fully upper case and longer than one character
    are kept as-is; every other token gets a leading capital and the rest
    lower-cased.

    Examples:
        >>> smart_title_case("KIND bar dark CHOCOLATE")
        'KIND Bar Dark CHOCOLATE'
        >>> smart_title_case("a")
        'A'
    """
    words = []
    for word in text.split(" "):
        if word == word.upper() and len(word) > 1:
            words.append(word)
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return " ".join(words)


def detect_flavor(text: str) -> Optional[str]:
    """Return the first vocabulary flavor found in ``text`` as a whole word."""
    for flavor, pattern in _FLAVOR_PATTERNS:
        if pattern.search(text):
            return flavor
    return None


def looks_generic(name: str) -> bool:
    """Check whether a product name reads like a category word."""
    return bool(GENERIC_NAME_PATTERN.search(name))


def _explicit_flavor(product: Mapping[str, Any]) -> str:
    flavors = product.get("flavors")
    if isinstance(flavors, list) and flavors:
        return " ".join(str(f) for f in flavors if f is not None).strip()
    flavor = product.get("flavor")
    if isinstance(flavor, str) and flavor.strip():
        return flavor.strip()
    return ""


def _dedupe_words(parts: List[str]) -> List[str]:
    """Drop whole words already seen in an earlier part (or earlier in the same part)."""
    seen = set()
    deduped = []
    for part in parts:
        kept = []
        for word in part.split(" "):
            lower = word.lower()
            if lower in seen:
                continue
            seen.add(lower)
            kept.append(word)
        joined = " ".join(kept)
        if joined:
            deduped.append(joined)
    return deduped


def normalize_ingredient_name(product: Mapping[str, Any]) -> str:
    """Build a canonical display name from a scanned product record.

    The record uses Open Food Facts field names: ``product_name``, ``brands``,
    ``generic_name``, ``ingredients_text`` and the optional ``flavors`` (list)
    or ``flavor`` (str). Every field is optional.

    Candidate parts are assembled in order: name, brand (only when the name
    looks generic and doesn't already contain it), detected flavor, explicit
    flavor field, generic name. Repeated words are removed across all parts
    and the result is smart-title-cased.

    This never raises; when nothing usable is present it degrades to the
    brand, the generic name, and finally "Unknown Product".

    Args:
        product: Product record mapping.

    Returns:
        Canonical ingredient name.

    Examples:
        >>> normalize_ingredient_name({"product_name": "Greek yogurt.", "brands": "Fage"})
        'Greek Yogurt, Fage'
    """
    name = _strip_trailing_punctuation(_field(product, "product_name"))
    generic = _strip_trailing_punctuation(_field(product, "generic_name"))
    brand = _strip_trailing_punctuation(_field(product, "brands"))
    ingredients_text = _field(product, "ingredients_text")

    found_flavor = detect_flavor(f"{name} {generic} {ingredients_text}") or ""
    flavor_field = _explicit_flavor(product)

    name_lower = name.lower()
    is_generic = bool(generic) or looks_generic(name)

    parts = []
    if name:
        parts.append(name)
    if brand and brand.lower() not in name_lower and (is_generic or not generic):
        parts.append(brand)
    if found_flavor and found_flavor.lower() not in name_lower:
        parts.append(found_flavor)
    if flavor_field and flavor_field.lower() not in name_lower:
        parts.append(flavor_field)
    if generic and generic.lower() not in name_lower:
        parts.append(generic)

    final_name = smart_title_case(", ".join(_dedupe_words(parts))).strip()
    if not final_name:
        final_name = brand or generic or UNKNOWN_PRODUCT
    logger.debug(f"normalize_ingredient_name result: {final_name}")
    return final_name.strip()


def normalize_pantry_name(name: str) -> str:
    """Lower-case a pantry name and collapse its whitespace for matching."""
    return " ".join(name.lower().split())


def format_category(category: str) -> str:
    """Format an Open Food Facts category tag for display.

    Examples:
        >>> format_category("en:plant-based-foods")
        'Plant Based Foods'
    """
    if not category:
        return ""
    text = category.split(":", 1)[-1]
    text = re.sub(r"[-_]+", " ", text)
    return smart_title_case(" ".join(text.split()).lower())


def extract_search_tokens(ingredient_names: Union[str, Iterable[str]]) -> List[str]:
    """Pick up to three short query words from pantry item names.

    For each name the first word found in the common-ingredient vocabulary is
    used; if none matches, the first word of the name is used unless it is a
    known brand/marketing word or two characters or fewer.

    Examples:
        >>> extract_search_tokens(["Boneless Chicken Thighs", "Jasmine rice"])
        ['chicken', 'rice']
        >>> extract_search_tokens("Hi-Chew Bites")
        ['hi-chew']
    """
    if isinstance(ingredient_names, str):
        ingredient_names = [ingredient_names]

    tokens: List[str] = []
    for ingredient in ingredient_names:
        words = [w.strip(".,;:!?()\"'") for w in ingredient.lower().split()]
        words = [w for w in words if w]
        if not words:
            continue

        token = next((w for w in words if w in COMMON_INGREDIENTS), None)
        if token is None:
            first_word = words[0]
            if first_word not in SEARCH_STOP_WORDS and len(first_word) > 2:
                token = first_word

        if token and token not in tokens:
            tokens.append(token)

    return tokens[:MAX_SEARCH_TOKENS]
