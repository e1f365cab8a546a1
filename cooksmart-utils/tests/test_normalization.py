import pytest

from cooksmart_utils.ingredients.normalization import (
    UNKNOWN_PRODUCT,
    detect_flavor,
    extract_search_tokens,
    format_category,
    normalize_ingredient_name,
    normalize_pantry_name,
    smart_title_case,
)


@pytest.mark.parametrize(
    "input_text, expected_text",
    [
        ("KIND bar dark CHOCOLATE", "KIND Bar Dark CHOCOLATE"),
        ("greek yogurt", "Greek Yogurt"),
        ("a", "A"),
        ("I", "I"),
    ],
)
def test_smart_title_case(input_text, expected_text):
    """Acronyms longer than one character are preserved."""
    assert smart_title_case(input_text) == expected_text


def test_detect_flavor_first_vocabulary_hit_wins():
    assert detect_flavor("Strawberry Greek yogurt") == "Strawberry"
    assert detect_flavor("Green apple soda") == "Green Apple"
    assert detect_flavor("plain crackers") is None


def test_detect_flavor_needs_whole_words():
    assert detect_flavor("Limestone water") is None


@pytest.mark.parametrize(
    "product, expected",
    [
        ({"product_name": "Greek yogurt.", "brands": "Fage"}, "Greek Yogurt, Fage"),
        ({"product_name": "Chocolate Milk", "generic_name": "Milk drink"}, "Chocolate Milk, Drink"),
        ({"brands": "Acme"}, "Acme"),
        ({}, UNKNOWN_PRODUCT),
        ({"product_name": None, "brands": 42}, UNKNOWN_PRODUCT),
    ],
)
def test_normalize_ingredient_name(product, expected):
    assert normalize_ingredient_name(product) == expected


def test_normalize_ingredient_name_skips_brand_already_in_name():
    product = {"product_name": "Fage Greek yogurt", "brands": "Fage"}
    assert normalize_ingredient_name(product) == "Fage Greek Yogurt"


def test_normalize_ingredient_name_uses_flavor_fields():
    product = {"product_name": "Sparkling Water", "flavors": ["Lime"]}
    assert normalize_ingredient_name(product) == "Sparkling Water, Lime"


@pytest.mark.parametrize(
    "product",
    [
        {"product_name": "Greek yogurt.", "brands": "Fage"},
        {"product_name": "Chocolate Milk", "generic_name": "Milk drink"},
        {},
    ],
)
def test_normalize_ingredient_name_is_idempotent(product):
    first = normalize_ingredient_name(product)
    assert normalize_ingredient_name({"product_name": first}) == first


@pytest.mark.parametrize(
    "names, expected",
    [
        (["Boneless Chicken Thighs", "Jasmine rice"], ["chicken", "rice"]),
        ("Hi-Chew Bites", ["hi-chew"]),
        (["Morinaga Hi-Chew"], []),
        (["ab"], []),
        (["chicken breast", "chicken thighs"], ["chicken"]),
        (["Organic Whole Milk"], ["milk"]),
        (["chicken", "rice", "tomato", "onion"], ["chicken", "rice", "tomato"]),
        (["", "   "], []),
    ],
)
def test_extract_search_tokens(names, expected):
    assert extract_search_tokens(names) == expected


def test_normalize_pantry_name():
    assert normalize_pantry_name("  Chicken   Breast ") == "chicken breast"


@pytest.mark.parametrize(
    "category, expected",
    [
        ("en:plant-based-foods", "Plant Based Foods"),
        ("dairies", "Dairies"),
        ("", ""),
    ],
)
def test_format_category(category, expected):
    assert format_category(category) == expected
