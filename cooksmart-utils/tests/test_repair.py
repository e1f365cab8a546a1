import logging

import pytest

from cooksmart_utils.errors import ParseError
from cooksmart_utils.recipes.payloads import DEFAULT_SERVINGS
from cooksmart_utils.recipes.repair import (
    DIAGNOSTIC_CONFIDENCE,
    extract_recipe_objects,
    is_diagnostic,
    parse_recipe_response,
    repair_truncated_array,
    strip_code_fences,
)


@pytest.mark.parametrize(
    "input_text, expected_text",
    [
        ('```json\n[{"title": "Soup"}]\n```', '[{"title": "Soup"}]'),
        ('```JSON\n[]\n```', "[]"),
        ('```\n[1]\n```', "[1]"),
        ("[1, 2]", "[1, 2]"),
    ],
)
def test_strip_code_fences(input_text, expected_text):
    assert strip_code_fences(input_text) == expected_text


@pytest.mark.parametrize(
    "input_text, expected_text",
    [
        ('[{"title": "Soup"', '[{"title": "Soup"}]'),
        ('[{"title": "Soup"}, {"title": "Stew"}', '[{"title": "Soup"}, {"title": "Stew"}]'),
        ('[{"title": "Soup"}]', '[{"title": "Soup"}]'),
        ('{"title": "Soup"', '{"title": "Soup"'),
    ],
)
def test_repair_truncated_array(input_text, expected_text):
    """Test brace and bracket closing on cut-off arrays."""
    assert repair_truncated_array(input_text) == expected_text


def test_fenced_array():
    raw = '```json\n[{"title": "Soup", "instructions": ["Boil"]}]\n```'
    recipes = parse_recipe_response(raw, 2)
    assert len(recipes) == 1
    recipe = recipes[0]
    assert recipe.title == "Soup"
    assert recipe.instructions == ["Boil"]
    assert recipe.tags == ["ai-generated"]
    assert recipe.confidence_score == 80
    assert recipe.source == "ai"


def test_truncated_array_is_closed():
    raw = '[{"title": "A"}, {"title": "B"'
    assert [r.title for r in parse_recipe_response(raw, 2)] == ["A", "B"]


def test_truncated_array_keeps_complete_objects():
    """A half-written last object is dropped, earlier ones survive."""
    raw = '[{"title": "A", "instructions": ["x"]}, {"title": "B", "instructions": ["y"'
    assert [r.title for r in parse_recipe_response(raw, 2)] == ["A"]


def test_prose_around_array():
    raw = 'Here are your recipes:\n[{"title": "A"}]\nEnjoy!'
    assert [r.title for r in parse_recipe_response(raw, 1)] == ["A"]


def test_bare_object_is_recovered():
    assert [r.title for r in parse_recipe_response('{"title": "A"}', 1)] == ["A"]


def test_nested_objects_are_recovered_from_prose():
    raw = (
        'Recipe one: {"title": "A", "nutrition": {"calories": 300}} '
        'and recipe two: {"title": "B", "nutrition": {"calories": 500}}'
    )
    recipes = parse_recipe_response(raw, 2)
    assert [(r.title, r.calories) for r in recipes] == [("A", 300), ("B", 500)]


def test_truncates_to_expected_count():
    raw = '[{"title": "A"}, {"title": "B"}, {"title": "C"}]'
    assert [r.title for r in parse_recipe_response(raw, 2)] == ["A", "B"]


def test_never_pads_to_expected_count():
    assert len(parse_recipe_response('[{"title": "A"}]', 3)) == 1


def test_ids_are_synthesized():
    raw = '[{"id": "same", "title": "A"}, {"id": "same", "title": "B"}]'
    first, second = parse_recipe_response(raw, 2)
    assert first.id != second.id
    assert "same" not in (first.id, second.id)


@pytest.mark.parametrize(
    "raw",
    [
        "Sorry, I can't help with that.",
        "[1, 2, 3]",
        "",
        None,
    ],
)
def test_unparseable_response_yields_diagnostic(raw):
    recipes = parse_recipe_response(raw, 2)
    assert len(recipes) == 1
    diagnostic = recipes[0]
    assert diagnostic.title == "Recipe Parsing Error"
    assert diagnostic.tags == ["ai-generated", "parsing-error"]
    assert diagnostic.confidence_score == DIAGNOSTIC_CONFIDENCE
    assert diagnostic.ready_in_minutes == 0
    assert diagnostic.servings == 0
    assert is_diagnostic(diagnostic)


def test_diagnostic_quotes_first_500_characters():
    recipes = parse_recipe_response("x" * 1000, 1)
    text = "\n".join(recipes[0].instructions)
    assert "x" * 500 in text
    assert "x" * 501 not in text


def test_diagnostic_quotes_short_response_in_full():
    recipes = parse_recipe_response("Sorry, I can't help with that.", 1)
    assert any("Sorry, I can't help with that." in step for step in recipes[0].instructions)


def test_extract_recipe_objects_raises_when_all_tiers_fail():
    with pytest.raises(ParseError):
        extract_recipe_objects("no json here")


def test_oversized_number_falls_back_to_default():
    raw = '[{"title": "Rice Bowl", "servings": 1' + "0" * 400 + "}]"
    recipes = parse_recipe_response(raw, 1)
    assert [r.title for r in recipes] == ["Rice Bowl"]
    assert recipes[0].servings == DEFAULT_SERVINGS


def test_number_past_integer_digit_limit_does_not_raise():
    raw = '[{"title": "Rice Bowl", "calories": 1' + "0" * 5000 + "}]"
    recipes = parse_recipe_response(raw, 1)
    assert len(recipes) == 1
    assert recipes[0].calories == 0 or is_diagnostic(recipes[0])


def test_repair_tiers_are_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="cooksmart_utils.recipes.repair"):
        extract_recipe_objects('Here you go: {"title": "Soup"}')
    assert "Repair tier 'array' failed: No JSON array found" in caplog.text
    assert "Repair tier 'stitch' recovered 1 objects" in caplog.text
