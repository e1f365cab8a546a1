from unittest import mock

import pytest
import requests

from cooksmart_utils.errors import NetworkError
from cooksmart_utils.ingredients.matching import PARTIAL, STRICT
from cooksmart_utils.recipes import sources
from cooksmart_utils.recipes.sources import (
    EdamamRecipeSource,
    SpoonacularRecipeSource,
    WebsiteRecipeSource,
    default_website_sources,
    fetch_json,
    get_product_by_barcode,
)
from cooksmart_utils.scraping import retry


def json_response(payload, status_error=None):
    response = mock.Mock()
    response.json.return_value = payload
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


@pytest.fixture
def fake_get(monkeypatch):
    """Replace requests.get and record every call."""
    calls = []
    responses = []

    def _get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(sources.requests, "get", _get)
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: None)
    _get.calls = calls
    _get.responses = responses
    return _get


SPOONACULAR_ITEM = {
    "id": 42,
    "title": "Chicken Rice Bowl",
    "image": "https://img.spoonacular.com/42.jpg",
    "readyInMinutes": 25,
    "servings": 2,
    "nutrition": {
        "nutrients": [
            {"name": "Calories", "amount": 512.6},
            {"name": "Protein", "amount": 31.2},
            {"name": "Carbohydrates", "amount": 60},
            {"name": "Fat", "amount": 12.5},
        ]
    },
    "extendedIngredients": [
        {"name": "chicken", "amount": 2, "unit": "lb"},
        {"name": "rice", "amount": 1, "unit": "cup"},
    ],
    "analyzedInstructions": [{"steps": [{"number": 1, "step": "Cook the rice."}, {"number": 2, "step": "Add chicken."}]}],
    "cuisines": ["Asian"],
    "dishTypes": ["lunch"],
}


def test_fetch_json_http_error(fake_get):
    fake_get.responses.append(json_response({}, requests.exceptions.HTTPError("500 Server Error")))
    with pytest.raises(NetworkError) as excinfo:
        fetch_json("https://api.example.com", "example")
    assert excinfo.value.source == "example"


def test_fetch_json_retries_connection_errors(fake_get):
    fake_get.responses.extend([requests.exceptions.ConnectionError("reset")] * 3)
    with pytest.raises(NetworkError):
        fetch_json("https://api.example.com", "example")
    assert len(fake_get.calls) == 3


def test_fetch_json_recovers_after_retry(fake_get):
    fake_get.responses.extend([requests.exceptions.Timeout("slow"), json_response({"ok": True})])
    assert fetch_json("https://api.example.com", "example") == {"ok": True}
    assert len(fake_get.calls) == 2


def test_fetch_json_invalid_body(fake_get):
    response = mock.Mock()
    response.json.side_effect = ValueError("No JSON object could be decoded")
    fake_get.responses.append(response)
    with pytest.raises(NetworkError):
        fetch_json("https://api.example.com", "example")


# --- Spoonacular ---


def test_spoonacular_convert():
    recipe = SpoonacularRecipeSource("key").convert(SPOONACULAR_ITEM)
    assert recipe.id == "spoonacular_42"
    assert recipe.title == "Chicken Rice Bowl"
    assert recipe.ready_in_minutes == 25
    assert recipe.servings == 2
    assert recipe.calories == 513
    assert recipe.protein == 31.2
    assert [(i.name, i.amount, i.unit) for i in recipe.ingredients] == [
        ("chicken", 2.0, "lb"),
        ("rice", 1.0, "cup"),
    ]
    assert recipe.instructions == ["Cook the rice.", "Add chicken."]
    assert recipe.tags == ["Asian", "lunch"]
    assert recipe.source == "spoonacular"
    assert recipe.confidence_score is None


def test_spoonacular_convert_html_instructions():
    item = {"id": 7, "title": "Toast", "instructions": "<ol><li>Slice bread.</li><li>Toast it.</li></ol>"}
    recipe = SpoonacularRecipeSource("key").convert(item)
    assert recipe.instructions == ["Slice bread.", "Toast it."]


def test_spoonacular_partial_search_uses_query(fake_get):
    fake_get.responses.append(json_response({"results": [SPOONACULAR_ITEM, "junk"]}))
    recipes = SpoonacularRecipeSource("key").search_by_ingredients(["chicken", "rice"], PARTIAL, 5)
    params = fake_get.calls[0]["params"]
    assert params["query"] == "chicken rice"
    assert params["number"] == 5
    assert params["apiKey"] == "key"
    assert "includeIngredients" not in params
    assert [r.id for r in recipes] == ["spoonacular_42"]


def test_spoonacular_strict_search_requires_ingredients(fake_get):
    fake_get.responses.append(json_response({"results": []}))
    SpoonacularRecipeSource("key").search_by_ingredients(["chicken", "rice"], STRICT, 5)
    params = fake_get.calls[0]["params"]
    assert params["includeIngredients"] == "chicken,rice"
    assert params["sort"] == "max-used-ingredients"
    assert "query" not in params


def test_spoonacular_search_drops_empty_filters(fake_get):
    fake_get.responses.append(json_response({"results": []}))
    SpoonacularRecipeSource("key").search("soup", cuisine="italian")
    params = fake_get.calls[0]["params"]
    assert params["cuisine"] == "italian"
    assert "diet" not in params


def test_spoonacular_is_configured():
    assert SpoonacularRecipeSource("key").is_configured
    assert not SpoonacularRecipeSource(None).is_configured


# --- Edamam ---

EDAMAM_HIT = {
    "recipe": {
        "uri": "http://www.edamam.com/ontologies/edamam.owl#recipe_abc123",
        "label": "Carrot Soup",
        "image": "https://edamam-product-images.s3.amazonaws.com/soup.jpg",
        "url": "https://example.com/carrot-soup",
        "yield": 4,
        "calories": 800,
        "totalTime": 0,
        "ingredients": [
            {"food": "carrot", "quantity": 2, "measure": "<unit>"},
            {"food": "stock", "quantity": 1, "measure": "cup"},
        ],
        "totalNutrients": {"PROCNT": {"quantity": 10.5, "unit": "g"}},
        "cuisineType": ["french"],
        "dishType": ["soup"],
    }
}


def test_edamam_convert():
    recipe = EdamamRecipeSource("id", "key").convert(EDAMAM_HIT)
    assert recipe.id == "edamam_abc123"
    assert recipe.title == "Carrot Soup"
    assert recipe.calories == 200
    assert recipe.servings == 4
    assert recipe.ready_in_minutes == 30
    assert recipe.protein == 10.5
    assert [(i.name, i.unit) for i in recipe.ingredients] == [("carrot", ""), ("stock", "cup")]
    assert recipe.instructions == ["See full instructions at https://example.com/carrot-soup"]
    assert recipe.tags == ["french", "soup"]


def test_edamam_search_caps_page_size(fake_get):
    fake_get.responses.append(json_response({"hits": [EDAMAM_HIT] * 25}))
    recipes = EdamamRecipeSource("id", "key").search("soup", diet="vegan", max_results=30)
    assert len(recipes) == 20
    params = fake_get.calls[0]["params"]
    assert params["q"] == "soup"
    assert params["health"] == "vegan"
    assert params["type"] == "public"


def test_edamam_is_configured():
    assert EdamamRecipeSource("id", "key").is_configured
    assert not EdamamRecipeSource("id", None).is_configured


# --- Websites ---

SEARCH_PAGE = """
<html><body>
  <a href="/recipe/1/soup/">Soup</a>
  <a href="https://elsewhere.example.org/recipe/2/">Elsewhere</a>
  <a href="/recipe/1/soup/">Soup again</a>
  <a href="/about">About</a>
  <a href="/recipe/3/stew/">Stew</a>
</body></html>
"""

RECIPE_PAGE = """
<html><head><script type="application/ld+json">
{"@type": "Recipe", "name": "Tomato Soup", "recipeIngredient": ["4 tomatoes", "1 cup stock"],
 "recipeInstructions": "Simmer everything."}
</script></head><body></body></html>
"""


class FakeSession:
    def __init__(self, pages, failing=()):
        self.pages = pages
        self.failing = set(failing)
        self.urls = []

    def get(self, url):
        self.urls.append(url)
        if url in self.failing:
            raise NetworkError(f"GET {url} failed", source="recipes.example.com")
        return mock.Mock(text=self.pages.get(url, "<html></html>"))


def make_website(session):
    return WebsiteRecipeSource(
        "example",
        "https://recipes.example.com",
        "https://recipes.example.com/search?q={query}",
        r"^/recipe/",
        session_factory=lambda: session,
    )


def test_extract_recipe_links():
    source = make_website(FakeSession({}))
    assert source.extract_recipe_links(SEARCH_PAGE) == [
        "https://recipes.example.com/recipe/1/soup/",
        "https://recipes.example.com/recipe/3/stew/",
    ]


def test_website_search_skips_failed_pages():
    session = FakeSession(
        {
            "https://recipes.example.com/search?q=tomato%20soup": SEARCH_PAGE,
            "https://recipes.example.com/recipe/1/soup/": RECIPE_PAGE,
        },
        failing=["https://recipes.example.com/recipe/3/stew/"],
    )
    source = make_website(session)
    recipes = source.search("tomato soup")
    assert [r.title for r in recipes] == ["Tomato Soup"]
    recipe = recipes[0]
    assert recipe.source == "example"
    assert recipe.id == source.recipe_id_for("https://recipes.example.com/recipe/1/soup/")
    assert recipe.id.startswith("example_")
    assert session.urls[0] == "https://recipes.example.com/search?q=tomato%20soup"


def test_website_search_limits_pages():
    session = FakeSession({"https://recipes.example.com/search?q=soup": SEARCH_PAGE})
    make_website(session).search("soup", max_results=1)
    assert len(session.urls) == 2


def test_default_website_sources_can_be_disabled():
    sites = default_website_sources(enabled=False)
    assert [s.name for s in sites] == ["allrecipes", "foodnetwork"]
    assert not any(s.is_configured for s in sites)


# --- Open Food Facts ---


def test_get_product_by_barcode(fake_get):
    product = {"product_name": "Greek yogurt", "brands": "Fage"}
    fake_get.responses.append(json_response({"status": 1, "product": product}))
    assert get_product_by_barcode(" 5201054017111 ") == product
    assert fake_get.calls[0]["url"].endswith("/product/5201054017111.json")


def test_get_product_by_barcode_unknown(fake_get):
    fake_get.responses.append(json_response({"status": 0, "status_verbose": "product not found"}))
    assert get_product_by_barcode("0000") is None
