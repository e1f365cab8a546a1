"""External recipe sources: recipe APIs, recipe websites and product lookup."""

import hashlib
import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote, urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from cooksmart_utils.errors import NetworkError, ValidationError
from cooksmart_utils.ingredients.matching import PARTIAL, STRICT
from cooksmart_utils.recipes.models import Recipe
from cooksmart_utils.recipes.parsing import parse_recipe_html
from cooksmart_utils.recipes.payloads import recipe_from_payload
from cooksmart_utils.scraping import DEFAULT_USER_AGENT, PoliteSession, retry_on_connection_error

logger = logging.getLogger(__name__)

SPOONACULAR_SEARCH_URL = "https://api.spoonacular.com/recipes/complexSearch"
EDAMAM_SEARCH_URL = "https://api.edamam.com/api/recipes/v2"
OPEN_FOOD_FACTS_PRODUCT_URL = "https://world.openfoodfacts.org/api/v0/product/{barcode}.json"

DEFAULT_TIMEOUT = 15

# Edamam returns at most this many hits per page
EDAMAM_PAGE_SIZE = 20


@retry_on_connection_error()
def _http_get(url: str, params: Optional[Mapping[str, Any]], timeout: float) -> requests.Response:
    return requests.get(url, params=params, timeout=timeout)


def fetch_json(
    url: str,
    source: str,
    params: Optional[Mapping[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET a JSON document, retrying transient connection errors.

    Raises:
        NetworkError: On transport failure, a non-2xx status, or a body that
            is not JSON.
    """
    try:
        response = _http_get(url, params, timeout)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"{source} request failed: {e}", source=source) from e
    except ValueError as e:
        raise NetworkError(f"{source} returned invalid JSON: {e}", source=source) from e


class RecipeSource(ABC):
    """Abstract base class for recipe sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this recipe source."""

    @property
    def is_configured(self) -> bool:
        """Whether the source has the credentials or settings it needs."""
        return True

    @abstractmethod
    def search(
        self, query: str = "", cuisine: str = "", diet: str = "", max_results: int = 10
    ) -> List[Recipe]:
        """Search the source by free-text query, cuisine and diet.

        Raises:
            NetworkError: If the source cannot be reached.
        """

    def search_by_ingredients(
        self, tokens: Sequence[str], mode: str = PARTIAL, max_results: int = 10
    ) -> List[Recipe]:
        """Search the source for recipes using the given ingredient tokens.

        Args:
            tokens: Short query words, as produced by ``extract_search_tokens``.
            mode: "strict" or "partial". Sources that can require ingredients
                server-side do so in strict mode.
            max_results: Upper bound on returned recipes.
        """
        return self.search(" ".join(tokens), max_results=max_results)


class SpoonacularRecipeSource(RecipeSource):
    """Spoonacular ``complexSearch`` API."""

    def __init__(self, api_key: Optional[str], timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "spoonacular"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _complex_search(self, params: Dict[str, Any], max_results: int) -> List[Recipe]:
        params = {
            "apiKey": self.api_key,
            "number": max_results,
            "addRecipeInformation": "true",
            "fillIngredients": "true",
            "instructionsRequired": "true",
            "addRecipeNutrition": "true",
            **{k: v for k, v in params.items() if v},
        }
        data = fetch_json(SPOONACULAR_SEARCH_URL, self.name, params, self.timeout)
        results = data.get("results") if isinstance(data, dict) else None
        return self._convert_all(results or [])

    def search(
        self, query: str = "", cuisine: str = "", diet: str = "", max_results: int = 10
    ) -> List[Recipe]:
        return self._complex_search(
            {"query": query, "cuisine": cuisine, "diet": diet}, max_results
        )

    def search_by_ingredients(
        self, tokens: Sequence[str], mode: str = PARTIAL, max_results: int = 10
    ) -> List[Recipe]:
        if mode == STRICT:
            params = {
                "includeIngredients": ",".join(tokens),
                "sort": "max-used-ingredients",
            }
        else:
            params = {"query": " ".join(tokens)}
        return self._complex_search(params, max_results)

    def _convert_all(self, results: List[Any]) -> List[Recipe]:
        recipes = []
        for item in results:
            try:
                recipes.append(self.convert(item))
            except ValidationError as e:
                logger.debug(f"Skipping Spoonacular result: {e}")
        return recipes

    def convert(self, item: Any) -> Recipe:
        """Convert one ``complexSearch`` result into a Recipe."""
        if not isinstance(item, Mapping):
            raise ValidationError("Spoonacular result is not an object")

        nutrients = {}
        nutrition = item.get("nutrition")
        if isinstance(nutrition, Mapping):
            for nutrient in nutrition.get("nutrients") or []:
                if isinstance(nutrient, Mapping) and isinstance(nutrient.get("name"), str):
                    nutrients[nutrient["name"]] = nutrient.get("amount")

        steps: List[Any] = []
        for block in item.get("analyzedInstructions") or []:
            if isinstance(block, Mapping):
                steps.extend(block.get("steps") or [])
        if not steps and isinstance(item.get("instructions"), str):
            steps = BeautifulSoup(item["instructions"], "lxml").get_text("\n").splitlines()

        tags = []
        for key in ("cuisines", "dishTypes", "diets"):
            value = item.get(key)
            if isinstance(value, list):
                tags.extend(value)

        payload = {
            "title": item.get("title"),
            "image": item.get("image"),
            "ready_in_minutes": item.get("readyInMinutes"),
            "servings": item.get("servings"),
            "calories": nutrients.get("Calories"),
            "protein": nutrients.get("Protein"),
            "carbs": nutrients.get("Carbohydrates"),
            "fat": nutrients.get("Fat"),
            "ingredients": item.get("extendedIngredients"),
            "instructions": steps,
            "tags": tags,
        }
        return recipe_from_payload(
            payload,
            recipe_id=f"spoonacular_{item.get('id')}",
            default_tags=(),
            source=self.name,
            with_confidence=False,
        )


class EdamamRecipeSource(RecipeSource):
    """Edamam recipe search API v2."""

    def __init__(
        self, app_id: Optional[str], app_key: Optional[str], timeout: float = DEFAULT_TIMEOUT
    ):
        self.app_id = app_id
        self.app_key = app_key
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "edamam"

    @property
    def is_configured(self) -> bool:
        return bool(self.app_id and self.app_key)

    def search(
        self, query: str = "", cuisine: str = "", diet: str = "", max_results: int = 10
    ) -> List[Recipe]:
        params = {
            "type": "public",
            "q": query or "recipe",
            "app_id": self.app_id,
            "app_key": self.app_key,
        }
        if cuisine:
            params["cuisineType"] = cuisine
        if diet:
            params["health"] = diet
        data = fetch_json(EDAMAM_SEARCH_URL, self.name, params, self.timeout)
        hits = data.get("hits") if isinstance(data, dict) else None

        recipes = []
        for hit in (hits or [])[: min(max_results, EDAMAM_PAGE_SIZE)]:
            try:
                recipes.append(self.convert(hit))
            except ValidationError as e:
                logger.debug(f"Skipping Edamam hit: {e}")
        return recipes

    def convert(self, hit: Any) -> Recipe:
        """Convert one search hit into a Recipe."""
        recipe = hit.get("recipe") if isinstance(hit, Mapping) else None
        if not isinstance(recipe, Mapping):
            raise ValidationError("Edamam hit has no recipe object")

        def nutrient(code: str) -> Any:
            value = (recipe.get("totalNutrients") or {}).get(code)
            return value.get("quantity") if isinstance(value, Mapping) else None

        servings = recipe.get("yield") or 1
        calories = recipe.get("calories")
        if isinstance(calories, (int, float)) and isinstance(servings, (int, float)) and servings > 0:
            calories = calories / servings

        ingredients = []
        for ing in recipe.get("ingredients") or []:
            if not isinstance(ing, Mapping):
                continue
            measure = ing.get("measure")
            ingredients.append(
                {
                    "name": ing.get("food"),
                    "amount": ing.get("quantity"),
                    "unit": "" if measure in (None, "<unit>") else measure,
                }
            )

        url = recipe.get("url")
        instructions = [f"See full instructions at {url}"] if isinstance(url, str) and url else []

        tags = []
        for key in ("cuisineType", "dishType", "dietLabels"):
            value = recipe.get(key)
            if isinstance(value, list):
                tags.extend(value)

        uri = recipe.get("uri") if isinstance(recipe.get("uri"), str) else ""
        payload = {
            "title": recipe.get("label"),
            "image": recipe.get("image"),
            "ready_in_minutes": recipe.get("totalTime") or None,
            "servings": recipe.get("yield"),
            "calories": calories,
            "protein": nutrient("PROCNT"),
            "carbs": nutrient("CHOCDF"),
            "fat": nutrient("FAT"),
            "ingredients": ingredients,
            "instructions": instructions,
            "tags": tags,
        }
        return recipe_from_payload(
            payload,
            recipe_id=f"edamam_{uri.split('#recipe_')[-1]}",
            default_tags=(),
            source=self.name,
            with_confidence=False,
        )


class WebsiteRecipeSource(RecipeSource):
    """A recipe website crawled politely: one search page, then recipe pages.

    Args:
        name: Source tag for the site.
        base_url: Site root, used for robots.txt.
        search_url: Search page template with a ``{query}`` placeholder.
        link_pattern: Regex a result link's path must match to count as a
            recipe page.
        max_pages: Maximum number of recipe pages fetched per search.
        session_factory: Builds the session used for requests; defaults to a
            PoliteSession for ``base_url``.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        search_url: str,
        link_pattern: str,
        enabled: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        max_pages: int = 3,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        self._name = name
        self.base_url = base_url
        self.search_url = search_url
        self.link_pattern = re.compile(link_pattern)
        self.enabled = enabled
        self.max_pages = max_pages
        self._session_factory = session_factory or (
            lambda: PoliteSession(base_url, user_agent=user_agent)
        )
        self._session = None
        self._session_lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_configured(self) -> bool:
        return self.enabled

    @property
    def session(self):
        # Built lazily since PoliteSession reads robots.txt on construction
        with self._session_lock:
            if self._session is None:
                self._session = self._session_factory()
            return self._session

    def extract_recipe_links(self, html: str) -> List[str]:
        """Collect unique recipe page URLs from a search results page."""
        soup = BeautifulSoup(html, "lxml")
        links: List[str] = []
        for anchor in soup.find_all("a", href=True):
            url = urljoin(self.base_url, anchor["href"])
            if urlparse(url).netloc != urlparse(self.base_url).netloc:
                continue
            if self.link_pattern.search(urlparse(url).path) and url not in links:
                links.append(url)
        return links

    def recipe_id_for(self, url: str) -> str:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
        return f"{self.name}_{digest}"

    def fetch_recipe(self, url: str) -> Optional[Recipe]:
        """Fetch and parse one recipe page.

        Raises:
            NetworkError: If the page cannot be fetched.
        """
        response = self.session.get(url)
        recipe = parse_recipe_html(response.text, recipe_id=self.recipe_id_for(url), source=self.name)
        if recipe is None:
            logger.info(f"No recipe found on {url}")
        return recipe

    def search(
        self, query: str = "", cuisine: str = "", diet: str = "", max_results: int = 10
    ) -> List[Recipe]:
        terms = " ".join(t for t in (query, cuisine, diet) if t) or "recipes"
        response = self.session.get(self.search_url.format(query=quote(terms)))

        recipes = []
        for url in self.extract_recipe_links(response.text)[: min(self.max_pages, max_results)]:
            try:
                recipe = self.fetch_recipe(url)
            except NetworkError as e:
                logger.warning(f"Skipping {url}: {e}")
                continue
            if recipe is not None:
                recipes.append(recipe)
        return recipes


def default_website_sources(
    enabled: bool = True, user_agent: str = DEFAULT_USER_AGENT
) -> List[WebsiteRecipeSource]:
    """Recipe websites searched in web mode, in priority order."""
    return [
        WebsiteRecipeSource(
            "allrecipes",
            "https://www.allrecipes.com",
            "https://www.allrecipes.com/search?q={query}",
            r"^/recipe/",
            enabled=enabled,
            user_agent=user_agent,
        ),
        WebsiteRecipeSource(
            "foodnetwork",
            "https://www.foodnetwork.com",
            "https://www.foodnetwork.com/search/{query}-",
            r"^/recipes/[^/]+/[^/]+",
            enabled=enabled,
            user_agent=user_agent,
        ),
    ]


def get_product_by_barcode(barcode: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[Dict[str, Any]]:
    """Look up a scanned product on Open Food Facts.

    Args:
        barcode: EAN/UPC barcode digits.

    Returns:
        The product mapping, or None if Open Food Facts does not know it.

    Raises:
        NetworkError: If Open Food Facts cannot be reached.
    """
    url = OPEN_FOOD_FACTS_PRODUCT_URL.format(barcode=quote(barcode.strip()))
    data = fetch_json(url, "openfoodfacts", timeout=timeout)
    if isinstance(data, dict) and data.get("status") == 1 and isinstance(data.get("product"), dict):
        return data["product"]
    return None
