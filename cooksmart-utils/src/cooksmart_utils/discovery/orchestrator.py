"""Recipe discovery: stored search, web search and AI generation over one pantry."""

import contextlib
import dataclasses
import logging
import math
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Generator, List, Optional, Sequence, Union

from tqdm import tqdm

from cooksmart_utils.ai.cache import RecipeCacheManager
from cooksmart_utils.ai.client import RecipeModel
from cooksmart_utils.ai.config import DEFAULT_AI_CONFIG, AIServiceConfig, RecipePreferences
from cooksmart_utils.ai.generation import generate_ai_recipes_from_pantry
from cooksmart_utils.database.repository import DEFAULT_CANDIDATE_LIMIT, RecipeRepository
from cooksmart_utils.errors import ConcurrencyError, NetworkError, NoIngredientsError
from cooksmart_utils.ingredients.matching import (
    PARTIAL,
    STRICT,
    filter_recipes,
    mark_pantry_items,
    score_recipe,
)
from cooksmart_utils.ingredients.models import Ingredient
from cooksmart_utils.ingredients.normalization import (
    MAX_SEARCH_TOKENS,
    extract_search_tokens,
    normalize_pantry_name,
)
from cooksmart_utils.recipes.dedupe import dedupe_recipes
from cooksmart_utils.recipes.models import Recipe
from cooksmart_utils.recipes.repair import is_diagnostic
from cooksmart_utils.recipes.sources import RecipeSource

logger = logging.getLogger(__name__)

STORED = "stored"
WEB = "web"
AI = "ai"
DISCOVERY_MODES = (STORED, WEB, AI)

DEFAULT_MAX_RESULTS = 20

DEFAULT_DOWNLOAD_TERMS = [
    "chicken", "pasta", "salad", "soup", "dessert", "breakfast",
    "vegetarian", "vegan", "quick", "healthy", "italian", "mexican",
]

PantryItem = Union[Ingredient, str]


@dataclasses.dataclass
class DiscoveryOptions:
    strict: bool = False
    max_results: int = DEFAULT_MAX_RESULTS
    count: Optional[int] = None  # AI mode; configured default when None
    preferences: Optional[RecipePreferences] = None
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT


@dataclasses.dataclass
class DownloadProgress:
    total: int
    current: int
    source: str
    status: str  # downloading, processing, saving, complete or error
    message: str


@dataclasses.dataclass
class DownloadOptions:
    max_recipes: int = 1000
    categories: List[str] = dataclasses.field(default_factory=list)
    cuisines: List[str] = dataclasses.field(default_factory=list)
    diets: List[str] = dataclasses.field(default_factory=list)
    clear_existing: bool = False
    on_progress: Optional[Callable[[DownloadProgress], None]] = None
    show_progress: bool = True


def _pantry_names(items: Sequence[PantryItem]) -> List[str]:
    names = []
    for item in items:
        name = item.name if isinstance(item, Ingredient) else item
        if isinstance(name, str) and name.strip():
            names.append(normalize_pantry_name(name))
    return names


def _as_ingredients(items: Sequence[PantryItem]) -> List[Ingredient]:
    ingredients = []
    for item in items:
        if isinstance(item, Ingredient):
            if item.name.strip():
                ingredients.append(item)
        elif isinstance(item, str) and item.strip():
            ingredients.append(Ingredient(name=item.strip()))
    return ingredients


def _mode(strict: bool) -> str:
    return STRICT if strict else PARTIAL


class DiscoveryOrchestrator:
    """Finds recipes for a pantry from the stored corpus, the web or a model.

    All mutable state lives on the instance. Web search, AI generation and
    bulk download share a busy guard: starting one while another is running
    raises ConcurrencyError straight away and leaves the running one alone.

    Args:
        repository: Stored recipe corpus.
        cache: Cache for generated recipes.
        sources: External recipe sources in priority order.
        model: Text model for AI generation.
        ai_config: Generation defaults.
        preferences: Default cooking preferences for AI generation.
        max_workers: Sources queried in parallel during web search.
    """

    def __init__(
        self,
        repository: RecipeRepository,
        cache: RecipeCacheManager,
        sources: Sequence[RecipeSource] = (),
        model: Optional[RecipeModel] = None,
        ai_config: AIServiceConfig = DEFAULT_AI_CONFIG,
        preferences: Optional[RecipePreferences] = None,
        max_workers: int = 4,
    ):
        self.repository = repository
        self.cache = cache
        self.sources = list(sources)
        self.model = model
        self.ai_config = ai_config
        self.preferences = preferences or RecipePreferences()
        self.max_workers = max_workers
        self._busy_lock = threading.Lock()
        self._operation: Optional[str] = None

    @contextlib.contextmanager
    def _busy(self, operation: str) -> Generator[None, None, None]:
        if not self._busy_lock.acquire(blocking=False):
            raise ConcurrencyError(
                f"Cannot start {operation}: {self._operation or 'another operation'} in progress"
            )
        self._operation = operation
        try:
            yield
        finally:
            self._operation = None
            self._busy_lock.release()

    def is_busy(self) -> bool:
        return self._busy_lock.locked()

    def discover(
        self,
        pantry: Sequence[PantryItem],
        mode: str,
        options: Optional[DiscoveryOptions] = None,
    ) -> List[Recipe]:
        """Find recipes for the pantry using one discovery mode.

        Args:
            pantry: Pantry ingredients or plain ingredient names.
            mode: "stored", "web" or "ai".
            options: Matching, result size and generation options.

        Raises:
            ValueError: If ``mode`` is unknown.
            NoIngredientsError: Web or AI mode with an empty pantry.
            ConcurrencyError: Web or AI mode while another operation runs.
        """
        options = options or DiscoveryOptions()
        if mode == STORED:
            return self.search_stored_recipes_only(
                _pantry_names(pantry), options.strict, options.candidate_limit
            )
        if mode == WEB:
            return self.search_online_recipes(
                _pantry_names(pantry), options.strict, options.max_results
            )
        if mode == AI:
            return self.generate_ai_recipes(pantry, options.count, options.preferences)
        raise ValueError(f"Unknown discovery mode: {mode!r}")

    def _score(self, recipes: Sequence[Recipe], names: Sequence[str]) -> List[Recipe]:
        return [
            dataclasses.replace(mark_pantry_items(recipe, names), match_score=score_recipe(recipe, names))
            for recipe in recipes
        ]

    def search_stored_recipes_only(
        self,
        names: Sequence[str],
        strict: bool = False,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> List[Recipe]:
        """Rank stored recipes against the pantry, best match first.

        An empty pantry returns no recipes. When the ingredient index finds no
        candidates, every stored recipe is considered instead. A storage
        failure is logged and reported as no matches.
        """
        names = _pantry_names(names)
        if not names:
            return []

        try:
            candidates = self.repository.find_recipes_by_ingredient_substring(names, candidate_limit)
            if not candidates:
                logger.info("No indexed candidates; scanning all stored recipes")
                candidates = self.repository.get_all_recipes()
        except (sqlite3.Error, OSError):
            logger.exception("Could not read stored recipes")
            return []

        matched = self._score(filter_recipes(candidates, names, _mode(strict)), names)
        matched.sort(key=lambda recipe: recipe.match_score, reverse=True)
        logger.info(f"Stored search: {len(matched)} of {len(candidates)} candidates match")
        return matched

    def _query_source(
        self, source: RecipeSource, tokens: List[str], mode: str, max_results: int
    ) -> List[Recipe]:
        try:
            recipes = source.search_by_ingredients(tokens, mode, max_results)
        except NetworkError as e:
            logger.warning(f"{source.name} search failed: {e}")
            return []
        except Exception:
            logger.exception(f"Unexpected error searching {source.name}")
            return []
        logger.info(f"{source.name}: {len(recipes)} recipes")
        return recipes

    def search_online_recipes(
        self,
        names: Sequence[str],
        strict: bool = False,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> List[Recipe]:
        """Search every configured source, then dedupe, score and store the results.

        A failing source is logged and skipped. Results keep source priority
        order and are cut to ``max_results`` after deduplication.

        Raises:
            NoIngredientsError: If ``names`` is empty.
            ConcurrencyError: If another search, generation or download is running.
        """
        names = _pantry_names(names)
        if not names:
            raise NoIngredientsError("Add pantry ingredients before searching online")

        with self._busy("web search"):
            tokens = extract_search_tokens(names)
            if not tokens:
                logger.debug("No search tokens extracted; using pantry names")
                tokens = names[:MAX_SEARCH_TOKENS]

            sources = [s for s in self.sources if s.is_configured]
            if not sources:
                logger.warning("No recipe sources configured")
                return []

            mode = _mode(strict)
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self._query_source, source, tokens, mode, max_results)
                    for source in sources
                ]
                fetched = [recipe for future in futures for recipe in future.result()]

            results = self._score(dedupe_recipes(fetched)[:max_results], names)

            try:
                self.repository.upsert_recipes(results)
            except (sqlite3.Error, OSError):
                logger.exception("Could not store web search results")

        return results

    def generate_ai_recipes(
        self,
        ingredients: Sequence[PantryItem],
        count: Optional[int] = None,
        preferences: Optional[RecipePreferences] = None,
    ) -> List[Recipe]:
        """Generate recipes from the pantry, reusing the cache while it is fresh.

        Cached recipes are returned without a model call unless the pantry
        changed since they were generated. Diagnostic results (parsing or
        network errors) are returned but never cached.

        Raises:
            NoIngredientsError: If the pantry is empty.
            ConcurrencyError: If another search, generation or download is running.
        """
        pantry = _as_ingredients(ingredients)
        if not pantry:
            raise NoIngredientsError("Add pantry ingredients before generating recipes")

        with self._busy("AI generation"):
            if not self.cache.get_should_regenerate() and self.cache.has_cached_recipes():
                logger.info("Using cached AI recipes")
                return self.cache.get_cached_recipes()

            epoch = self.cache.epoch
            recipes = generate_ai_recipes_from_pantry(
                pantry,
                count or self.ai_config.default_recipe_count,
                preferences or self.preferences,
                model=self.model,
            )

            if recipes and not any(is_diagnostic(r) for r in recipes):
                try:
                    self.cache.save_recipes(recipes)
                    self.cache.reset_flag(since_epoch=epoch)
                except (sqlite3.Error, OSError):
                    logger.exception("Could not cache generated recipes")

        return recipes

    def _report(self, options: DownloadOptions, **progress) -> None:
        if options.on_progress is None:
            return
        try:
            options.on_progress(DownloadProgress(**progress))
        except Exception:
            logger.exception("Download progress callback failed")

    def _download_from(
        self, source: RecipeSource, terms: List[str], limit: int, options: DownloadOptions
    ) -> List[Recipe]:
        per_term = math.ceil(limit / max(len(terms), 1))
        cuisine = options.cuisines[0] if options.cuisines else ""
        diet = options.diets[0] if options.diets else ""

        recipes: List[Recipe] = []
        for term in tqdm(terms, desc=f"{source.name} recipes", disable=not options.show_progress):
            if len(recipes) >= limit:
                break
            try:
                recipes.extend(source.search(term, cuisine, diet, per_term))
            except NetworkError as e:
                logger.warning(f"Error fetching {term} recipes from {source.name}: {e}")
            self._report(
                options,
                total=options.max_recipes,
                current=len(recipes),
                source=source.name,
                status="downloading",
                message=f"Fetched {term} recipes from {source.name}",
            )
        return recipes

    def download_recipes(self, options: Optional[DownloadOptions] = None) -> List[Recipe]:
        """Bulk-populate the stored corpus from every configured source.

        Raises:
            ConcurrencyError: If another search, generation or download is running.
        """
        options = options or DownloadOptions()
        with self._busy("download"):
            total = options.max_recipes
            self._report(
                options, total=total, current=0, source="initializing",
                status="downloading", message="Initializing recipe download...",
            )
            try:
                if options.clear_existing:
                    self.repository.clear_all_recipes()

                sources = [s for s in self.sources if s.is_configured]
                terms = list(options.categories) or list(DEFAULT_DOWNLOAD_TERMS)
                per_source = math.ceil(total / max(len(sources), 1))

                downloaded: List[Recipe] = []
                for source in sources:
                    downloaded.extend(self._download_from(source, terms, per_source, options))

                self._report(
                    options, total=total, current=len(downloaded), source="all",
                    status="processing", message="Removing duplicate recipes...",
                )
                recipes = dedupe_recipes(downloaded)[:total]

                self._report(
                    options, total=total, current=len(recipes), source="database",
                    status="saving", message=f"Saving {len(recipes)} recipes...",
                )
                self.repository.upsert_recipes(recipes)
            except Exception as e:
                self._report(
                    options, total=total, current=0, source="error",
                    status="error", message=f"Download failed: {e}",
                )
                raise

            self._report(
                options, total=total, current=len(recipes), source="complete",
                status="complete", message=f"Downloaded {len(recipes)} recipes",
            )
        logger.info(f"Downloaded {len(recipes)} recipes")
        return recipes

    def get_download_status(self) -> dict:
        return {
            "is_downloading": self._operation == "download",
            "recipe_count": self.repository.count_recipes(),
        }


# Module-level entry points. The orchestrator is always passed in.


def search_stored_recipes_only(
    names: Sequence[str], strict: bool = False, *, orchestrator: DiscoveryOrchestrator
) -> List[Recipe]:
    return orchestrator.search_stored_recipes_only(names, strict)


def search_online_recipes(
    names: Sequence[str],
    strict: bool = False,
    max_results: int = DEFAULT_MAX_RESULTS,
    *,
    orchestrator: DiscoveryOrchestrator,
) -> List[Recipe]:
    return orchestrator.search_online_recipes(names, strict, max_results)
