"""Wiring of the discovery engine from settings."""

import logging
from typing import Optional

from cooksmart_utils.ai.cache import RecipeCacheManager
from cooksmart_utils.ai.client import BedrockRecipeModel
from cooksmart_utils.ai.config import validate_ai_config
from cooksmart_utils.config import Settings
from cooksmart_utils.database import PantryStore, RecipeRepository, SQLiteKeyValueStore
from cooksmart_utils.recipes.sources import (
    EdamamRecipeSource,
    SpoonacularRecipeSource,
    default_website_sources,
)

from .orchestrator import DiscoveryOrchestrator

logger = logging.getLogger(__name__)


def build_orchestrator(settings: Optional[Settings] = None) -> DiscoveryOrchestrator:
    """Build a DiscoveryOrchestrator and its collaborators from settings.

    Sources are ordered by priority: Spoonacular, Edamam, then the recipe
    websites (only active when web scraping is enabled).
    """
    settings = settings or Settings()
    ai_config = settings.ai_config()

    report = validate_ai_config(ai_config)
    for warning in report["warnings"]:
        logger.warning(f"AI config: {warning}")

    sources = [
        SpoonacularRecipeSource(settings.spoonacular_api_key),
        EdamamRecipeSource(settings.edamam_app_id, settings.edamam_app_key),
        *default_website_sources(
            enabled=settings.enable_web_scraping, user_agent=settings.scraper_user_agent
        ),
    ]
    return DiscoveryOrchestrator(
        repository=RecipeRepository(settings.db_path),
        cache=RecipeCacheManager(SQLiteKeyValueStore(settings.db_path)),
        sources=sources,
        model=BedrockRecipeModel(ai_config),
        ai_config=ai_config,
    )


def build_pantry(orchestrator: DiscoveryOrchestrator) -> PantryStore:
    """Pantry store sharing the orchestrator's database and AI recipe cache."""
    return PantryStore(orchestrator.repository.db_path, cache=orchestrator.cache)
