"""Recipe discovery across the stored corpus, recipe sources and AI generation."""

from .builder import build_orchestrator, build_pantry
from .orchestrator import (
    AI,
    DISCOVERY_MODES,
    STORED,
    WEB,
    DiscoveryOptions,
    DiscoveryOrchestrator,
    DownloadOptions,
    DownloadProgress,
    search_online_recipes,
    search_stored_recipes_only,
)

__all__ = [
    "AI",
    "STORED",
    "WEB",
    "DISCOVERY_MODES",
    "DiscoveryOptions",
    "DiscoveryOrchestrator",
    "DownloadOptions",
    "DownloadProgress",
    "build_orchestrator",
    "build_pantry",
    "search_online_recipes",
    "search_stored_recipes_only",
]
