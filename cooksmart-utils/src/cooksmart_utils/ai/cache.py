"""Persistent cache of AI-generated recipes with pantry-change invalidation."""

import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from cooksmart_utils.recipes.models import Recipe

logger = logging.getLogger(__name__)

CACHE_KEY = "ai_recipe_cache"
INVALIDATION_KEY = "ai_recipe_invalidation"


class RecipeCacheManager:
    """Holds the last generated recipe set and a "should regenerate" flag.

    The flag is set whenever the pantry changes and is cleared only after a
    generation has been saved. Both the recipes and the flag are persisted in
    a key-value store (anything with ``get_item``, ``set_item`` and
    ``multi_remove``) and loaded once at construction.

    Every invalidation bumps an epoch counter. A generation snapshots the
    epoch before calling the model and passes it to :meth:`reset_flag`, so a
    pantry change that lands while the model is running keeps the flag set.

    Example:
        >>> cache = RecipeCacheManager(SQLiteKeyValueStore("data/cooksmart.db"))
        >>> epoch = cache.epoch
        >>> cache.save_recipes(recipes)
        >>> cache.reset_flag(since_epoch=epoch)
        True
    """

    def __init__(self, store: Any):
        self.store = store
        self._lock = threading.RLock()
        self._listeners: List[Callable[[], None]] = []
        self._epoch = 0
        self._should_regenerate = store.get_item(INVALIDATION_KEY) == "true"
        self._recipes = self._load_recipes()
        logger.debug(
            f"Loaded {len(self._recipes)} cached AI recipes "
            f"(should_regenerate={self._should_regenerate})"
        )

    def _load_recipes(self) -> List[Recipe]:
        raw = self.store.get_item(CACHE_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            return [Recipe.from_dict(item) for item in data]
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable AI recipe cache: {e}")
            return []

    @property
    def epoch(self) -> int:
        return self._epoch

    def invalidate(self) -> None:
        """Mark the cached recipes as stale because the pantry changed."""
        with self._lock:
            self._should_regenerate = True
            self._epoch += 1
            self.store.set_item(INVALIDATION_KEY, "true")
        logger.info("AI recipe cache invalidated: pantry changed")
        self._notify_listeners()

    invalidate_cache = invalidate

    def get_should_regenerate(self) -> bool:
        return self._should_regenerate

    def check_invalidation_from_storage(self) -> bool:
        """Read the persisted flag, bypassing the in-memory copy."""
        return self.store.get_item(INVALIDATION_KEY) == "true"

    def save_recipes(self, recipes: Iterable[Recipe]) -> None:
        """Replace the cached recipe set. The flag is left untouched."""
        with self._lock:
            self._recipes = list(recipes)
            self.store.set_item(CACHE_KEY, json.dumps([r.to_dict() for r in self._recipes]))
        logger.info(f"Saved {len(self._recipes)} AI recipes to cache")

    def reset_flag(self, since_epoch: Optional[int] = None) -> bool:
        """Clear the regenerate flag after a successful generation.

        Args:
            since_epoch: Epoch observed when the generation started. If the
                cache was invalidated after it, the flag stays set.

        Returns:
            True if the flag was cleared.
        """
        with self._lock:
            if since_epoch is not None and since_epoch != self._epoch:
                logger.info("Pantry changed during generation; keeping regenerate flag")
                return False
            self._should_regenerate = False
            self.store.set_item(INVALIDATION_KEY, "false")
            return True

    def get_cached_recipes(self) -> List[Recipe]:
        return list(self._recipes)

    def has_cached_recipes(self) -> bool:
        return bool(self._recipes)

    def clear_cache(self) -> None:
        """Drop cached recipes and the flag, in memory and in storage."""
        with self._lock:
            self._recipes = []
            self._should_regenerate = False
            self._epoch += 1
            self.store.multi_remove([CACHE_KEY, INVALIDATION_KEY])
        logger.info("AI recipe cache cleared")

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` on every invalidation.

        Returns:
            A function that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify_listeners(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Cache invalidation listener failed")

    def debug_state(self) -> Dict[str, Any]:
        state = {
            "should_regenerate": self._should_regenerate,
            "cached_recipes": len(self._recipes),
            "listeners": len(self._listeners),
            "epoch": self._epoch,
        }
        logger.debug(f"Cache state: {state}")
        return state
