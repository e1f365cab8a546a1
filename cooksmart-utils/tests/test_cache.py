import pytest

from cooksmart_utils.ai.cache import CACHE_KEY, INVALIDATION_KEY, RecipeCacheManager
from cooksmart_utils.database.kv_store import SQLiteKeyValueStore
from cooksmart_utils.ingredients.models import RecipeIngredientItem
from cooksmart_utils.recipes.models import Recipe


@pytest.fixture
def store(tmp_path):
    return SQLiteKeyValueStore(tmp_path / "cooksmart.db")


@pytest.fixture
def cache(store):
    return RecipeCacheManager(store)


def make_recipe(title="Fried Rice"):
    return Recipe(
        id=f"ai_{title.lower().replace(' ', '_')}",
        title=title,
        ingredients=[RecipeIngredientItem(name="rice", amount=2.0, unit="cup")],
        instructions=["Fry the rice."],
        tags=["ai-generated"],
        confidence_score=80,
        source="ai",
    )


def test_new_cache_is_empty(cache):
    assert cache.get_cached_recipes() == []
    assert not cache.has_cached_recipes()
    assert not cache.get_should_regenerate()


def test_invalidate_sets_and_persists_flag(cache, store):
    cache.invalidate()
    assert cache.get_should_regenerate()
    assert store.get_item(INVALIDATION_KEY) == "true"
    assert cache.check_invalidation_from_storage()


def test_save_recipes_leaves_flag_alone(cache):
    cache.invalidate()
    cache.save_recipes([make_recipe()])
    assert cache.get_should_regenerate()
    assert cache.has_cached_recipes()


def test_reset_flag(cache, store):
    cache.invalidate()
    assert cache.reset_flag()
    assert not cache.get_should_regenerate()
    assert store.get_item(INVALIDATION_KEY) == "false"


def test_reset_flag_keeps_flag_after_newer_invalidation(cache):
    """A pantry change during generation must survive the reset."""
    epoch = cache.epoch
    cache.invalidate()
    assert not cache.reset_flag(since_epoch=epoch)
    assert cache.get_should_regenerate()
    assert cache.reset_flag(since_epoch=cache.epoch)
    assert not cache.get_should_regenerate()


def test_state_survives_restart(store):
    recipe = make_recipe()
    first = RecipeCacheManager(store)
    first.save_recipes([recipe])
    first.invalidate()

    second = RecipeCacheManager(store)
    assert second.get_should_regenerate()
    assert second.get_cached_recipes() == [recipe]


def test_get_cached_recipes_returns_copy(cache):
    cache.save_recipes([make_recipe()])
    cache.get_cached_recipes().clear()
    assert len(cache.get_cached_recipes()) == 1


def test_clear_cache(cache, store):
    cache.save_recipes([make_recipe()])
    cache.invalidate()
    epoch = cache.epoch
    cache.clear_cache()
    assert not cache.has_cached_recipes()
    assert not cache.get_should_regenerate()
    assert cache.epoch > epoch
    assert store.get_item(CACHE_KEY) is None
    assert store.get_item(INVALIDATION_KEY) is None


def test_unreadable_cache_is_discarded(store):
    store.set_item(CACHE_KEY, "not json")
    assert RecipeCacheManager(store).get_cached_recipes() == []


def test_subscribe_and_unsubscribe(cache):
    calls = []
    unsubscribe = cache.subscribe(lambda: calls.append("changed"))
    cache.invalidate()
    unsubscribe()
    cache.invalidate()
    assert calls == ["changed"]


def test_failing_listener_does_not_block_others(cache):
    calls = []

    def broken():
        raise RuntimeError("boom")

    cache.subscribe(broken)
    cache.subscribe(lambda: calls.append("changed"))
    cache.invalidate()
    assert calls == ["changed"]
    assert cache.get_should_regenerate()


def test_debug_state(cache):
    cache.save_recipes([make_recipe(), make_recipe("Congee")])
    cache.subscribe(lambda: None)
    state = cache.debug_state()
    assert state["cached_recipes"] == 2
    assert state["listeners"] == 1
    assert state["should_regenerate"] is False
