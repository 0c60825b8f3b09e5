# tests/test_stores.py
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

import pytest

from nutriplan.config.database import DatabaseManager
from nutriplan.models.food_entry import FoodEntry
from nutriplan.models.meal_plan import MealPlanItem
from nutriplan.services.kv_store import (
    InMemoryKeyValueStore,
    SqlKeyValueStore,
    StorageError,
    create_kv_store,
)
from nutriplan.services.stores import FoodLogStore, MealPlanStore, ProfileStore

TODAY = date(2026, 10, 14)
WEEK_START = date(2026, 10, 11)


@pytest.fixture(params=["memory", "sql"])
def any_kv(request, tmp_path):
    if request.param == "memory":
        yield InMemoryKeyValueStore()
        return
    store = SqlKeyValueStore(DatabaseManager(f"sqlite:///{tmp_path / 'kv.db'}"))
    yield store
    store.close()


def _item(day, meal_type="lunch", title="Meal", user_id="u1"):
    return MealPlanItem(user_id=user_id, date=day, meal_type=meal_type, title=title)


def test_kv_set_get_delete(any_kv):
    any_kv.set("profile:u1", {"id": "u1", "age": 30})
    assert any_kv.get("profile:u1") == {"id": "u1", "age": 30}
    assert any_kv.delete("profile:u1") is True
    assert any_kv.get("profile:u1") is None
    assert any_kv.delete("profile:u1") is False


def test_kv_prefix_scan(any_kv):
    any_kv.apply(sets={"food_log:u1:2026-10-13": [], "food_log:u1:2026-10-14": [], "food_log:u10:2026-10-14": []})
    assert any_kv.keys("food_log:u1:") == ["food_log:u1:2026-10-13", "food_log:u1:2026-10-14"]


def test_kv_prefix_scan_escapes_wildcards(any_kv):
    any_kv.apply(sets={"a_b:1": 1, "axb:1": 2})
    assert any_kv.keys("a_b:") == ["a_b:1"]


def test_kv_apply_sets_and_deletes_together(any_kv):
    any_kv.apply(sets={"k1": 1, "k2": 2})
    any_kv.apply(sets={"k3": 3}, deletes=["k1"])
    assert any_kv.keys() == ["k2", "k3"]


def test_memory_kv_rejects_unserializable_batch_without_partial_write():
    kv = InMemoryKeyValueStore()
    kv.set("keep", 1)
    with pytest.raises(StorageError):
        kv.apply(sets={"ok": 1, "bad": object()}, deletes=["keep"])
    assert kv.get("keep") == 1
    assert kv.get("ok") is None


def test_memory_kv_returns_copies():
    kv = InMemoryKeyValueStore()
    kv.set("rows", [1, 2])
    rows = kv.get("rows")
    rows.append(3)
    assert kv.get("rows") == [1, 2]


def test_create_kv_store_defaults_to_memory():
    assert isinstance(create_kv_store(None), InMemoryKeyValueStore)


def test_sql_kv_diagnostics_have_no_credentials(tmp_path):
    store = SqlKeyValueStore(DatabaseManager(f"sqlite:///{tmp_path / 'diag.db'}"))
    diag = store.diagnostics()
    assert diag["backend"] == "sql"
    assert diag["driver"] == "sqlite"
    assert store.health_check() is True
    store.close()


def test_profile_store_roundtrip(profile_store, sample_profile):
    assert profile_store.load("u1") is None
    profile_store.save(sample_profile)
    loaded = profile_store.load("u1")
    assert loaded == sample_profile
    assert profile_store.delete("u1") is True
    assert profile_store.load("u1") is None


def test_food_log_store_keeps_days_apart(food_store):
    first = food_store.add(FoodEntry(user_id="u1", date=TODAY, meal_type="lunch", food_name="Rice"))
    food_store.add(FoodEntry(user_id="u1", date=TODAY - timedelta(days=1), meal_type="dinner", food_name="Soup"))
    food_store.add(FoodEntry(user_id="u2", date=TODAY, meal_type="lunch", food_name="Other user"))

    assert [e.food_name for e in food_store.list_for_date("u1", TODAY)] == ["Rice"]
    assert len(food_store.all_entries("u1")) == 2
    assert len(food_store.list_range("u1", TODAY - timedelta(days=6), TODAY)) == 2

    assert food_store.delete("u1", TODAY, first.id) is True
    assert food_store.delete("u1", TODAY, first.id) is False
    assert food_store.list_for_date("u1", TODAY) == []


def test_meal_plan_store_one_item_per_slot(meal_plan_store):
    meal_plan_store.upsert(_item(TODAY, "lunch", "First"))
    meal_plan_store.upsert(_item(TODAY, "lunch", "Second"))
    meal_plan_store.upsert(_item(TODAY, "breakfast", "Oats"))
    items = meal_plan_store.list_for_date("u1", TODAY)
    assert [(i.meal_type, i.title) for i in items] == [("breakfast", "Oats"), ("lunch", "Second")]


def test_replace_week_clears_previous_items(meal_plan_store):
    meal_plan_store.upsert(_item(WEEK_START, "dinner", "Old dinner"))
    meal_plan_store.upsert(_item(WEEK_START + timedelta(days=3), "snack", "Old snack"))
    # the Sunday after the week is not touched
    meal_plan_store.upsert(_item(WEEK_START + timedelta(days=7), "lunch", "Next week"))

    meal_plan_store.replace_week("u1", WEEK_START, [_item(WEEK_START, "lunch", "New lunch")])

    week = meal_plan_store.list_range("u1", WEEK_START, WEEK_START + timedelta(days=6))
    assert [i.title for i in week] == ["New lunch"]
    assert meal_plan_store.get("u1", WEEK_START + timedelta(days=7), "lunch").title == "Next week"


@pytest.mark.parametrize(
    "bad_item",
    [
        _item(WEEK_START + timedelta(days=7)),
        _item(WEEK_START, user_id="u2"),
    ],
)
def test_replace_week_validates_before_writing(meal_plan_store, bad_item):
    meal_plan_store.upsert(_item(TODAY, "dinner", "Keep me"))
    with pytest.raises(ValueError):
        meal_plan_store.replace_week("u1", WEEK_START, [_item(WEEK_START, "lunch"), bad_item])
    assert meal_plan_store.get("u1", TODAY, "dinner").title == "Keep me"
    assert meal_plan_store.get("u1", WEEK_START, "lunch") is None


def test_replace_week_rejects_duplicate_slot(meal_plan_store):
    with pytest.raises(ValueError):
        meal_plan_store.replace_week(
            "u1", WEEK_START, [_item(TODAY, "lunch", "A"), _item(TODAY, "lunch", "B")]
        )


def test_concurrent_adds_to_one_day_are_all_kept(food_store):
    def add(n):
        food_store.add(FoodEntry(user_id="u1", date=TODAY, meal_type="snack", food_name=f"Bite {n}"))

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(add, range(50)))
    names = {e.food_name for e in food_store.list_for_date("u1", TODAY)}
    assert names == {f"Bite {n}" for n in range(50)}


def test_concurrent_upserts_to_different_slots_are_all_kept(meal_plan_store):
    slots = ["breakfast", "lunch", "dinner", "snack"]
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda mt: meal_plan_store.upsert(_item(TODAY, mt, mt.title())), slots * 10))
    items = meal_plan_store.list_for_date("u1", TODAY)
    assert sorted(i.meal_type for i in items) == sorted(slots)
