# tests/test_aggregation.py
from datetime import date, timedelta

from nutriplan.models.food_entry import FoodEntry
from nutriplan.models.meal_plan import MealPlanItem
from nutriplan.services.aggregation import (
    average_daily_calories,
    build_week_skeleton,
    compute_streak,
    daily_totals,
    group_by_meal_type,
    overlay_plan,
    sum_macros,
    today_meals,
    week_start,
)

TODAY = date(2026, 10, 14)  # Wednesday
WEEK_START = date(2026, 10, 11)


def _entry(day=TODAY, meal_type="lunch", calories=100, protein=10, carbs=20, fat=5):
    return FoodEntry(
        user_id="u1",
        date=day,
        meal_type=meal_type,
        food_name="Something",
        calories=calories,
        protein_g=protein,
        carbs_g=carbs,
        fat_g=fat,
    )


def test_sum_macros_empty():
    assert sum_macros([]) == {"calories": 0, "protein": 0, "carbs": 0, "fat": 0}


def test_sum_macros_is_order_independent():
    entries = [_entry(calories=120), _entry(calories=300, fat=12), _entry(calories=55.5)]
    forward = sum_macros(entries)
    backward = sum_macros(list(reversed(entries)))
    assert forward == backward
    assert forward["calories"] == 475.5
    assert forward["fat"] == 22


def test_sum_macros_reads_plan_items_and_dicts():
    item = MealPlanItem(
        user_id="u1",
        date=TODAY,
        meal_type="dinner",
        title="Soup",
        estimated_calories=400,
        estimated_protein=20,
    )
    totals = sum_macros([item, {"calories": 100, "protein": 5}])
    assert totals["calories"] == 500
    assert totals["protein"] == 25


def test_group_by_meal_type_has_every_key():
    groups = group_by_meal_type([])
    assert set(groups) == {"breakfast", "lunch", "dinner", "snack"}
    assert all(v == [] for v in groups.values())

    entries = [_entry(meal_type="snack"), _entry(meal_type="snack"), _entry(meal_type="breakfast")]
    groups = group_by_meal_type(entries)
    assert len(groups["snack"]) == 2
    assert len(groups["breakfast"]) == 1
    assert groups["dinner"] == []


def test_week_starts_on_sunday():
    assert week_start(TODAY) == WEEK_START
    assert week_start(WEEK_START) == WEEK_START
    # the Saturday closing the week
    assert week_start(WEEK_START + timedelta(days=6)) == WEEK_START


def test_skeleton_and_overlay():
    skeleton = build_week_skeleton(WEEK_START)
    assert list(skeleton) == [(WEEK_START + timedelta(days=i)).isoformat() for i in range(7)]
    assert all(list(slots) == ["breakfast", "lunch", "dinner", "snack"] for slots in skeleton.values())

    item = MealPlanItem(user_id="u1", date=TODAY, meal_type="lunch", title="Salad")
    outside = MealPlanItem(user_id="u1", date=WEEK_START - timedelta(days=1), meal_type="lunch", title="Old")
    grid = overlay_plan(skeleton, [item, outside])
    assert grid[TODAY.isoformat()]["lunch"] is item
    assert grid[TODAY.isoformat()]["dinner"] is None
    # skeleton itself is untouched
    assert skeleton[TODAY.isoformat()]["lunch"] is None
    filled = sum(1 for slots in grid.values() for v in slots.values() if v is not None)
    assert filled == 1


def test_streak_counts_consecutive_days_back_from_today():
    entries = [
        _entry(day=TODAY),
        _entry(day=TODAY - timedelta(days=1)),
        _entry(day=TODAY - timedelta(days=2)),
        _entry(day=TODAY - timedelta(days=4)),
    ]
    assert compute_streak(entries, TODAY) == 3


def test_streak_is_zero_without_entry_today():
    entries = [_entry(day=TODAY - timedelta(days=1))]
    assert compute_streak(entries, TODAY) == 0
    assert compute_streak([], TODAY) == 0


def test_streak_is_capped_by_lookback():
    entries = [_entry(day=TODAY - timedelta(days=i)) for i in range(40)]
    assert compute_streak(entries, TODAY) == 30
    assert compute_streak(entries, TODAY, max_lookback=5) == 5


def test_daily_totals_and_average():
    entries = [
        _entry(day=TODAY, calories=700),
        _entry(day=TODAY - timedelta(days=2), calories=700),
        # outside the 7-day window
        _entry(day=TODAY - timedelta(days=7), calories=5000),
    ]
    days = [TODAY - timedelta(days=1), TODAY]
    rows = daily_totals(entries, days)
    assert [r["calories"] for r in rows] == [0, 700]
    assert rows[1]["label"] == "Oct 14"
    assert average_daily_calories(entries, TODAY) == 200


def test_today_meals_pairs_plan_with_log():
    planned = [MealPlanItem(user_id="u1", date=TODAY, meal_type="dinner", title="Curry")]
    logged = [_entry(meal_type="lunch")]
    view = today_meals(planned, logged)
    assert view["dinner"]["planned"].title == "Curry"
    assert view["dinner"]["has_logged"] is False
    assert view["lunch"]["planned"] is None
    assert view["lunch"]["has_logged"] is True
