# nutriplan/services/aggregation.py
"""
Grouping and totals over food log entries and meal plan items.

Functions accept pydantic models or plain dicts so they can run on stored
rows as well as on API payloads.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from nutriplan.models.enums import MEAL_TYPES

SUNDAY = 6  # date.weekday()

_MACRO_FIELDS = {
    "calories": ("calories", "estimated_calories"),
    "protein": ("protein_g", "protein", "estimated_protein"),
    "carbs": ("carbs_g", "carbs", "estimated_carbs"),
    "fat": ("fat_g", "fat", "estimated_fat"),
}


def _get(entry: Any, name: str, default: Any = None) -> Any:
    if isinstance(entry, dict):
        return entry.get(name, default)
    return getattr(entry, name, default)


def _as_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _macro(entry: Any, macro: str) -> float:
    for name in _MACRO_FIELDS[macro]:
        value = _get(entry, name)
        if value is not None:
            return float(value)
    return 0.0


def sum_macros(entries: Iterable[Any]) -> Dict[str, float]:
    totals = {macro: 0.0 for macro in _MACRO_FIELDS}
    for entry in entries:
        for macro in _MACRO_FIELDS:
            totals[macro] += _macro(entry, macro)
    return totals


def group_by_meal_type(entries: Iterable[Any]) -> Dict[str, List[Any]]:
    groups: Dict[str, List[Any]] = {mt: [] for mt in MEAL_TYPES}
    for entry in entries:
        meal_type = _get(entry, "meal_type")
        if meal_type in groups:
            groups[meal_type].append(entry)
    return groups


def week_start(day: date, first_weekday: int = SUNDAY) -> date:
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def week_days(start: date) -> List[date]:
    return [start + timedelta(days=i) for i in range(7)]


def build_week_skeleton(start: date) -> Dict[str, Dict[str, Any]]:
    return {d.isoformat(): {mt: None for mt in MEAL_TYPES} for d in week_days(start)}


def overlay_plan(
    skeleton: Dict[str, Dict[str, Any]], items: Iterable[Any]
) -> Dict[str, Dict[str, Any]]:
    """Copy of `skeleton` with items placed in their (date, meal_type) slot."""
    grid = {day: dict(slots) for day, slots in skeleton.items()}
    for item in items:
        day = _as_date(_get(item, "date"))
        meal_type = _get(item, "meal_type")
        if day is None:
            continue
        slots = grid.get(day.isoformat())
        if slots is not None and meal_type in slots:
            slots[meal_type] = item
    return grid


def compute_streak(entries: Iterable[Any], today: date, max_lookback: int = 30) -> int:
    """Consecutive days with at least one entry, counting back from today."""
    logged = {_as_date(_get(e, "date")) for e in entries}
    streak = 0
    for offset in range(max_lookback):
        if today - timedelta(days=offset) not in logged:
            break
        streak += 1
    return streak


def entries_on(entries: Iterable[Any], day: date) -> List[Any]:
    return [e for e in entries if _as_date(_get(e, "date")) == day]


def daily_totals(entries: Sequence[Any], days: Iterable[date]) -> List[Dict[str, Any]]:
    """Rounded per-day totals, one row per requested day (chart data)."""
    rows = []
    for day in days:
        day_entries = entries_on(entries, day)
        totals = sum_macros(day_entries)
        rows.append(
            {
                "date": day.isoformat(),
                "label": f"{day:%b} {day.day}",
                "calories": round(totals["calories"]),
                "protein": round(totals["protein"]),
                "carbs": round(totals["carbs"]),
                "fat": round(totals["fat"]),
                "entries": len(day_entries),
            }
        )
    return rows


def last_n_days(today: date, n: int = 7) -> List[date]:
    return [today - timedelta(days=n - 1 - i) for i in range(n)]


def average_daily_calories(entries: Iterable[Any], today: date, days: int = 7) -> float:
    """Calories over the last `days` days (today included) divided by `days`."""
    window = set(last_n_days(today, days))
    total = sum(
        _macro(e, "calories") for e in entries if _as_date(_get(e, "date")) in window
    )
    return total / days if days else 0.0


def today_meals(
    plan_items: Iterable[Any], food_entries: Iterable[Any]
) -> Dict[str, Dict[str, Any]]:
    """Per meal type: the planned meal (or None) and what was actually logged."""
    planned = {_get(p, "meal_type"): p for p in plan_items}
    logged = group_by_meal_type(food_entries)
    return {
        mt: {
            "planned": planned.get(mt),
            "logged": logged[mt],
            "has_logged": bool(logged[mt]),
        }
        for mt in MEAL_TYPES
    }
