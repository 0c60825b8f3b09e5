# nutriplan/services/stores.py
"""
Typed stores over a KeyValueStore.

Key layout:
  profile:{user_id}               -> Profile
  food_log:{user_id}:{date}       -> [FoodEntry, ...]      (insertion order)
  water_log:{user_id}:{date}      -> [WaterEntry, ...]
  meal_plan:{user_id}:{date}      -> {meal_type: MealPlanItem}

Each store is handed its KeyValueStore explicitly; nothing here reads
module-level state.

Adding to or deleting from a day rewrites the whole day value (read,
modify, write). Those sections hold the store's lock, so concurrent writes
through one store instance (sync routers run in the threadpool) cannot drop
each other's update. Separate processes or store instances sharing a
backend are not coordinated.
"""
from __future__ import annotations

import logging
import threading
from datetime import date, timedelta
from typing import Dict, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from nutriplan.models.enums import MEAL_TYPES
from nutriplan.models.food_entry import FoodEntry, WaterEntry
from nutriplan.models.meal_plan import MealPlanItem
from nutriplan.models.profile import Profile
from nutriplan.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7

T = TypeVar("T", bound=BaseModel)


def iter_days(start: date, end: date) -> Iterable[date]:
    """Inclusive date range; empty when end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class ProfileStore:

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    @staticmethod
    def key(user_id: str) -> str:
        return f"profile:{user_id}"

    def load(self, user_id: str) -> Optional[Profile]:
        raw = self.kv.get(self.key(user_id))
        return Profile.model_validate(raw) if raw else None

    def save(self, profile: Profile) -> Profile:
        self.kv.set(self.key(profile.id), profile.model_dump(mode="json"))
        logger.debug("profile saved user=%s", profile.id)
        return profile

    def delete(self, user_id: str) -> bool:
        return self.kv.delete(self.key(user_id))


class DatedLogStore(Generic[T]):
    """Append-only lists of entries, one list per (user, calendar day)."""

    prefix: str = ""
    model: Type[T]

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv
        self._lock = threading.Lock()

    def key(self, user_id: str, day: date) -> str:
        return f"{self.prefix}:{user_id}:{day.isoformat()}"

    def _load(self, key: str) -> List[T]:
        return [self.model.model_validate(r) for r in (self.kv.get(key) or [])]

    def add(self, entry: T) -> T:
        key = self.key(entry.user_id, entry.date)
        with self._lock:
            rows = self.kv.get(key) or []
            rows.append(entry.model_dump(mode="json"))
            self.kv.set(key, rows)
        return entry

    def list_for_date(self, user_id: str, day: date) -> List[T]:
        return self._load(self.key(user_id, day))

    def list_range(self, user_id: str, start: date, end: date) -> List[T]:
        entries: List[T] = []
        for day in iter_days(start, end):
            entries.extend(self.list_for_date(user_id, day))
        return entries

    def all_entries(self, user_id: str) -> List[T]:
        entries: List[T] = []
        for key in self.kv.keys(f"{self.prefix}:{user_id}:"):
            entries.extend(self._load(key))
        return entries

    def delete(self, user_id: str, day: date, entry_id: str) -> bool:
        key = self.key(user_id, day)
        with self._lock:
            rows = self.kv.get(key) or []
            kept = [r for r in rows if r.get("id") != entry_id]
            if len(kept) == len(rows):
                return False
            if kept:
                self.kv.set(key, kept)
            else:
                self.kv.delete(key)
        return True


class FoodLogStore(DatedLogStore[FoodEntry]):
    prefix = "food_log"
    model = FoodEntry


class WaterLogStore(DatedLogStore[WaterEntry]):
    prefix = "water_log"
    model = WaterEntry


class MealPlanStore:
    """At most one item per (user, date, meal_type)."""

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv
        self._lock = threading.Lock()

    @staticmethod
    def key(user_id: str, day: date) -> str:
        return f"meal_plan:{user_id}:{day.isoformat()}"

    def _load_day(self, user_id: str, day: date) -> Dict[str, dict]:
        return self.kv.get(self.key(user_id, day)) or {}

    def get(self, user_id: str, day: date, meal_type: str) -> Optional[MealPlanItem]:
        raw = self._load_day(user_id, day).get(meal_type)
        return MealPlanItem.model_validate(raw) if raw else None

    def list_for_date(self, user_id: str, day: date) -> List[MealPlanItem]:
        slots = self._load_day(user_id, day)
        return [
            MealPlanItem.model_validate(slots[mt]) for mt in MEAL_TYPES if slots.get(mt)
        ]

    def list_range(self, user_id: str, start: date, end: date) -> List[MealPlanItem]:
        items: List[MealPlanItem] = []
        for day in iter_days(start, end):
            items.extend(self.list_for_date(user_id, day))
        return items

    def upsert(self, item: MealPlanItem) -> MealPlanItem:
        with self._lock:
            slots = self._load_day(item.user_id, item.date)
            slots[item.meal_type] = item.model_dump(mode="json")
            self.kv.set(self.key(item.user_id, item.date), slots)
        return item

    def delete(self, user_id: str, day: date, meal_type: str) -> bool:
        with self._lock:
            slots = self._load_day(user_id, day)
            if meal_type not in slots:
                return False
            del slots[meal_type]
            if slots:
                self.kv.set(self.key(user_id, day), slots)
            else:
                self.kv.delete(self.key(user_id, day))
        return True

    def replace_week(
        self, user_id: str, week_start: date, items: List[MealPlanItem]
    ) -> List[MealPlanItem]:
        """
        Clear the 7 days starting at week_start and write `items` in a single
        batch. Raises ValueError (before writing anything) for items outside
        the week, for another user, or two items in the same slot.
        """
        days = [week_start + timedelta(days=i) for i in range(DAYS_PER_WEEK)]
        by_day: Dict[date, Dict[str, dict]] = {d: {} for d in days}
        for item in items:
            if item.user_id != user_id:
                raise ValueError(f"item {item.id} belongs to user {item.user_id}")
            if item.date not in by_day:
                raise ValueError(f"item {item.id} dated {item.date} is outside the week")
            if item.meal_type in by_day[item.date]:
                raise ValueError(f"duplicate {item.meal_type} on {item.date}")
            by_day[item.date][item.meal_type] = item.model_dump(mode="json")

        sets = {self.key(user_id, d): slots for d, slots in by_day.items() if slots}
        deletes = [self.key(user_id, d) for d, slots in by_day.items() if not slots]
        with self._lock:
            self.kv.apply(sets=sets, deletes=deletes)
        logger.info(
            "meal plan week replaced user=%s week_start=%s items=%d",
            user_id,
            week_start,
            len(items),
        )
        return items
