# nutriplan/services/food_log_service.py
"""
Food and water logging.

Entries are validated before anything is stored. A food entry needs a name
and calories; when calories are missing and the caller asked for
`estimate_nutrition`, the nutrition estimator fills them in. A rejected entry
comes back with the submitted values so a form can keep them.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional

from nutriplan.models.food_entry import (
    DEFAULT_QUANTITY,
    FoodEntry,
    FoodEntryInput,
    WaterEntry,
    WaterInput,
)
from nutriplan.services.aggregation import group_by_meal_type, sum_macros
from nutriplan.services.kv_store import StorageError
from nutriplan.services.nutrition_estimator import (
    NutritionEstimationError,
    NutritionEstimator,
)
from nutriplan.services.results import error_result, ok_result
from nutriplan.services.stores import FoodLogStore, WaterLogStore

logger = logging.getLogger(__name__)


class FoodEntryValidationError(ValueError):

    def __init__(self, errors: Dict[str, str], submitted: Dict[str, Any]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
        self.submitted = submitted


def validate_food_entry(payload: FoodEntryInput, can_estimate: bool) -> None:
    errors: Dict[str, str] = {}
    if not (payload.food_name or "").strip():
        errors["food_name"] = "required"
    if payload.calories is None and not (payload.estimate_nutrition and can_estimate):
        errors["calories"] = "required unless nutrition estimation is requested"
    if errors:
        raise FoodEntryValidationError(errors, payload.model_dump(mode="json"))


class FoodLogService:

    def __init__(
        self,
        food_store: FoodLogStore,
        water_store: WaterLogStore,
        estimator: Optional[NutritionEstimator] = None,
    ) -> None:
        self.food_store = food_store
        self.water_store = water_store
        self.estimator = estimator

    async def log_food(
        self, user_id: str, payload: FoodEntryInput, today: date
    ) -> Dict[str, Any]:
        try:
            validate_food_entry(payload, can_estimate=self.estimator is not None)
        except FoodEntryValidationError as exc:
            logger.info("rejected food entry user=%s errors=%s", user_id, exc.errors)
            return error_result(
                "invalid_entry", {"errors": exc.errors, "submitted": exc.submitted}
            )

        diagnostics: Dict[str, Any] = {"estimated": False}
        nutrition = {
            "calories": payload.calories or 0,
            "protein_g": payload.protein_g or 0,
            "carbs_g": payload.carbs_g or 0,
            "fat_g": payload.fat_g or 0,
            "fiber_g": 0,
        }
        if payload.calories is None:
            try:
                estimate = await self.estimator.estimate(
                    payload.food_name, payload.quantity, payload.unit
                )
            except NutritionEstimationError as exc:
                return error_result(
                    "estimation_failed",
                    {"exception": str(exc), "submitted": payload.model_dump(mode="json")},
                )
            nutrition = {
                "calories": estimate.calories,
                "protein_g": estimate.protein,
                "carbs_g": estimate.carbs,
                "fat_g": estimate.fat,
                "fiber_g": estimate.fiber,
            }
            diagnostics["estimated"] = True

        entry = FoodEntry(
            user_id=user_id,
            date=payload.date or today,
            meal_type=payload.meal_type,
            food_name=payload.food_name.strip(),
            quantity=payload.quantity or DEFAULT_QUANTITY,
            unit=payload.unit,
            **nutrition,
        )
        try:
            await asyncio.to_thread(self.food_store.add, entry)
        except StorageError as exc:
            logger.exception("log_food failed user=%s: %s", user_id, exc)
            return error_result("storage_failed", {"exception": str(exc)})
        logger.info(
            "food logged user=%s date=%s meal=%s kcal=%s",
            user_id,
            entry.date,
            entry.meal_type,
            entry.calories,
        )
        return ok_result(entry, diagnostics)

    def entries_for_date(self, user_id: str, day: date):
        """Newest first."""
        entries = self.food_store.list_for_date(user_id, day)
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    def day_log(self, user_id: str, day: date) -> Dict[str, Any]:
        try:
            entries = self.entries_for_date(user_id, day)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        return ok_result(
            {
                "date": day,
                "entries": entries,
                "by_meal_type": group_by_meal_type(entries),
                "totals": sum_macros(entries),
            },
            {"count": len(entries)},
        )

    def delete_entry(self, user_id: str, day: date, entry_id: str) -> Dict[str, Any]:
        try:
            deleted = self.food_store.delete(user_id, day, entry_id)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        if not deleted:
            return error_result("entry_not_found", {"entry_id": entry_id, "date": str(day)})
        logger.info("food entry deleted user=%s id=%s", user_id, entry_id)
        return ok_result({"deleted": True, "id": entry_id})

    def log_water(self, user_id: str, payload: WaterInput, today: date) -> Dict[str, Any]:
        entry = WaterEntry(user_id=user_id, date=payload.date or today, amount_ml=payload.amount_ml)
        try:
            self.water_store.add(entry)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        return ok_result(entry)

    def water_total(self, user_id: str, day: date) -> float:
        return sum(e.amount_ml for e in self.water_store.list_for_date(user_id, day))
