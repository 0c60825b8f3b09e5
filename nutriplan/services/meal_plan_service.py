# nutriplan/services/meal_plan_service.py
"""
Weekly meal plans: generation, the weekly grid and single-slot edits.

Generation is single-flight. While one generation is running, another call
is rejected with `generation_in_progress` rather than queued, since both
would clear and rewrite the same week. The flag is set and checked with no
await in between, so the check is race-free on one event loop.

A generation either writes all 28 items of the week or nothing: the full
response is validated and converted before the store's batched
`replace_week` runs, and a timeout or generator error returns early.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from nutriplan.models.meal_plan import MealPlanItem, MealPlanItemInput
from nutriplan.models.profile import Profile
from nutriplan.services.aggregation import (
    build_week_skeleton,
    overlay_plan,
    sum_macros,
    week_days,
    week_start,
)
from nutriplan.services.kv_store import StorageError
from nutriplan.services.plan_generator import (
    DEFAULT_TARGET_CALORIES,
    PlanGenerationError,
    PlanGenerationTimeout,
    PlanGenerator,
    PlanRequest,
)
from nutriplan.services.results import error_result, ok_result
from nutriplan.services.stores import MealPlanStore

logger = logging.getLogger(__name__)


class MealPlanService:

    def __init__(
        self,
        store: MealPlanStore,
        generator: PlanGenerator,
        timeout: float = 30.0,
        default_calorie_target: int = DEFAULT_TARGET_CALORIES,
    ) -> None:
        self.store = store
        self.generator = generator
        self.timeout = timeout
        self.default_calorie_target = default_calorie_target
        self._generating = False

    @property
    def is_generating(self) -> bool:
        return self._generating

    async def generate_week(
        self, user_id: str, profile: Optional[Profile], anchor: date
    ) -> Dict[str, Any]:
        if self._generating:
            logger.warning("generation rejected user=%s: already in progress", user_id)
            return error_result("generation_in_progress")
        self._generating = True
        start = week_start(anchor)
        request = PlanRequest.from_profile(profile, self.default_calorie_target)
        diagnostics: Dict[str, Any] = {
            "week_start": start.isoformat(),
            "generator": type(self.generator).__name__,
        }
        logger.info("🍽️ generating weekly plan user=%s week_start=%s", user_id, start)
        try:
            try:
                plan = await self.generator.generate_validated(request, self.timeout)
            except PlanGenerationTimeout:
                logger.warning(
                    "⚠️ plan generation timed out after %.1fs user=%s", self.timeout, user_id
                )
                return error_result("generation_timeout", diagnostics)
            except PlanGenerationError as exc:
                logger.warning("plan generation failed user=%s: %s", user_id, exc)
                diagnostics["exception"] = str(exc)
                return error_result("generation_failed", diagnostics)
            except Exception as exc:
                logger.exception("unexpected generator error user=%s: %s", user_id, exc)
                diagnostics["exception"] = str(exc)
                return error_result("generation_failed", diagnostics)

            try:
                items = [
                    MealPlanItem.from_generated(user_id, day, meal)
                    for day, day_plan in zip(week_days(start), plan.days)
                    for meal in day_plan.meals
                ]
            except ValidationError as exc:
                logger.warning("generated plan not storable user=%s: %s", user_id, exc)
                diagnostics["exception"] = str(exc)
                return error_result("generation_failed", diagnostics)
            try:
                # SQL backend commits synchronously; keep it off the event loop
                await asyncio.to_thread(self.store.replace_week, user_id, start, items)
            except (StorageError, ValueError) as exc:
                logger.exception("storing generated plan failed user=%s: %s", user_id, exc)
                diagnostics["exception"] = str(exc)
                return error_result("storage_failed", diagnostics)

            diagnostics["count"] = len(items)
            logger.info("✅ weekly plan stored user=%s items=%d", user_id, len(items))
            return ok_result(self._week_view(start, items), diagnostics)
        finally:
            self._generating = False

    def _week_view(self, start: date, items: List[MealPlanItem]) -> Dict[str, Any]:
        grid = overlay_plan(build_week_skeleton(start), items)
        return {
            "week_start": start,
            "days": grid,
            "totals": {
                day: sum_macros(m for m in slots.values() if m is not None)
                for day, slots in grid.items()
            },
        }

    def get_week(self, user_id: str, anchor: date) -> Dict[str, Any]:
        start = week_start(anchor)
        try:
            items = self.store.list_range(user_id, start, week_days(start)[-1])
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        return ok_result(self._week_view(start, items), {"count": len(items)})

    def get_meal(self, user_id: str, day: date, meal_type: str) -> Dict[str, Any]:
        try:
            item = self.store.get(user_id, day, meal_type)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        if item is None:
            return error_result(
                "meal_not_found", {"date": day.isoformat(), "meal_type": meal_type}
            )
        return ok_result(item)

    def save_meal(
        self, user_id: str, day: date, meal_type: str, payload: MealPlanItemInput
    ) -> Dict[str, Any]:
        """User-created meal for one slot; replaces whatever was there."""
        item = MealPlanItem(
            user_id=user_id,
            date=day,
            meal_type=meal_type,
            ai_generated=False,
            **payload.model_dump(),
        )
        try:
            self.store.upsert(item)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        return ok_result(item)

    def delete_meal(self, user_id: str, day: date, meal_type: str) -> Dict[str, Any]:
        try:
            deleted = self.store.delete(user_id, day, meal_type)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        if not deleted:
            return error_result(
                "meal_not_found", {"date": day.isoformat(), "meal_type": meal_type}
            )
        return ok_result({"deleted": True})
