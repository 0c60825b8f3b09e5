# nutriplan/api/deps.py
"""
Service wiring for the HTTP layer.

`Container` builds the key-value store, the typed stores and the services
from Settings. Routers receive services through FastAPI dependencies, so
tests swap the whole graph with `app.dependency_overrides[get_container]`.
"""
from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException

from nutriplan.config.settings import Settings, settings
from nutriplan.services.dashboard_service import DashboardService
from nutriplan.services.food_log_service import FoodLogService
from nutriplan.services.kv_store import KeyValueStore, create_kv_store
from nutriplan.services.meal_plan_service import MealPlanService
from nutriplan.services.nutrition_estimator import (
    NutritionEstimator,
    create_nutrition_estimator,
)
from nutriplan.services.plan_generator import PlanGenerator, create_plan_generator
from nutriplan.services.profile_service import ProfileService
from nutriplan.services.stores import FoodLogStore, MealPlanStore, ProfileStore, WaterLogStore

logger = logging.getLogger(__name__)

# error code -> HTTP status
ERROR_STATUS: Dict[str, int] = {
    "profile_not_found": 404,
    "entry_not_found": 404,
    "meal_not_found": 404,
    "onboarding_required": 409,
    "generation_in_progress": 409,
    "invalid_entry": 422,
    "estimation_failed": 502,
    "generation_failed": 502,
    "generation_timeout": 504,
    "storage_failed": 503,
}


class Container:

    def __init__(
        self,
        config: Settings,
        kv: Optional[KeyValueStore] = None,
        generator: Optional[PlanGenerator] = None,
        estimator: Optional[NutritionEstimator] = None,
    ) -> None:
        self.settings = config
        self.kv = kv or create_kv_store(config.database_url)
        self.profile_store = ProfileStore(self.kv)
        self.food_store = FoodLogStore(self.kv)
        self.water_store = WaterLogStore(self.kv)
        self.meal_plan_store = MealPlanStore(self.kv)

        generator = generator or create_plan_generator(
            config.openai_api_key, config.openai_model, config.mock_llm_delay
        )
        estimator = estimator or create_nutrition_estimator(
            config.openai_api_key, config.openai_model, config.mock_llm_delay
        )
        self.profile_service = ProfileService(
            self.profile_store, default_water_target_ml=config.default_water_target_ml
        )
        self.food_log_service = FoodLogService(self.food_store, self.water_store, estimator)
        self.meal_plan_service = MealPlanService(
            self.meal_plan_store,
            generator,
            timeout=config.plan_generation_timeout,
            default_calorie_target=config.default_calorie_target,
        )
        self.dashboard_service = DashboardService(
            self.profile_store,
            self.food_store,
            self.water_store,
            self.meal_plan_store,
            loss_floor=config.min_loss_calories,
            streak_lookback=config.streak_lookback_days,
        )


@lru_cache(maxsize=1)
def get_container() -> Container:
    return Container(settings)


def get_today() -> date:
    return date.today()


def get_profile_service(c: Container = Depends(get_container)) -> ProfileService:
    return c.profile_service


def get_food_log_service(c: Container = Depends(get_container)) -> FoodLogService:
    return c.food_log_service


def get_meal_plan_service(c: Container = Depends(get_container)) -> MealPlanService:
    return c.meal_plan_service


def get_dashboard_service(c: Container = Depends(get_container)) -> DashboardService:
    return c.dashboard_service


def unwrap(result: Dict[str, Any]) -> Any:
    """Return `data` from a service result or raise the matching HTTPException."""
    if result.get("ok"):
        return result.get("data")
    error = result.get("error", "unknown_error")
    status = ERROR_STATUS.get(error, 500)
    logger.debug("service error %s -> HTTP %s", error, status)
    raise HTTPException(
        status_code=status,
        detail={"error": error, "diagnostics": result.get("diagnostics", {})},
    )
