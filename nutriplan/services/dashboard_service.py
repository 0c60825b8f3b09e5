# nutriplan/services/dashboard_service.py
"""
Read-only views combining the profile with logged and planned food:
body metrics, today's dashboard and the weekly progress summary.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from nutriplan.models.profile import Profile
from nutriplan.services import metrics
from nutriplan.services.aggregation import (
    average_daily_calories,
    compute_streak,
    daily_totals,
    last_n_days,
    sum_macros,
    today_meals,
)
from nutriplan.services.kv_store import StorageError
from nutriplan.services.results import error_result, ok_result
from nutriplan.services.stores import FoodLogStore, MealPlanStore, ProfileStore, WaterLogStore

logger = logging.getLogger(__name__)

RECENT_MEALS_SHOWN = 5
LOW_INTAKE_RATIO = 0.8
LOW_WATER_PERCENT = 50


def profile_metrics(
    profile: Profile, loss_floor: Optional[float] = metrics.MIN_LOSS_CALORIES
) -> Dict[str, Any]:
    bmi = metrics.bmi(profile.weight_kg, profile.height_cm)
    bmr = metrics.bmr(profile.weight_kg, profile.height_cm, profile.age)
    tdee = metrics.tdee(bmr, profile.activity_level)
    summary: Dict[str, Any] = {
        "bmi": None,
        "bmr": None,
        "tdee": None,
        "calorie_goals": None,
        "activity_level": metrics.activity_label(profile.activity_level),
    }
    if bmi:
        category = metrics.bmi_category(bmi)
        summary["bmi"] = {
            "value": metrics.display_bmi(bmi),
            "category": category.value,
            "scale_position": round(metrics.bmi_scale_position(bmi), 1),
            "tip": metrics.bmi_tip(category),
        }
    if bmr:
        goals = metrics.calorie_goals(tdee, loss_floor)
        summary["bmr"] = round(bmr)
        summary["tdee"] = round(tdee)
        summary["calorie_goals"] = {k: round(v) for k, v in goals.items()}
    return summary


def build_insights(
    calories: float,
    calorie_target: Optional[float],
    water_ml: float,
    water_target: Optional[float],
) -> List[Dict[str, str]]:
    insights: List[Dict[str, str]] = []
    if calorie_target:
        if calories > calorie_target:
            insights.append(
                {
                    "kind": "calories_exceeded",
                    "message": f"You've exceeded your calorie target by {round(calories - calorie_target)} calories.",
                }
            )
        elif calories < calorie_target * LOW_INTAKE_RATIO:
            insights.append(
                {
                    "kind": "calories_on_track",
                    "message": "Great job staying within your calorie goals!",
                }
            )
    if water_target and metrics.progress_percent(water_ml, water_target) < LOW_WATER_PERCENT:
        insights.append(
            {
                "kind": "hydration",
                "message": f"Stay hydrated! You need {round(water_target - water_ml)}ml more water today.",
            }
        )
    return insights


class DashboardService:

    def __init__(
        self,
        profiles: ProfileStore,
        food_log: FoodLogStore,
        water_log: WaterLogStore,
        meal_plans: MealPlanStore,
        loss_floor: Optional[float] = metrics.MIN_LOSS_CALORIES,
        streak_lookback: int = 30,
    ) -> None:
        self.profiles = profiles
        self.food_log = food_log
        self.water_log = water_log
        self.meal_plans = meal_plans
        self.loss_floor = loss_floor
        self.streak_lookback = streak_lookback

    def metrics(self, user_id: str) -> Dict[str, Any]:
        try:
            profile = self.profiles.load(user_id)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        if profile is None:
            return error_result("profile_not_found", {"user_id": user_id})
        return ok_result(profile_metrics(profile, self.loss_floor))

    def dashboard(self, user_id: str, today: date) -> Dict[str, Any]:
        try:
            profile = self.profiles.load(user_id)
            if profile is None:
                return error_result("profile_not_found", {"user_id": user_id})
            if not profile.onboarding_completed:
                return error_result("onboarding_required", {"user_id": user_id})
            entries = self.food_log.list_for_date(user_id, today)
            water_ml = sum(w.amount_ml for w in self.water_log.list_for_date(user_id, today))
            planned = self.meal_plans.list_for_date(user_id, today)
        except StorageError as exc:
            logger.exception("dashboard load failed user=%s: %s", user_id, exc)
            return error_result("storage_failed", {"exception": str(exc)})

        entries = sorted(entries, key=lambda e: e.created_at, reverse=True)
        totals = sum_macros(entries)
        calorie_target = profile.daily_calorie_target
        water_target = profile.daily_water_target_ml
        data = {
            "date": today,
            "stats": {
                "calories": round(totals["calories"]),
                "protein": round(totals["protein"]),
                "carbs": round(totals["carbs"]),
                "fat": round(totals["fat"]),
                "water_ml": round(water_ml),
                "calorie_target": calorie_target,
                "water_target_ml": water_target,
                "calorie_progress": round(
                    metrics.progress_percent(totals["calories"], calorie_target), 1
                ),
                "water_progress": round(metrics.progress_percent(water_ml, water_target), 1),
                "weight_kg": profile.weight_kg or 0,
                "goal_weight_kg": profile.goal_weight_kg or 0,
            },
            "macro_distribution": metrics.macro_distribution(
                totals["protein"], totals["carbs"], totals["fat"]
            ),
            "metrics": profile_metrics(profile, self.loss_floor),
            "recent_entries": entries[:RECENT_MEALS_SHOWN],
            "more_entries": max(0, len(entries) - RECENT_MEALS_SHOWN),
            "today_meals": today_meals(planned, entries),
            "insights": build_insights(totals["calories"], calorie_target, water_ml, water_target),
        }
        return ok_result(data, {"entries": len(entries)})

    def progress(self, user_id: str, today: date) -> Dict[str, Any]:
        try:
            profile = self.profiles.load(user_id)
            if profile is None:
                return error_result("profile_not_found", {"user_id": user_id})
            all_entries = self.food_log.all_entries(user_id)
        except StorageError as exc:
            logger.exception("progress load failed user=%s: %s", user_id, exc)
            return error_result("storage_failed", {"exception": str(exc)})

        avg_calories = average_daily_calories(all_entries, today)
        data = {
            "weekly": daily_totals(all_entries, last_n_days(today, 7)),
            "total_entries": len(all_entries),
            "avg_calories": round(avg_calories),
            "goal_progress": round(
                metrics.progress_percent(avg_calories, profile.daily_calorie_target)
            ),
            "streak": compute_streak(all_entries, today, self.streak_lookback),
            "calorie_target": profile.daily_calorie_target,
        }
        return ok_result(data)
