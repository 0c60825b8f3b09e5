"""
Weekly meal plan endpoints.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from nutriplan.api.deps import (
    get_meal_plan_service,
    get_profile_service,
    get_today,
    unwrap,
)
from nutriplan.models.enums import MealType
from nutriplan.models.meal_plan import MealPlanItemInput
from nutriplan.services.meal_plan_service import MealPlanService
from nutriplan.services.profile_service import ProfileService

router = APIRouter()


@router.get("/{user_id}/meal-plans/week")
def get_week(
    user_id: str,
    day: Optional[date] = Query(None, alias="date"),
    today: date = Depends(get_today),
    svc: MealPlanService = Depends(get_meal_plan_service),
):
    """Sunday-based week containing `day`; empty slots are null."""
    return unwrap(svc.get_week(user_id, day or today))


@router.post("/{user_id}/meal-plans/generate")
async def generate_week(
    user_id: str,
    day: Optional[date] = Query(None, alias="date"),
    today: date = Depends(get_today),
    svc: MealPlanService = Depends(get_meal_plan_service),
    profiles: ProfileService = Depends(get_profile_service),
):
    profile_res = profiles.get_profile(user_id)
    profile = profile_res.get("data") if profile_res.get("ok") else None
    return unwrap(await svc.generate_week(user_id, profile, day or today))


@router.get("/{user_id}/meal-plans/{day}/{meal_type}")
def get_meal(
    user_id: str,
    day: date,
    meal_type: MealType,
    svc: MealPlanService = Depends(get_meal_plan_service),
):
    return unwrap(svc.get_meal(user_id, day, meal_type))


@router.put("/{user_id}/meal-plans/{day}/{meal_type}")
def save_meal(
    user_id: str,
    day: date,
    meal_type: MealType,
    payload: MealPlanItemInput,
    svc: MealPlanService = Depends(get_meal_plan_service),
):
    return unwrap(svc.save_meal(user_id, day, meal_type, payload))


@router.delete("/{user_id}/meal-plans/{day}/{meal_type}")
def delete_meal(
    user_id: str,
    day: date,
    meal_type: MealType,
    svc: MealPlanService = Depends(get_meal_plan_service),
):
    return unwrap(svc.delete_meal(user_id, day, meal_type))
