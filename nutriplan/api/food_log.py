"""
Food log and water intake endpoints.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from nutriplan.api.deps import get_food_log_service, get_today, unwrap
from nutriplan.models.food_entry import FoodEntryInput, WaterInput
from nutriplan.services.food_log_service import FoodLogService

router = APIRouter()


@router.get("/{user_id}/food-log")
def get_day_log(
    user_id: str,
    day: Optional[date] = Query(None, alias="date"),
    today: date = Depends(get_today),
    svc: FoodLogService = Depends(get_food_log_service),
):
    return unwrap(svc.day_log(user_id, day or today))


@router.post("/{user_id}/food-log", status_code=status.HTTP_201_CREATED)
async def log_food(
    user_id: str,
    payload: FoodEntryInput,
    today: date = Depends(get_today),
    svc: FoodLogService = Depends(get_food_log_service),
):
    return unwrap(await svc.log_food(user_id, payload, today))


@router.delete("/{user_id}/food-log/{day}/{entry_id}")
def delete_entry(
    user_id: str,
    day: date,
    entry_id: str,
    svc: FoodLogService = Depends(get_food_log_service),
):
    return unwrap(svc.delete_entry(user_id, day, entry_id))


@router.post("/{user_id}/water", status_code=status.HTTP_201_CREATED)
def log_water(
    user_id: str,
    payload: WaterInput,
    today: date = Depends(get_today),
    svc: FoodLogService = Depends(get_food_log_service),
):
    return unwrap(svc.log_water(user_id, payload, today))
