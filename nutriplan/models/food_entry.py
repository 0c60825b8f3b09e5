"""
Food log and water intake models.

Entries are append-only; the only mutation is delete.
"""
from __future__ import annotations

import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from nutriplan.models.enums import MealType, Unit

DEFAULT_QUANTITY = 100.0


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class FoodEntryInput(BaseModel):
    """
    Form payload for logging food. Everything is optional here so that an
    invalid submission can be echoed back instead of failing at parse time.
    """

    date: Optional[dt.date] = Field(None, description="Defaults to today")
    meal_type: MealType = "breakfast"
    food_name: Optional[str] = None
    quantity: Optional[float] = Field(None, gt=0)
    unit: Unit = "grams"
    calories: Optional[float] = Field(None, ge=0)
    protein_g: Optional[float] = Field(None, ge=0)
    carbs_g: Optional[float] = Field(None, ge=0)
    fat_g: Optional[float] = Field(None, ge=0)
    estimate_nutrition: bool = Field(
        False, description="Estimate missing nutrition instead of rejecting the entry"
    )


class FoodEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    date: dt.date
    meal_type: MealType
    food_name: str
    quantity: float = DEFAULT_QUANTITY
    unit: Unit = "grams"
    calories: float = Field(0, ge=0)
    protein_g: float = Field(0, ge=0)
    carbs_g: float = Field(0, ge=0)
    fat_g: float = Field(0, ge=0)
    fiber_g: float = Field(0, ge=0)
    created_at: dt.datetime = Field(default_factory=utcnow)


class WaterInput(BaseModel):
    date: Optional[dt.date] = None
    amount_ml: float = Field(..., gt=0)


class WaterEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    date: dt.date
    amount_ml: float = Field(..., gt=0)
    created_at: dt.datetime = Field(default_factory=utcnow)
