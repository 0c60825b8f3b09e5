"""
Meal plan models: the generator's weekly response and the stored items.
"""
from __future__ import annotations

import datetime as dt
from typing import List

from pydantic import AliasChoices, BaseModel, Field

from nutriplan.models.enums import MealType
from nutriplan.models.food_entry import new_id, utcnow

DEFAULT_PREP_TIME_MIN = 30


class GeneratedMeal(BaseModel):
    """One meal as returned by a plan generator."""

    meal_type: MealType
    title: str = Field(..., min_length=1)
    description: str = ""
    ingredients: List[str] = Field(default_factory=list)
    instructions: str = ""
    prep_time_minutes: int = Field(
        DEFAULT_PREP_TIME_MIN,
        ge=0,
        validation_alias=AliasChoices("prep_time_minutes", "prep_time"),
    )
    estimated_calories: float = Field(0, ge=0)
    estimated_protein: float = Field(0, ge=0)
    estimated_carbs: float = Field(0, ge=0)
    estimated_fat: float = Field(0, ge=0)


class DayPlan(BaseModel):
    day: str = ""
    meals: List[GeneratedMeal] = Field(default_factory=list)


class WeeklyPlan(BaseModel):
    days: List[DayPlan] = Field(
        default_factory=list, validation_alias=AliasChoices("days", "weekly_plan")
    )


class MealPlanItemInput(BaseModel):
    """A meal the user enters by hand for one slot."""

    title: str = Field(..., min_length=1)
    description: str = ""
    ingredients: List[str] = Field(default_factory=list)
    instructions: str = ""
    prep_time_minutes: int = Field(DEFAULT_PREP_TIME_MIN, ge=0)
    estimated_calories: float = Field(0, ge=0)
    estimated_protein: float = Field(0, ge=0)
    estimated_carbs: float = Field(0, ge=0)
    estimated_fat: float = Field(0, ge=0)


class MealPlanItem(MealPlanItemInput):
    id: str = Field(default_factory=new_id)
    user_id: str
    date: dt.date
    meal_type: MealType
    ai_generated: bool = False
    created_at: dt.datetime = Field(default_factory=utcnow)

    @classmethod
    def from_generated(
        cls, user_id: str, day: dt.date, meal: GeneratedMeal
    ) -> "MealPlanItem":
        return cls(
            user_id=user_id,
            date=day,
            ai_generated=True,
            **meal.model_dump(),
        )
