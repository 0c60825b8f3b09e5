"""Data models for the nutrition planner."""
from nutriplan.models.database import Base, KVEntry
from nutriplan.models.enums import MEAL_TYPES
from nutriplan.models.food_entry import FoodEntry, FoodEntryInput, WaterEntry, WaterInput
from nutriplan.models.meal_plan import (
    DayPlan,
    GeneratedMeal,
    MealPlanItem,
    MealPlanItemInput,
    WeeklyPlan,
)
from nutriplan.models.profile import OnboardingInput, Profile, ProfileInput

__all__ = [
    "Base",
    "KVEntry",
    "MEAL_TYPES",
    "FoodEntry",
    "FoodEntryInput",
    "WaterEntry",
    "WaterInput",
    "DayPlan",
    "GeneratedMeal",
    "MealPlanItem",
    "MealPlanItemInput",
    "WeeklyPlan",
    "OnboardingInput",
    "Profile",
    "ProfileInput",
]
