"""
User profile model.

One record per user, replaced wholesale on save.
"""
from __future__ import annotations

from typing import Any, Optional, Set

from pydantic import BaseModel, Field, field_serializer, field_validator

from nutriplan.models.enums import ActivityLevel, DEFAULT_ACTIVITY_LEVEL, Gender


def _split_tags(v: Any) -> Any:
    # onboarding forms send allergies as "peanut, shellfish"
    if v is None:
        return set()
    if isinstance(v, str):
        return {p.strip() for p in v.split(",") if p.strip()}
    return v


class ProfileInput(BaseModel):
    """Editable profile fields."""

    email: Optional[str] = Field(None, description="Contact email")
    full_name: Optional[str] = Field(None, description="Full name")
    gender: Optional[Gender] = Field(None, description="Not used by the BMR formula")
    height_cm: Optional[float] = Field(None, ge=0, description="Height in centimeters")
    weight_kg: Optional[float] = Field(None, ge=0, description="Current weight in kilograms")
    goal_weight_kg: Optional[float] = Field(None, ge=0, description="Target weight in kilograms")
    age: Optional[int] = Field(None, ge=0, le=130, description="Age in years")
    activity_level: ActivityLevel = Field(
        DEFAULT_ACTIVITY_LEVEL, description="Activity multiplier for TDEE"
    )
    daily_calorie_target: Optional[int] = Field(None, ge=0, description="kcal per day")
    daily_water_target_ml: Optional[int] = Field(None, ge=0, description="ml per day")
    dietary_preferences: Set[str] = Field(default_factory=set)
    allergies: Set[str] = Field(default_factory=set)
    health_goals: Set[str] = Field(default_factory=set)

    @field_validator("dietary_preferences", "allergies", "health_goals", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> Any:
        return _split_tags(v)

    @field_serializer("dietary_preferences", "allergies", "health_goals")
    def _sorted_tags(self, v: Set[str]):
        return sorted(v)


class Profile(ProfileInput):
    id: str = Field(..., description="User id; one profile per user")
    onboarding_completed: bool = False


class OnboardingInput(BaseModel):
    """Answers collected by the onboarding wizard."""

    age: Optional[int] = Field(None, ge=0, le=130)
    height_cm: Optional[float] = Field(None, ge=0)
    weight_kg: Optional[float] = Field(None, ge=0)
    goal_weight_kg: Optional[float] = Field(None, ge=0)
    activity_level: ActivityLevel = DEFAULT_ACTIVITY_LEVEL
    health_goals: Set[str] = Field(default_factory=set)
    dietary_preferences: Set[str] = Field(default_factory=set)
    allergies: Set[str] = Field(default_factory=set)

    @field_validator("dietary_preferences", "allergies", "health_goals", mode="before")
    @classmethod
    def _coerce_tags(cls, v: Any) -> Any:
        return _split_tags(v)
