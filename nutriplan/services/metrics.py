# nutriplan/services/metrics.py
"""
Derived health metrics: BMI, BMR, TDEE and calorie goals.

Every function is pure. Missing or zero inputs produce neutral values (0, or
"—" from `display_value`) instead of raising; callers decide how to show
absence.

BMR uses Mifflin-St Jeor with the +5 offset for everyone. The standard
equation uses -161 for women; the profile's gender is not
applied here.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

CALORIE_ADJUSTMENT = 500
MIN_LOSS_CALORIES = 1200.0
FALLBACK_BMR = 2000.0
MISSING = "—"

ACTIVITY_MULTIPLIERS: Dict[str, float] = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "extremely_active": 1.9,
}
ACTIVITY_LABELS: Dict[str, str] = {
    "sedentary": "Sedentary",
    "lightly_active": "Lightly Active",
    "moderately_active": "Moderately Active",
    "very_active": "Very Active",
    "extremely_active": "Extremely Active",
}
DEFAULT_ACTIVITY = "moderately_active"

# BMI values mapped onto the 0-100% gauge
BMI_SCALE_MIN = 15.0
BMI_SCALE_MAX = 35.0


class BMICategory(str, Enum):
    UNDERWEIGHT = "Underweight"
    NORMAL = "Normal"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"


BMI_TIPS: Dict[BMICategory, str] = {
    BMICategory.UNDERWEIGHT: "Consider consulting with a healthcare provider about healthy ways to gain weight.",
    BMICategory.NORMAL: "Great job! Maintain your healthy lifestyle with balanced nutrition and regular exercise.",
    BMICategory.OVERWEIGHT: "Focus on a balanced diet and regular physical activity to reach a healthier weight.",
    BMICategory.OBESE: "Consult with a healthcare provider to develop a safe and effective weight management plan.",
}


def _present(*values: Optional[float]) -> bool:
    return all(v is not None and v > 0 for v in values)


def bmi(weight_kg: Optional[float], height_cm: Optional[float]) -> float:
    if not _present(weight_kg, height_cm):
        return 0.0
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def display_bmi(value: float) -> float:
    return round(value, 1)


def bmi_category(value: float) -> BMICategory:
    # lower bound inclusive, upper bound exclusive
    if value < 18.5:
        return BMICategory.UNDERWEIGHT
    if value < 25:
        return BMICategory.NORMAL
    if value < 30:
        return BMICategory.OVERWEIGHT
    return BMICategory.OBESE


def bmi_scale_position(value: float) -> float:
    clamped = min(max(value, BMI_SCALE_MIN), BMI_SCALE_MAX)
    return (clamped - BMI_SCALE_MIN) / (BMI_SCALE_MAX - BMI_SCALE_MIN) * 100


def bmi_tip(category: BMICategory) -> str:
    return BMI_TIPS[category]


def bmr(
    weight_kg: Optional[float], height_cm: Optional[float], age_years: Optional[float]
) -> float:
    if not _present(weight_kg, height_cm, age_years):
        return 0.0
    return 10 * weight_kg + 6.25 * height_cm - 5 * age_years + 5


def activity_multiplier(activity_level: Optional[str]) -> float:
    return ACTIVITY_MULTIPLIERS.get(
        activity_level or DEFAULT_ACTIVITY, ACTIVITY_MULTIPLIERS[DEFAULT_ACTIVITY]
    )


def activity_label(activity_level: Optional[str]) -> str:
    return ACTIVITY_LABELS.get(activity_level or "", ACTIVITY_LABELS[DEFAULT_ACTIVITY])


def tdee(bmr_value: float, activity_level: Optional[str]) -> float:
    return bmr_value * activity_multiplier(activity_level)


def calorie_goals(
    tdee_value: float, loss_floor: Optional[float] = MIN_LOSS_CALORIES
) -> Dict[str, float]:
    """
    loss/maintain/gain targets around TDEE.

    The loss target is raised to `loss_floor` but never above maintenance;
    pass loss_floor=None for the unclamped tdee - 500.
    """
    loss = tdee_value - CALORIE_ADJUSTMENT
    if loss_floor is not None:
        loss = min(tdee_value, max(loss, loss_floor))
    return {
        "loss": loss,
        "maintain": tdee_value,
        "gain": tdee_value + CALORIE_ADJUSTMENT,
    }


def daily_calorie_target(
    weight_kg: Optional[float],
    height_cm: Optional[float],
    age_years: Optional[float],
    activity_level: Optional[str],
) -> int:
    """Onboarding default: BMR x activity, with a 2000 kcal BMR when inputs are missing."""
    base = bmr(weight_kg, height_cm, age_years) or FALLBACK_BMR
    return round(tdee(base, activity_level))


def progress_percent(value: float, target: Optional[float]) -> float:
    if not target:
        return 0.0
    return value / target * 100


def macro_distribution(protein: float, carbs: float, fat: float) -> Dict[str, float]:
    """Gram share of each macro; empty when nothing was eaten."""
    total = (protein or 0) + (carbs or 0) + (fat or 0)
    if total <= 0:
        return {}
    return {
        "protein": round(protein / total * 100, 1),
        "carbs": round(carbs / total * 100, 1),
        "fat": round(fat / total * 100, 1),
    }


def display_value(value: Optional[float], decimals: int = 0):
    if not value:
        return MISSING
    rounded = round(value, decimals)
    return int(rounded) if decimals == 0 else rounded
