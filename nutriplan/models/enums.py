"""Fixed vocabularies shared by the models."""
from typing import Literal, Tuple

MealType = Literal["breakfast", "lunch", "dinner", "snack"]
MEAL_TYPES: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")

ActivityLevel = Literal[
    "sedentary",
    "lightly_active",
    "moderately_active",
    "very_active",
    "extremely_active",
]
DEFAULT_ACTIVITY_LEVEL = "moderately_active"

Unit = Literal["grams", "cups", "pieces", "servings", "ml"]

Gender = Literal["male", "female", "other"]
