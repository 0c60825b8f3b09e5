# nutriplan/services/nutrition_estimator.py
"""
Nutrition estimates for foods logged without calories.

The mock estimator uses a small per-100g table; the OpenAI estimator asks the
model for realistic values for the given quantity and unit.
"""
from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from openai import OpenAI
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ESTIMATE_QUANTITY = 100.0

# approximate grams (or ml) per unit
UNIT_GRAMS: Dict[str, float] = {
    "grams": 1.0,
    "ml": 1.0,
    "cups": 240.0,
    "pieces": 100.0,
    "servings": 150.0,
}

# per 100 g: calories, protein, carbs, fat, fiber
PER_100G: Dict[str, Tuple[float, float, float, float, float]] = {
    "chicken": (165, 31, 0, 3.6, 0),
    "rice": (130, 2.7, 28, 0.3, 0.4),
    "egg": (155, 13, 1.1, 11, 0),
    "oats": (389, 17, 66, 7, 10.6),
    "salmon": (208, 20, 0, 13, 0),
    "broccoli": (34, 2.8, 7, 0.4, 2.6),
    "apple": (52, 0.3, 14, 0.2, 2.4),
    "banana": (89, 1.1, 23, 0.3, 2.6),
    "bread": (265, 9, 49, 3.2, 2.7),
    "milk": (42, 3.4, 5, 1, 0),
    "yogurt": (59, 10, 3.6, 0.4, 0),
    "tofu": (76, 8, 1.9, 4.8, 0.3),
    "lentil": (116, 9, 20, 0.4, 7.9),
    "pasta": (131, 5, 25, 1.1, 1.8),
    "avocado": (160, 2, 8.5, 14.7, 6.7),
    "almond": (579, 21, 22, 50, 12.5),
    "potato": (77, 2, 17, 0.1, 2.2),
    "beef": (250, 26, 0, 15, 0),
    "cheese": (402, 25, 1.3, 33, 0),
}
GENERIC_PER_100G = (150.0, 5.0, 20.0, 5.0, 1.0)


class NutritionEstimate(BaseModel):
    calories: float = Field(0, ge=0)
    protein: float = Field(0, ge=0)
    carbs: float = Field(0, ge=0)
    fat: float = Field(0, ge=0)
    fiber: float = Field(0, ge=0)


class NutritionEstimationError(RuntimeError):
    """The estimator could not produce usable numbers."""


class NutritionEstimator(ABC):

    @abstractmethod
    async def estimate(
        self, food_name: str, quantity: Optional[float], unit: str
    ) -> NutritionEstimate:
        ...


class MockNutritionEstimator(NutritionEstimator):

    def __init__(self, delay: float = 0.5) -> None:
        self.delay = delay

    @staticmethod
    def lookup(food_name: str) -> Tuple[float, float, float, float, float]:
        name = food_name.lower()
        for key, values in PER_100G.items():
            if key in name:
                return values
        return GENERIC_PER_100G

    async def estimate(
        self, food_name: str, quantity: Optional[float], unit: str
    ) -> NutritionEstimate:
        if self.delay:
            await asyncio.sleep(self.delay)
        grams = (quantity or DEFAULT_ESTIMATE_QUANTITY) * UNIT_GRAMS.get(unit, 1.0)
        factor = grams / 100
        calories, protein, carbs, fat, fiber = self.lookup(food_name)
        return NutritionEstimate(
            calories=round(calories * factor),
            protein=round(protein * factor, 1),
            carbs=round(carbs * factor, 1),
            fat=round(fat * factor, 1),
            fiber=round(fiber * factor, 1),
        )


class OpenAINutritionEstimator(NutritionEstimator):

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        client: Optional[Any] = None,
    ) -> None:
        self.client = client or OpenAI(api_key=api_key)
        self.model = model

    async def estimate(
        self, food_name: str, quantity: Optional[float], unit: str
    ) -> NutritionEstimate:
        prompt = (
            f"Estimate the nutrition facts for {quantity or DEFAULT_ESTIMATE_QUANTITY:g} "
            f"{unit} of {food_name}. Provide realistic estimates. Respond with JSON only: "
            '{"calories": 0, "protein": 0, "carbs": 0, "fat": 0, "fiber": 0}'
        )
        try:
            resp = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.0,
            )
            content = resp.choices[0].message.content or ""
            return NutritionEstimate.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise NutritionEstimationError(f"malformed estimate: {exc}") from exc
        except Exception as exc:
            logger.exception("OpenAI nutrition estimate failed for %r: %s", food_name, exc)
            raise NutritionEstimationError(str(exc)) from exc


def create_nutrition_estimator(
    openai_api_key: Optional[str], openai_model: str, mock_delay: float
) -> NutritionEstimator:
    if openai_api_key:
        return OpenAINutritionEstimator(api_key=openai_api_key, model=openai_model)
    return MockNutritionEstimator(delay=mock_delay)
