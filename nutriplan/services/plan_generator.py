# nutriplan/services/plan_generator.py
"""
Weekly meal plan generation boundary.

Callers only depend on the shape: `await generator.generate(request)` returns
a WeeklyPlan of 7 days x 4 meals. Two implementations:
- MockPlanGenerator: waits a short delay, then builds a deterministic plan
  from a canned meal library (default; no network).
- OpenAIPlanGenerator: sends the planning prompt to the chat completions API
  and parses the JSON answer.

`validate_weekly_plan` is the gate every response passes before anything is
persisted; a short or incomplete week raises PlanGenerationError.
"""
from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from openai import OpenAI
from pydantic import BaseModel, Field, ValidationError

from nutriplan.models.enums import MEAL_TYPES
from nutriplan.models.meal_plan import DayPlan, GeneratedMeal, WeeklyPlan
from nutriplan.models.profile import Profile

logger = logging.getLogger(__name__)

DAYS_PER_PLAN = 7
DEFAULT_TARGET_CALORIES = 2000

# share of the daily target per meal
MEAL_CALORIE_SHARE = {"breakfast": 0.25, "lunch": 0.35, "dinner": 0.30, "snack": 0.10}
# calorie split 30% protein / 40% carbs / 30% fat
MACRO_SPLIT = {"protein": (0.30, 4), "carbs": (0.40, 4), "fat": (0.30, 9)}


class PlanGenerationError(RuntimeError):
    """The generator failed or returned a plan that cannot be stored."""


class PlanGenerationTimeout(PlanGenerationError):
    """The generator did not answer within the configured timeout."""


class PlanRequest(BaseModel):
    dietary_preferences: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    health_goals: List[str] = Field(default_factory=list)
    daily_calorie_target: Optional[int] = None

    @classmethod
    def from_profile(
        cls, profile: Optional[Profile], default_target: int = DEFAULT_TARGET_CALORIES
    ) -> "PlanRequest":
        if profile is None:
            return cls(daily_calorie_target=default_target)
        return cls(
            dietary_preferences=sorted(profile.dietary_preferences),
            allergies=sorted(profile.allergies),
            health_goals=sorted(profile.health_goals),
            daily_calorie_target=profile.daily_calorie_target or default_target,
        )

    @property
    def target_calories(self) -> int:
        return self.daily_calorie_target or DEFAULT_TARGET_CALORIES


def build_prompt(request: PlanRequest) -> str:
    prefs = ", ".join(request.dietary_preferences) or "none"
    allergies = ", ".join(request.allergies) or "none"
    goals = ", ".join(request.health_goals) or "general health"
    return (
        "Create a 7-day meal plan for someone with:\n"
        f"- Dietary preferences: {prefs}\n"
        f"- Allergies: {allergies}\n"
        f"- Health goals: {goals}\n"
        f"- Daily calorie target: {request.target_calories} calories\n"
        "For each day, provide breakfast, lunch, dinner, and one healthy snack.\n"
        "Include meal names, brief descriptions, estimated prep time, and nutrition estimates.\n"
        "Make meals varied, balanced, and appealing.\n"
        'Respond with JSON only: {"weekly_plan": [{"day": "...", "meals": [{"meal_type": '
        '"breakfast|lunch|dinner|snack", "title": "...", "description": "...", '
        '"ingredients": ["..."], "instructions": "...", "prep_time": 0, '
        '"estimated_calories": 0, "estimated_protein": 0, "estimated_carbs": 0, '
        '"estimated_fat": 0}]}]}'
    )


def validate_weekly_plan(plan: WeeklyPlan) -> WeeklyPlan:
    """
    Require 7 days, each with exactly one meal per meal type. Extra days past
    the seventh are dropped; meals within a day are reordered by meal type.
    """
    if len(plan.days) < DAYS_PER_PLAN:
        raise PlanGenerationError(
            f"expected {DAYS_PER_PLAN} days, generator returned {len(plan.days)}"
        )
    days: List[DayPlan] = []
    for index, day in enumerate(plan.days[:DAYS_PER_PLAN]):
        by_type: Dict[str, GeneratedMeal] = {}
        for meal in day.meals:
            if meal.meal_type in by_type:
                raise PlanGenerationError(f"day {index + 1} has two {meal.meal_type} meals")
            by_type[meal.meal_type] = meal
        missing = [mt for mt in MEAL_TYPES if mt not in by_type]
        if missing:
            raise PlanGenerationError(f"day {index + 1} is missing {', '.join(missing)}")
        days.append(
            DayPlan(day=day.day or f"Day {index + 1}", meals=[by_type[mt] for mt in MEAL_TYPES])
        )
    return WeeklyPlan(days=days)


def parse_weekly_plan(content: Optional[str]) -> WeeklyPlan:
    """Parse an LLM answer (possibly wrapped in a ```json fence) into a WeeklyPlan."""
    text = (content or "").strip().replace("```json", "").replace("```", "").strip()
    if not text:
        raise PlanGenerationError("empty response from generator")
    try:
        return WeeklyPlan.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise PlanGenerationError(f"malformed plan response: {exc}") from exc


class PlanGenerator(ABC):

    @abstractmethod
    async def generate(self, request: PlanRequest) -> WeeklyPlan:
        ...

    async def generate_validated(self, request: PlanRequest, timeout: float) -> WeeklyPlan:
        """generate() bounded by `timeout` seconds, then validate_weekly_plan()."""
        try:
            plan = await asyncio.wait_for(self.generate(request), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise PlanGenerationTimeout(f"no plan after {timeout:.1f}s") from exc
        return validate_weekly_plan(plan)


# -----------------------
# Canned meal library
# -----------------------
# tags list the diets each meal satisfies
MEAL_LIBRARY: Dict[str, List[Dict[str, Any]]] = {
    "breakfast": [
        {
            "title": "Overnight Oats with Berries",
            "description": "Creamy oats soaked overnight and topped with fresh berries.",
            "ingredients": ["rolled oats", "oat milk", "chia seeds", "mixed berries", "maple syrup"],
            "instructions": "Combine oats, milk and chia in a jar. Refrigerate overnight. Top with berries.",
            "prep_time": 10,
            "tags": {"vegetarian", "vegan", "dairy_free"},
        },
        {
            "title": "Veggie Scrambled Eggs",
            "description": "Soft scrambled eggs with spinach and tomatoes on toast.",
            "ingredients": ["eggs", "spinach", "cherry tomatoes", "whole grain bread", "olive oil"],
            "instructions": "Saute vegetables in olive oil, add whisked eggs and stir gently until set.",
            "prep_time": 15,
            "tags": {"vegetarian", "dairy_free"},
        },
        {
            "title": "Greek Yogurt Parfait",
            "description": "Layers of yogurt, granola and honey.",
            "ingredients": ["greek yogurt", "granola", "honey", "banana"],
            "instructions": "Layer yogurt, granola and sliced banana in a glass. Drizzle with honey.",
            "prep_time": 5,
            "tags": {"vegetarian"},
        },
        {
            "title": "Avocado Toast",
            "description": "Smashed avocado on sourdough with lemon and chili flakes.",
            "ingredients": ["sourdough bread", "avocado", "lemon", "chili flakes"],
            "instructions": "Toast bread, mash avocado with lemon and spread. Finish with chili flakes.",
            "prep_time": 10,
            "tags": {"vegetarian", "vegan", "dairy_free"},
        },
    ],
    "lunch": [
        {
            "title": "Quinoa Chickpea Bowl",
            "description": "Quinoa with roasted chickpeas, cucumber and tahini dressing.",
            "ingredients": ["quinoa", "chickpeas", "cucumber", "red onion", "tahini", "lemon"],
            "instructions": "Cook quinoa, roast chickpeas, toss with vegetables and dress with tahini.",
            "prep_time": 25,
            "tags": {"vegetarian", "vegan", "dairy_free", "gluten_free"},
        },
        {
            "title": "Grilled Chicken Salad",
            "description": "Mixed greens with grilled chicken breast and vinaigrette.",
            "ingredients": ["chicken breast", "mixed greens", "cherry tomatoes", "olive oil", "balsamic vinegar"],
            "instructions": "Grill seasoned chicken, slice and serve over greens with vinaigrette.",
            "prep_time": 20,
            "tags": {"dairy_free", "gluten_free", "paleo", "keto"},
        },
        {
            "title": "Lentil Soup",
            "description": "Hearty red lentil soup with carrots and cumin.",
            "ingredients": ["red lentils", "carrots", "onion", "garlic", "cumin", "vegetable stock"],
            "instructions": "Saute aromatics, add lentils and stock, simmer 20 minutes and blend lightly.",
            "prep_time": 30,
            "tags": {"vegetarian", "vegan", "dairy_free", "gluten_free"},
        },
        {
            "title": "Turkey Whole Wheat Wrap",
            "description": "Sliced turkey, hummus and crunchy vegetables in a wrap.",
            "ingredients": ["whole wheat tortilla", "turkey breast", "hummus", "lettuce", "bell pepper"],
            "instructions": "Spread hummus on the tortilla, layer turkey and vegetables, roll tightly.",
            "prep_time": 10,
            "tags": {"dairy_free"},
        },
    ],
    "dinner": [
        {
            "title": "Baked Salmon with Vegetables",
            "description": "Oven-baked salmon with roasted broccoli and sweet potato.",
            "ingredients": ["salmon fillet", "broccoli", "sweet potato", "olive oil", "lemon"],
            "instructions": "Roast sweet potato 15 minutes, add salmon and broccoli, bake 12 more minutes.",
            "prep_time": 35,
            "tags": {"dairy_free", "gluten_free", "paleo", "mediterranean"},
        },
        {
            "title": "Tofu Vegetable Stir-Fry",
            "description": "Crispy tofu with mixed vegetables over brown rice.",
            "ingredients": ["firm tofu", "brown rice", "broccoli", "bell pepper", "soy sauce", "ginger"],
            "instructions": "Pan-fry tofu, stir-fry vegetables with ginger and soy, serve over rice.",
            "prep_time": 30,
            "tags": {"vegetarian", "vegan", "dairy_free"},
        },
        {
            "title": "Chicken and Vegetable Curry",
            "description": "Mild coconut curry with chicken thighs and spinach.",
            "ingredients": ["chicken thighs", "coconut milk", "spinach", "onion", "curry paste", "basmati rice"],
            "instructions": "Brown chicken, add curry paste and coconut milk, simmer, stir in spinach.",
            "prep_time": 40,
            "tags": {"dairy_free", "gluten_free"},
        },
        {
            "title": "Mediterranean Stuffed Peppers",
            "description": "Bell peppers filled with rice, tomatoes, olives and herbs.",
            "ingredients": ["bell peppers", "rice", "tomatoes", "olives", "parsley", "feta cheese"],
            "instructions": "Fill halved peppers with the rice mixture and bake for 30 minutes.",
            "prep_time": 45,
            "tags": {"vegetarian", "gluten_free", "mediterranean"},
        },
    ],
    "snack": [
        {
            "title": "Apple with Almond Butter",
            "description": "Sliced apple with a spoon of almond butter.",
            "ingredients": ["apple", "almond butter"],
            "instructions": "Slice the apple and serve with almond butter.",
            "prep_time": 5,
            "tags": {"vegetarian", "vegan", "dairy_free", "gluten_free", "paleo"},
        },
        {
            "title": "Hummus and Veggie Sticks",
            "description": "Carrot and cucumber sticks with hummus.",
            "ingredients": ["hummus", "carrots", "cucumber"],
            "instructions": "Cut vegetables into sticks and serve with hummus.",
            "prep_time": 5,
            "tags": {"vegetarian", "vegan", "dairy_free", "gluten_free"},
        },
        {
            "title": "Cottage Cheese and Pineapple",
            "description": "High-protein cottage cheese with pineapple chunks.",
            "ingredients": ["cottage cheese", "pineapple"],
            "instructions": "Top cottage cheese with pineapple.",
            "prep_time": 3,
            "tags": {"vegetarian", "gluten_free"},
        },
    ],
}

_DIET_TAGS = {"vegetarian", "vegan", "dairy_free", "gluten_free", "paleo", "keto", "mediterranean"}
# preferences that must hold for every meal; the others are soft preferences
_STRICT_DIETS = {"vegetarian", "vegan", "dairy_free", "gluten_free"}


# allergy words that name a group of ingredients rather than one ingredient
ALLERGEN_GROUPS: Dict[str, Tuple[str, ...]] = {
    "nuts": ("almond", "walnut", "cashew", "pecan", "hazelnut", "pistachio", "peanut"),
    "tree nuts": ("almond", "walnut", "cashew", "pecan", "hazelnut", "pistachio"),
    "dairy": ("yogurt", "cheese", "feta", "cream", "whole milk", "ghee"),
    "lactose": ("yogurt", "cheese", "feta", "cream", "whole milk"),
    "gluten": ("bread", "tortilla", "pasta", "wheat", "granola", "sourdough"),
    "wheat": ("bread", "tortilla", "pasta", "wheat"),
    "egg": ("egg",),
    "eggs": ("egg",),
    "shellfish": ("shrimp", "prawn", "crab", "lobster"),
    "fish": ("salmon", "tuna", "cod"),
    "soy": ("soy", "tofu", "edamame"),
    "sesame": ("sesame", "tahini", "hummus"),
}


def _allergen_terms(allergy: str) -> Tuple[str, ...]:
    word = allergy.strip().lower()
    if not word:
        return ()
    return ALLERGEN_GROUPS.get(word, ()) + (word,)


def _contains_allergen(template: Dict[str, Any], allergies: List[str]) -> bool:
    """True if any ingredient mentions an allergy word or a member of its group.

    Matching is by substring on the lowercased ingredient text, so "almond"
    also excludes "almond butter". Group words such as "nuts" or "dairy" are
    expanded through ALLERGEN_GROUPS; unknown words only match themselves.
    """
    text = " ".join(template["ingredients"]).lower()
    return any(term in text for a in allergies for term in _allergen_terms(a))


def _macros_for(calories: float) -> Dict[str, float]:
    return {
        f"estimated_{name}": round(calories * share / kcal_per_gram)
        for name, (share, kcal_per_gram) in MACRO_SPLIT.items()
    }


def _fallback_meal(meal_type: str) -> Dict[str, Any]:
    return {
        "title": f"Chef's Choice {meal_type.title()}",
        "description": "A simple meal chosen to fit your preferences and allergies.",
        "ingredients": [],
        "instructions": "Prepare a balanced plate from foods you tolerate well.",
        "prep_time": 20,
        "tags": set(_DIET_TAGS),
    }


def candidate_meals(meal_type: str, request: PlanRequest) -> List[Dict[str, Any]]:
    """Library meals allowed by the request's strict diets and allergies."""
    strict = {p.lower() for p in request.dietary_preferences} & _STRICT_DIETS
    options = [
        t
        for t in MEAL_LIBRARY[meal_type]
        if strict <= t["tags"] and not _contains_allergen(t, request.allergies)
    ]
    return options or [_fallback_meal(meal_type)]


class MockPlanGenerator(PlanGenerator):
    """Deterministic stand-in for the LLM: same request, same plan."""

    def __init__(self, delay: float = 0.5) -> None:
        self.delay = delay

    async def generate(self, request: PlanRequest) -> WeeklyPlan:
        if self.delay:
            await asyncio.sleep(self.delay)
        target = request.target_calories
        options = {mt: candidate_meals(mt, request) for mt in MEAL_TYPES}
        days = []
        for index in range(DAYS_PER_PLAN):
            meals = []
            for offset, meal_type in enumerate(MEAL_TYPES):
                choices = options[meal_type]
                template = choices[(index + offset) % len(choices)]
                calories = round(target * MEAL_CALORIE_SHARE[meal_type])
                meals.append(
                    GeneratedMeal(
                        meal_type=meal_type,
                        title=template["title"],
                        description=template["description"],
                        ingredients=list(template["ingredients"]),
                        instructions=template["instructions"],
                        prep_time_minutes=template["prep_time"],
                        estimated_calories=calories,
                        **_macros_for(calories),
                    )
                )
            days.append(DayPlan(day=f"Day {index + 1}", meals=meals))
        logger.debug("mock plan generated target=%s", target)
        return WeeklyPlan(days=days)


class OpenAIPlanGenerator(PlanGenerator):

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        client: Optional[Any] = None,
    ) -> None:
        self.client = client or OpenAI(api_key=api_key)
        self.model = model

    async def generate(self, request: PlanRequest) -> WeeklyPlan:
        system_msg = (
            "You are a registered dietitian. Answer with a single JSON object and no prose."
        )
        try:
            resp = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=[
                    {"role": "system", "content": system_msg},
                    {"role": "user", "content": build_prompt(request)},
                ],
                response_format={"type": "json_object"},
                temperature=0.7,
            )
        except Exception as exc:
            logger.exception("OpenAI plan request failed: %s", exc)
            raise PlanGenerationError(f"generator request failed: {exc}") from exc

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise PlanGenerationError("unexpected response structure") from exc
        return parse_weekly_plan(content)


def create_plan_generator(
    openai_api_key: Optional[str], openai_model: str, mock_delay: float
) -> PlanGenerator:
    if openai_api_key:
        logger.info("✅ Using OpenAI plan generator model=%s", openai_model)
        return OpenAIPlanGenerator(api_key=openai_api_key, model=openai_model)
    logger.info("ℹ️ Using mock plan generator (delay=%.2fs)", mock_delay)
    return MockPlanGenerator(delay=mock_delay)
