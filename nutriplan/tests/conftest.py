# tests/conftest.py
import asyncio
import json
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from nutriplan.api.deps import Container, get_container, get_today
from nutriplan.config.settings import Settings
from nutriplan.models.enums import MEAL_TYPES
from nutriplan.models.profile import Profile
from nutriplan.services.kv_store import InMemoryKeyValueStore
from nutriplan.services.nutrition_estimator import MockNutritionEstimator
from nutriplan.services.plan_generator import MEAL_LIBRARY, MockPlanGenerator, PlanGenerator
from nutriplan.services.stores import FoodLogStore, MealPlanStore, ProfileStore, WaterLogStore

# a Wednesday; its Sunday-based week starts 2026-10-11
TODAY = date(2026, 10, 14)
WEEK_START = date(2026, 10, 11)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        database_url=None,
        openai_api_key=None,
        mock_llm_delay=0,
        plan_generation_timeout=1.0,
    )


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def profile_store(kv):
    return ProfileStore(kv)


@pytest.fixture
def food_store(kv):
    return FoodLogStore(kv)


@pytest.fixture
def water_store(kv):
    return WaterLogStore(kv)


@pytest.fixture
def meal_plan_store(kv):
    return MealPlanStore(kv)


@pytest.fixture
def sample_profile():
    return Profile(
        id="u1",
        email="ana@example.com",
        full_name="Ana Example",
        height_cm=165,
        weight_kg=55,
        age=30,
        activity_level="sedentary",
        daily_calorie_target=1800,
        daily_water_target_ml=2000,
        dietary_preferences={"vegetarian"},
        allergies={"peanut"},
        health_goals={"weight_loss"},
        onboarding_completed=True,
    )


# --- Fake plan generators ---
class ShortPlanGenerator(PlanGenerator):
    """Returns only the first `days` days of a valid plan."""

    def __init__(self, days=6):
        self.days = days

    async def generate(self, request):
        plan = await MockPlanGenerator(delay=0).generate(request)
        plan.days = plan.days[: self.days]
        return plan


class FailingPlanGenerator(PlanGenerator):

    async def generate(self, request):
        raise ConnectionError("llm unreachable")


class BlockingPlanGenerator(PlanGenerator):
    """Waits until `release` is set, then returns a full mock plan."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate(self, request):
        self.started.set()
        await self.release.wait()
        return await MockPlanGenerator(delay=0).generate(request)


class SleepingPlanGenerator(PlanGenerator):

    def __init__(self, seconds):
        self.seconds = seconds

    async def generate(self, request):
        await asyncio.sleep(self.seconds)
        return await MockPlanGenerator(delay=0).generate(request)


# --- Patch OpenAI client object shape used by our code ---
class DummyOpenAI:

    def __init__(self, content):
        self.content = content
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, *args, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))]
        )


@pytest.fixture
def weekly_plan_json():
    """A valid 7-day plan serialized the way an LLM answers it."""
    days = []
    for index in range(7):
        meals = []
        for meal_type in MEAL_TYPES:
            template = MEAL_LIBRARY[meal_type][index % len(MEAL_LIBRARY[meal_type])]
            meals.append(
                {
                    "meal_type": meal_type,
                    "title": template["title"],
                    "description": template["description"],
                    "ingredients": template["ingredients"],
                    "instructions": template["instructions"],
                    "prep_time": template["prep_time"],
                    "estimated_calories": 450,
                    "estimated_protein": 30,
                    "estimated_carbs": 45,
                    "estimated_fat": 15,
                }
            )
        days.append({"day": f"Day {index + 1}", "meals": meals})
    return json.dumps({"weekly_plan": days})


@pytest.fixture
def container(test_settings, kv):
    return Container(
        test_settings,
        kv=kv,
        generator=MockPlanGenerator(delay=0),
        estimator=MockNutritionEstimator(delay=0),
    )


@pytest.fixture
def client(container):
    from main import app

    app.dependency_overrides[get_container] = lambda: container
    app.dependency_overrides[get_today] = lambda: TODAY
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
