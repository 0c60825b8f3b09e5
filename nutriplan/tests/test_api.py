# tests/test_api.py
from conftest import ShortPlanGenerator

BASE = "/api/users/u1"


def _onboard(client):
    client.put(f"{BASE}/profile", json={"email": "ana@example.com", "full_name": "Ana"})
    return client.post(
        f"{BASE}/onboarding",
        json={
            "age": 30,
            "height_cm": 165,
            "weight_kg": 55,
            "activity_level": "sedentary",
            "dietary_preferences": "vegetarian",
            "allergies": "peanut",
        },
    )


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_profile_lifecycle(client):
    missing = client.get(f"{BASE}/profile")
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "profile_not_found"

    onboard = _onboard(client)
    assert onboard.status_code == 200
    body = onboard.json()
    assert body["onboarding_completed"] is True
    assert body["allergies"] == ["peanut"]
    assert body["email"] == "ana@example.com"

    metrics = client.get(f"{BASE}/metrics").json()
    assert metrics["bmi"]["category"] == "Normal"
    assert metrics["activity_level"] == "Sedentary"

    assert client.delete(f"{BASE}/profile").status_code == 200
    assert client.get(f"{BASE}/profile").status_code == 404


def test_invalid_profile_payload(client):
    resp = client.put(f"{BASE}/profile", json={"activity_level": "couch"})
    assert resp.status_code == 422


def test_food_log_flow(client):
    created = client.post(
        f"{BASE}/food-log", json={"food_name": "Oats", "meal_type": "breakfast", "calories": 350}
    )
    assert created.status_code == 201
    entry = created.json()
    assert entry["date"] == "2026-10-14"

    day = client.get(f"{BASE}/food-log").json()
    assert day["totals"]["calories"] == 350
    assert len(day["by_meal_type"]["breakfast"]) == 1

    deleted = client.delete(f"{BASE}/food-log/2026-10-14/{entry['id']}")
    assert deleted.status_code == 200
    again = client.delete(f"{BASE}/food-log/2026-10-14/{entry['id']}")
    assert again.status_code == 404


def test_invalid_food_entry_echoes_submission(client):
    resp = client.post(f"{BASE}/food-log", json={"meal_type": "dinner", "quantity": 1, "unit": "cups"})
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["error"] == "invalid_entry"
    assert detail["diagnostics"]["submitted"]["unit"] == "cups"
    assert "food_name" in detail["diagnostics"]["errors"]


def test_food_entry_with_estimation(client):
    resp = client.post(
        f"{BASE}/food-log", json={"food_name": "Boiled rice", "quantity": 200, "estimate_nutrition": True}
    )
    assert resp.status_code == 201
    assert resp.json()["calories"] == 260


def test_generate_and_edit_week(client):
    _onboard(client)
    resp = client.post(f"{BASE}/meal-plans/generate")
    assert resp.status_code == 200
    week = resp.json()
    assert week["week_start"] == "2026-10-11"
    assert len(week["days"]) == 7
    assert all(slot is not None for slots in week["days"].values() for slot in slots.values())

    put = client.put(f"{BASE}/meal-plans/2026-10-14/dinner", json={"title": "Homemade pizza"})
    assert put.status_code == 200
    assert put.json()["ai_generated"] is False

    grid = client.get(f"{BASE}/meal-plans/week", params={"date": "2026-10-17"}).json()
    assert grid["days"]["2026-10-14"]["dinner"]["title"] == "Homemade pizza"

    assert client.delete(f"{BASE}/meal-plans/2026-10-14/dinner").status_code == 200
    assert client.get(f"{BASE}/meal-plans/2026-10-14/dinner").status_code == 404


def test_generate_without_profile_still_works(client):
    resp = client.post(f"{BASE}/meal-plans/generate", params={"date": "2026-10-20"})
    assert resp.status_code == 200
    assert resp.json()["week_start"] == "2026-10-18"


def test_failed_generation_maps_to_502(client, container):
    container.meal_plan_service.generator = ShortPlanGenerator(days=6)
    resp = client.post(f"{BASE}/meal-plans/generate")
    assert resp.status_code == 502
    assert resp.json()["detail"]["error"] == "generation_failed"
    grid = client.get(f"{BASE}/meal-plans/week").json()
    assert all(slot is None for slots in grid["days"].values() for slot in slots.values())


def test_dashboard_and_progress(client):
    assert client.get(f"{BASE}/dashboard").status_code == 404
    _onboard(client)
    client.post(f"{BASE}/food-log", json={"food_name": "Salad", "meal_type": "lunch", "calories": 400})
    client.post(f"{BASE}/water", json={"amount_ml": 1500})

    dash = client.get(f"{BASE}/dashboard")
    assert dash.status_code == 200
    stats = dash.json()["stats"]
    assert stats["calories"] == 400
    assert stats["water_ml"] == 1500

    progress = client.get(f"{BASE}/progress").json()
    assert progress["streak"] == 1
    assert progress["total_entries"] == 1


def test_dashboard_before_onboarding(client):
    client.put(f"{BASE}/profile", json={"full_name": "Ana"})
    resp = client.get(f"{BASE}/dashboard")
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "onboarding_required"


def test_request_id_is_echoed(client):
    resp = client.get("/", headers={"X-Request-Id": "abc-123"})
    assert resp.headers["X-Request-Id"] == "abc-123"
