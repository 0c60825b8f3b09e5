# tests/test_profile_service.py
from nutriplan.models.profile import OnboardingInput, ProfileInput
from nutriplan.services import metrics
from nutriplan.services.profile_service import ProfileService


def test_get_missing_profile(profile_store):
    svc = ProfileService(profile_store)
    res = svc.get_profile("nobody")
    assert res["ok"] is False
    assert res["error"] == "profile_not_found"


def test_save_profile_creates_then_replaces(profile_store):
    svc = ProfileService(profile_store, default_water_target_ml=2500)
    first = svc.save_profile("u1", ProfileInput(full_name="Ana", weight_kg=60, allergies="peanut, shellfish"))
    assert first["ok"] is True
    assert first["diagnostics"]["created"] is True
    assert first["data"].allergies == {"peanut", "shellfish"}
    assert first["data"].daily_water_target_ml == 2500

    second = svc.save_profile("u1", ProfileInput(full_name="Ana B"))
    assert second["diagnostics"]["created"] is False
    stored = profile_store.load("u1")
    assert stored.full_name == "Ana B"
    # wholesale replace: fields not sent are cleared
    assert stored.weight_kg is None
    assert stored.allergies == set()


def test_save_profile_keeps_onboarding_status(profile_store, sample_profile):
    profile_store.save(sample_profile)
    svc = ProfileService(profile_store)
    res = svc.save_profile("u1", ProfileInput(full_name="Renamed"))
    assert res["data"].onboarding_completed is True


def test_complete_onboarding_sets_calorie_target(profile_store):
    svc = ProfileService(profile_store)
    svc.save_profile("u1", ProfileInput(email="ana@example.com"))
    answers = OnboardingInput(
        age=30,
        height_cm=165,
        weight_kg=55,
        activity_level="sedentary",
        dietary_preferences="vegetarian",
        allergies=["peanut"],
    )
    res = svc.complete_onboarding("u1", answers)
    assert res["ok"] is True
    profile = res["data"]
    expected = metrics.daily_calorie_target(55, 165, 30, "sedentary")
    assert profile.daily_calorie_target == expected
    assert res["diagnostics"]["daily_calorie_target"] == expected
    assert profile.onboarding_completed is True
    assert profile.email == "ana@example.com"
    assert profile.dietary_preferences == {"vegetarian"}
    assert profile_store.load("u1") == profile


def test_onboarding_without_body_data_uses_fallback(profile_store):
    svc = ProfileService(profile_store)
    res = svc.complete_onboarding("new", OnboardingInput(activity_level="sedentary"))
    assert res["data"].daily_calorie_target == 2400
    assert res["data"].daily_water_target_ml == 2000


def test_delete_profile(profile_store, sample_profile):
    profile_store.save(sample_profile)
    svc = ProfileService(profile_store)
    assert svc.delete_profile("u1")["ok"] is True
    assert svc.delete_profile("u1")["error"] == "profile_not_found"
