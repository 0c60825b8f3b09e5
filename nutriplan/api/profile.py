"""
Profile, onboarding and body-metrics endpoints.
"""
from fastapi import APIRouter, Depends

from nutriplan.api.deps import get_dashboard_service, get_profile_service, unwrap
from nutriplan.models.profile import OnboardingInput, ProfileInput
from nutriplan.services.dashboard_service import DashboardService
from nutriplan.services.profile_service import ProfileService

router = APIRouter()


@router.get("/{user_id}/profile")
def get_profile(user_id: str, svc: ProfileService = Depends(get_profile_service)):
    return unwrap(svc.get_profile(user_id))


@router.put("/{user_id}/profile")
def save_profile(
    user_id: str,
    payload: ProfileInput,
    svc: ProfileService = Depends(get_profile_service),
):
    return unwrap(svc.save_profile(user_id, payload))


@router.delete("/{user_id}/profile")
def delete_profile(user_id: str, svc: ProfileService = Depends(get_profile_service)):
    return unwrap(svc.delete_profile(user_id))


@router.post("/{user_id}/onboarding")
def complete_onboarding(
    user_id: str,
    answers: OnboardingInput,
    svc: ProfileService = Depends(get_profile_service),
):
    return unwrap(svc.complete_onboarding(user_id, answers))


@router.get("/{user_id}/metrics")
def get_metrics(user_id: str, svc: DashboardService = Depends(get_dashboard_service)):
    """BMI, BMR, TDEE and calorie goals; null fields when body data is missing."""
    return unwrap(svc.metrics(user_id))
