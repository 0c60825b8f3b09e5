"""
Dashboard and progress endpoints.
"""
from datetime import date

from fastapi import APIRouter, Depends

from nutriplan.api.deps import get_dashboard_service, get_today, unwrap
from nutriplan.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/{user_id}/dashboard")
def get_dashboard(
    user_id: str,
    today: date = Depends(get_today),
    svc: DashboardService = Depends(get_dashboard_service),
):
    return unwrap(svc.dashboard(user_id, today))


@router.get("/{user_id}/progress")
def get_progress(
    user_id: str,
    today: date = Depends(get_today),
    svc: DashboardService = Depends(get_dashboard_service),
):
    return unwrap(svc.progress(user_id, today))
