# nutriplan/services/profile_service.py
"""
Profile reads/writes and the onboarding flow.

Onboarding stores the wizard answers and derives `daily_calorie_target`
from BMR x activity multiplier (2000 kcal BMR when body data is missing).
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from nutriplan.models.profile import OnboardingInput, Profile, ProfileInput
from nutriplan.services import metrics
from nutriplan.services.kv_store import StorageError
from nutriplan.services.results import error_result, ok_result
from nutriplan.services.stores import ProfileStore

logger = logging.getLogger(__name__)


class ProfileService:

    def __init__(self, store: ProfileStore, default_water_target_ml: int = 2000) -> None:
        self.store = store
        self.default_water_target_ml = default_water_target_ml

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        try:
            profile = self.store.load(user_id)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        if profile is None:
            return error_result("profile_not_found", {"user_id": user_id})
        return ok_result(profile)

    def save_profile(self, user_id: str, payload: ProfileInput) -> Dict[str, Any]:
        """Replace the stored profile wholesale; onboarding status is kept."""
        try:
            existing = self.store.load(user_id)
            data = payload.model_dump()
            if data.get("daily_water_target_ml") is None:
                data["daily_water_target_ml"] = self.default_water_target_ml
            profile = Profile(
                id=user_id,
                onboarding_completed=bool(existing and existing.onboarding_completed),
                **data,
            )
            self.store.save(profile)
        except StorageError as exc:
            logger.exception("save_profile failed user=%s: %s", user_id, exc)
            return error_result("storage_failed", {"exception": str(exc)})
        logger.info("profile saved user=%s created=%s", user_id, existing is None)
        return ok_result(profile, {"created": existing is None})

    def complete_onboarding(self, user_id: str, answers: OnboardingInput) -> Dict[str, Any]:
        target = metrics.daily_calorie_target(
            answers.weight_kg, answers.height_cm, answers.age, answers.activity_level
        )
        try:
            existing = self.store.load(user_id)
            base = existing.model_dump() if existing else {"id": user_id}
            base.update(answers.model_dump())
            base["daily_calorie_target"] = target
            if not base.get("daily_water_target_ml"):
                base["daily_water_target_ml"] = self.default_water_target_ml
            base["onboarding_completed"] = True
            profile = Profile.model_validate(base)
            self.store.save(profile)
        except StorageError as exc:
            logger.exception("complete_onboarding failed user=%s: %s", user_id, exc)
            return error_result("storage_failed", {"exception": str(exc)})
        logger.info("onboarding completed user=%s target=%s", user_id, target)
        return ok_result(profile, {"daily_calorie_target": target})

    def delete_profile(self, user_id: str) -> Dict[str, Any]:
        try:
            deleted = self.store.delete(user_id)
        except StorageError as exc:
            return error_result("storage_failed", {"exception": str(exc)})
        if not deleted:
            return error_result("profile_not_found", {"user_id": user_id})
        return ok_result({"deleted": True})
