# nutriplan/config/settings.py
"""
Application configuration using pydantic-settings (pydantic v2 style).

All environment-driven configuration lives here. Read values through the
module-level `settings` object instead of calling os.getenv inline so a
missing value is visible in one place.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application configuration loaded from environment.

    Relevant environment variables:
      - DATABASE_URL (unset -> in-memory key-value store)
      - OPENAI_API_KEY / OPENAI_MODEL
      - PLAN_GENERATION_TIMEOUT
      - MOCK_LLM_DELAY
      - MIN_LOSS_CALORIES
      - DEFAULT_CALORIE_TARGET
      - DEFAULT_WATER_TARGET_ML
      - STREAK_LOOKBACK_DAYS
      - LOG_LEVEL
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Storage
    database_url: Optional[str] = Field(default=None)

    # OpenAI (optional; the mock generator is used when no key is set)
    openai_api_key: Optional[str] = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")

    # Plan generation
    plan_generation_timeout: float = Field(default=30.0, gt=0)
    mock_llm_delay: float = Field(default=0.5, ge=0)

    # Metrics / targets
    min_loss_calories: float = Field(default=1200.0, ge=0)
    default_calorie_target: int = Field(default=2000, gt=0)
    default_water_target_ml: int = Field(default=2000, gt=0)
    streak_lookback_days: int = Field(default=30, gt=0)

    log_level: str = Field(default="INFO")

    @field_validator("database_url", "openai_api_key")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    def model_post_init(self, __context) -> None:
        if not self.database_url:
            logger.info(
                "DATABASE_URL not set. Using the in-memory store; data is lost on restart."
            )
        if not self.openai_api_key:
            logger.info(
                "OPENAI_API_KEY not set. Meal plans and nutrition estimates use the mock generator."
            )


# single exporter
settings = Settings()
