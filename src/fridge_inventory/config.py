"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from fridge_inventory.services.matcher import MatcherSettings

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    ingredient_min_confidence: float = 0.5
    partial_match_threshold: float = 0.6
    ambiguous_score_gap: float = 0.1
    auto_create_unmatched: bool = False
    reconcile_retry_delay_seconds: float = 0.1
    expiring_soon_days: int = 3
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def matcher_settings(settings: Settings) -> MatcherSettings:
    """Build matcher thresholds from application settings."""
    return MatcherSettings(
        partial_match_threshold=settings.partial_match_threshold,
        ambiguous_score_gap=settings.ambiguous_score_gap,
        auto_create_unmatched=settings.auto_create_unmatched,
    )
