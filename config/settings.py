"""
Caribbean BCP Configuration Settings

Centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Caribbean BCP Risk Engine"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./bcp_content.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Localization
    default_locale: str = "en"
    supported_locales: List[str] = ["en", "es", "fr"]

    # Pre-selection policy (wizard default checkbox state)
    preselect_min_parish_level: int = 1
    preselect_min_risk_level: str = "medium"

    # Strategy aggregation
    max_compatible_strategies: int = 2
    multi_hazard_bonus: int = 10
    max_effectiveness: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Strategy effectiveness multipliers
PRIORITY_MULTIPLIERS = {
    "critical": 1.0,
    "high": 1.0,
    "medium": 0.8,
    "low": 0.6
}
DEFAULT_PRIORITY_MULTIPLIER = 0.8

CATEGORY_MULTIPLIERS = {
    "prevention": 1.0,
    "preparation": 1.0,
    "response": 0.9,
    "recovery": 0.8
}
DEFAULT_CATEGORY_MULTIPLIER = 0.8

# Output buckets; "preparation" strategies are grouped with prevention
STRATEGY_BUCKETS = {
    "prevention": "prevention",
    "preparation": "prevention",
    "response": "response",
    "recovery": "recovery"
}

# Data quality bands (minimum % of high-confidence calculations)
DATA_QUALITY_BANDS = [
    (80, "excellent"),
    (60, "good"),
    (40, "fair"),
    (0, "limited")
]
