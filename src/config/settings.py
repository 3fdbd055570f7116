"""
Farkle Engine - Application Settings

Loads match defaults from environment variables (prefix FARKLE_) or a .env
file using Pydantic Settings.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Match
    target_score: int = Field(default=10000, gt=0)
    entry_threshold: int = Field(default=500, ge=0)
    dice_count: int = Field(default=6, ge=1, le=6)
    max_rounds: int | None = Field(default=None, gt=0)
    max_selection_retries: int = Field(default=3, ge=0)

    # Reproducible dice
    seed: int | None = None

    # Application
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "FARKLE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()
