"""Application settings for the product insight retrieval service."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "stores" / "data"


class Settings(BaseSettings):
    """Service settings, read from INSIGHT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="INSIGHT_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core application settings
    app_env: Literal["development", "staging", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # CORS - use string to avoid JSON parsing issues
    cors_origins_str: str = Field(default="http://localhost:5173,http://localhost:3000", alias="cors_origins")

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # Static data (vocabulary, explicit memory, precomputed statistics)
    data_dir: Path = DEFAULT_DATA_DIR

    # Generative oracle
    oracle_model: str = "gpt-4o-mini"
    oracle_temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    oracle_max_tokens: int = 1500
    oracle_timeout_seconds: float = Field(default=30.0, gt=0.0)

    # Confirmation sub-flow: "user" pauses the pipeline, "oracle" asks the model
    confirmation_mode: Literal["user", "oracle"] = "user"

    # OPENAI_API_KEY is read by the model client directly (no INSIGHT_ prefix)

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        """Ensure the data directory exists."""
        if not v.is_dir():
            raise ValueError(f"Data directory does not exist: {v}")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
