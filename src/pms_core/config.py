"""Application settings loaded from the environment."""
from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the PMS core service. All fields read ``PMS_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="PMS_", env_file=".env", extra="ignore")

    app_name: str = "PMS Core API"
    database_url: str = "sqlite:///./pms.db"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Attempts at allocating a fresh sequence when a hierarchy id collides
    hierarchy_id_max_retries: int = 3

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a JSON list."""
        if isinstance(v, str) and not v.startswith("["):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
