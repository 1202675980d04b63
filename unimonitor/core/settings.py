import os
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """Application settings, overridable with UNIMONITOR_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="UNIMONITOR_", env_file=".env", extra="ignore")

    APP_ENV: str = "production"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    DATA_DIR: str = os.path.join(PROJECT_ROOT, "data")
    CURRENT_ACADEMIC_YEAR: str = "2024-25"

    API_TITLE: str = "University Monitoring - Grant Eligibility"
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        # logging only knows "INFO", not "info"
        return value.strip().upper()


settings = Settings()
