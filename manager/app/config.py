from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    BRANCH_SLOT_API_URL: str = "http://localhost:8000"
    API_TIMEOUT_SECONDS: float = 10.0
    REDIS_URL: Optional[str] = None
    # abandoned drafts are kept for a week
    FLOW_TTL_SECONDS: int = 60 * 60 * 24 * 7

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )


settings = Settings()

BRANCH_SLOT_API_URL = settings.BRANCH_SLOT_API_URL
API_TIMEOUT_SECONDS = settings.API_TIMEOUT_SECONDS
REDIS_URL = settings.REDIS_URL
FLOW_TTL_SECONDS = settings.FLOW_TTL_SECONDS
