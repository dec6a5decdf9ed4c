# backend/app/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/branch_slots.db"
    log_level: str = "INFO"
    sql_echo: bool = False
    # create missing tables on startup; production runs alembic instead
    auto_create_schema: bool = True

    # paging for /BranchSlot/paged, slot rooms and availability
    default_page_size: int = 10
    max_page_size: int = 1000

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative to the repository root, not the working directory
            relative_path = url.replace("sqlite:///./", "")
            return f"sqlite:///{BASE_DIR / relative_path}"
        return url


settings = Settings()
