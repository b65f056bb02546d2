from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "CMS Multilingual"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./cms_multilingual.db"
    slow_query_threshold_ms: int = 100

    # Used when the multilingual site option has never been saved
    default_language: str = "de"

    # Diagnostics settings
    diagnostics_max_log_entries: int = 500
    diagnostics_fix_batch_limit: int = 50
    diagnostics_interval_hours: int = 0  # 0 disables the scheduled audit

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
