"""Process configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")
    guardrails_config_path: str = Field(alias="GUARDRAILS_CONFIG_PATH", default="")
    session_stale_minutes: int = Field(alias="SESSION_STALE_MINUTES", default=120)
    delegation_event_timeout_seconds: float = Field(
        alias="DELEGATION_EVENT_TIMEOUT_SECONDS", default=10.0
    )
    window_max_age_hours: int = Field(alias="WINDOW_MAX_AGE_HOURS", default=24)
    window_max_count: int = Field(alias="WINDOW_MAX_COUNT", default=50)
    delegation_tracker_enabled: int = Field(alias="DELEGATION_TRACKER_ENABLED", default=0)
    task_tool_name: str = Field(alias="TASK_TOOL_NAME", default="task")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
