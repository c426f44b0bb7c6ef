"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path


class ConfigError(Exception):
    """Raised when a required setting is missing. Never retried."""


@dataclass
class Config:
    db_path: Path = field(default_factory=lambda: Path.home() / ".day_planner" / "planner.db")
    todoist_api_token: str | None = None
    app_password: str | None = None
    cookie_secure: bool = False
    default_work_hours: float = 8.0
    todoist_timeout: float | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if db := os.environ.get("DP_DB_PATH"):
            config.db_path = Path(db)

        config.todoist_api_token = os.environ.get("TODOIST_API_TOKEN") or None
        config.app_password = os.environ.get("DP_APP_PASSWORD") or None

        if secure := os.environ.get("DP_COOKIE_SECURE"):
            config.cookie_secure = secure.lower() in ("1", "true", "yes")

        if hours := os.environ.get("DP_DEFAULT_WORK_HOURS"):
            config.default_work_hours = float(hours)

        if timeout := os.environ.get("DP_TODOIST_TIMEOUT"):
            config.todoist_timeout = float(timeout)

        if level := os.environ.get("DP_LOG_LEVEL"):
            config.log_level = level.upper()

        return config

    def require_todoist_token(self) -> str:
        if not self.todoist_api_token:
            raise ConfigError("Todoist API token not configured: TODOIST_API_TOKEN not set")
        return self.todoist_api_token

    def require_app_password(self) -> str:
        if not self.app_password:
            raise ConfigError("App password not configured: DP_APP_PASSWORD not set")
        return self.app_password


def get_config() -> Config:
    return Config.from_env()
