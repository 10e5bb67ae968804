"""
Settings for the catalog client.

Values come from (highest priority first):
1. command line flags (applied by the CLI via `with_overrides`)
2. environment variables prefixed COURSECATALOG_ (e.g. COURSECATALOG_API_URL)
3. a local .env file
4. the defaults below
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:8080/api"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="COURSECATALOG_", env_file=".env", extra="ignore")

    api_url: str = DEFAULT_API_URL
    # when set, the JSON file store is used instead of the HTTP API
    store_path: Optional[Path] = None
    timeout: float = Field(default=10.0, gt=0)
    log_level: str = "WARNING"

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)} (got {v!r})")
        return level

    def with_overrides(self, **overrides: Any) -> "Settings":
        """
        Return a copy with every non-None override applied (and re-validated).
        """
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return Settings(**data)


def load_settings() -> Settings:
    return Settings()
