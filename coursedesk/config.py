"""
Runtime configuration.

Values come from environment variables and can be overridden by CLI flags:

    COURSEDESK_API_URL    base URL of the course backend
    COURSEDESK_TIMEOUT    request timeout in seconds
    COURSEDESK_LOG_LEVEL  logging level (DEBUG, INFO, ...)
"""

from __future__ import annotations

from typing import Mapping

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "COURSEDESK_"

DEFAULT_API_URL = "http://localhost:8080/api/"
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"


class Settings(BaseSettings):
    """
    Client settings, loaded from COURSEDESK_* environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    api_url: str = Field(default=DEFAULT_API_URL, description="Backend base URL")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Logging level name")

    @field_validator("api_url", "log_level", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the process environment, or from the given mapping.

    Passing a dict instead of os.environ makes testing easier: only the
    mapping is read then. Invalid values raise pydantic.ValidationError.
    """
    if environ is None:
        return Settings()

    values = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX) and str(value).strip()
    }
    return Settings.model_validate(values)
