"""Application settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from typedhttp.http.constants import CORRELATION_ID_HEADER_NAME


LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class HttpClientSettings(BaseSettings):
    """Centralized environment configuration for typed HTTP clients."""

    model_config = SettingsConfigDict(
        env_prefix="TYPEDHTTP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = ""
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    user_agent: str = "typedhttp/1.0"
    correlation_header_names: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [CORRELATION_ID_HEADER_NAME]
    )
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("correlation_header_names", mode="before")
    @classmethod
    def split_header_names(cls, v: object) -> object:
        """Accept a comma-separated list from the environment."""
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject unknown levels."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            msg = f"Unknown log level '{v}'; expected one of {sorted(LOG_LEVELS)}"
            raise ValueError(msg)
        return level


def get_settings() -> HttpClientSettings:
    """Get a settings instance."""
    return HttpClientSettings()
