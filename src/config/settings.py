from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import (
    DEFAULT_HISTORY_CAPACITY,
    DEFAULT_PAGE,
    KNOWN_PAGES,
    MAX_HISTORY_CAPACITY,
    THEMES,
)

# Load .env once at module import; all BaseSettings subclasses will see the env vars
load_dotenv()


class ContextSettings(BaseSettings):
    """Page context defaults. Env vars prefixed with CONTEXT_."""

    model_config = SettingsConfigDict(env_prefix="CONTEXT_")

    default_page: str = DEFAULT_PAGE
    default_theme: str = "light"
    known_pages: tuple[str, ...] = KNOWN_PAGES

    @field_validator("default_theme")
    @classmethod
    def _validate_default_theme(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in THEMES:
            msg = f"CONTEXT_DEFAULT_THEME must be one of {THEMES} (got '{v}')"
            raise ValueError(msg)
        return v

    @field_validator("default_page")
    @classmethod
    def _validate_default_page(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("CONTEXT_DEFAULT_PAGE must not be empty")
        return v


class ToolSettings(BaseSettings):
    """Tool runtime settings. Env vars prefixed with TOOLS_."""

    model_config = SettingsConfigDict(env_prefix="TOOLS_")

    history_capacity: int = Field(DEFAULT_HISTORY_CAPACITY, gt=0, le=MAX_HISTORY_CAPACITY)
    resource_base_url: str = ""  # empty = site-relative download paths
    resume_path: str = "/resume.pdf"
    # Execution guards; 0 disables each one.
    rate_limit_calls: int = Field(0, ge=0)
    rate_limit_window_seconds: float = Field(60.0, gt=0)
    repeat_window_seconds: float = Field(0.0, ge=0)
    max_argument_bytes: int = Field(0, ge=0)

    @field_validator("resume_path")
    @classmethod
    def _validate_resume_path(cls, v: str) -> str:
        if not v.startswith("/"):
            msg = f"TOOLS_RESUME_PATH must be site-relative (got '{v}')"
            raise ValueError(msg)
        return v


class LoggingSettings(BaseSettings):
    """Logging output settings. Env vars prefixed with LOG_."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    json_output: bool = True
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v = v.upper()
        if v not in allowed:
            msg = f"LOG_LEVEL must be one of {sorted(allowed)} (got '{v}')"
            raise ValueError(msg)
        return v


class Settings(BaseSettings):
    """Root settings composing all sub-configurations."""

    model_config = SettingsConfigDict(extra="ignore")

    context: ContextSettings = Field(default_factory=ContextSettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def get_settings() -> Settings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return Settings()
