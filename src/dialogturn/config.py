"""Configuration management for dialogturn."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dialogturn.errors import ConfigurationError
from dialogturn.logging_utils import configure_logging


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="DIALOGTURN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Router Configuration
    router_id: str = Field(default="main", description="Dialog id of the top-level router")
    state_property: str = Field(default="dialog_state", description="Conversation state property holding the stack")

    # Storage Configuration
    storage_path: Optional[Path] = Field(None, description="JSON file for conversation state; memory when unset")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "chat"] = Field(default="default", description="Log output profile")

    @field_validator("router_id", "state_property")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


def get_settings(storage_path: Optional[Path] = None) -> Settings:
    """Get application settings.

    Args:
        storage_path: Optional storage file override

    Returns:
        Settings instance

    Raises:
        ConfigurationError: when the environment or ``.env`` holds invalid values
    """
    try:
        settings = Settings() if storage_path is None else Settings(storage_path=storage_path)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid dialogturn settings: {exc}") from exc

    configure_logging(profile=settings.log_profile, level=settings.log_level)

    return settings
