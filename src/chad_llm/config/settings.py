"""
Configuration settings for chad-llm.

This module provides configuration management using Pydantic settings
with support for environment variables and .env files loaded by
:mod:`chad_llm.config.env_loader`.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "chatgpt-4o-latest"


def _default_data_dir() -> Path:
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return base / "chad-llm"


class ChadLlmSettings(BaseSettings):
    """
    Main configuration settings for chad-llm.

    Settings are loaded from multiple sources in order of preference:
    1. Explicit keyword arguments (command-line overrides)
    2. Environment variables (prefixed with CHAD_LLM_, plus OPENAI_API_KEY)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAD_LLM_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # API Configuration
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "CHAD_LLM_API_KEY"),
        description="OpenAI API key",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the OpenAI-compatible API",
    )

    # Model Configuration
    model: str = Field(
        default=DEFAULT_MODEL,
        description="Default model to chat with",
    )

    max_tokens: int = Field(
        default=2048,
        description="Maximum tokens for responses",
        gt=0,
        le=128000,
    )

    temperature: float = Field(
        default=0.5,
        description="Sampling temperature",
        ge=0.0,
        le=2.0,
    )

    timeout: int = Field(
        default=60,
        description="Request timeout in seconds",
        gt=0,
    )

    max_retries: int = Field(
        default=3,
        description="Attempts made to open a request before giving up",
        ge=1,
    )

    # Output Configuration
    raw: bool = Field(
        default=False,
        description="Print replies verbatim instead of rendering markdown",
    )

    # Directory Configuration
    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory holding history and system prompts",
    )

    max_history_length: int = Field(
        default=20,
        description="Number of history entries replayed at start-up",
        gt=0,
    )

    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Strip trailing slashes so paths can be appended."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base URL '{v}'. It must start with http:// or https://")
        return v

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        """Validate model name."""
        v = v.strip()
        if not v:
            raise ValueError("Model name must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {', '.join(sorted(valid_levels))}")
        return v_upper

    def ensure_directories(self) -> None:
        """Ensure the data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def system_prompts_file(self) -> Path:
        """Path to the stored system prompts."""
        return self.data_dir / "system_prompts.json"

    @property
    def session_history_file(self) -> Path:
        """Path to the conversation transcript."""
        return self.data_dir / "session_history.jsonl"

    @property
    def input_history_file(self) -> Path:
        """Path to the line editor history."""
        return self.data_dir / "input_history"

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, excluding sensitive data."""
        data = self.model_dump()
        if data.get("api_key"):
            data["api_key"] = "***masked***"
        data["data_dir"] = str(data["data_dir"])
        return data


def get_settings(**overrides: Any) -> ChadLlmSettings:
    """Get the current settings, applying any non-None overrides."""
    return ChadLlmSettings(**{k: v for k, v in overrides.items() if v is not None})
